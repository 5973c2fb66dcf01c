# src/app/main.py
from __future__ import annotations
import logging
import sys
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.app.config import settings
from src.app.domain.errors import UnauthenticatedError, UpstreamUnavailableError
from src.app.routers.executions import router as executions_router
from src.app.routers.snippets import router as snippets_router
from src.app.routers.users import router as users_router
from src.app.routers.webhooks import router as webhooks_router
from src.services.errors import SandboxUnavailableError

# Plain stdout logging, fine for dev and containers
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)

app = FastAPI(title="CodeCraft API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(users_router)
app.include_router(snippets_router)
app.include_router(executions_router)
app.include_router(webhooks_router)


@app.exception_handler(UpstreamUnavailableError)
async def upstream_unavailable(request: Request, exc: UpstreamUnavailableError) -> JSONResponse:
    return JSONResponse(
        status_code=503,
        content={"detail": "Storage temporarily unavailable", "retryable": True},
    )


@app.exception_handler(SandboxUnavailableError)
async def sandbox_unavailable(request: Request, exc: SandboxUnavailableError) -> JSONResponse:
    logger.error("Sandbox error on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content={"detail": "Code execution service unavailable", "retryable": True},
    )


@app.exception_handler(UnauthenticatedError)
async def unauthenticated(request: Request, exc: UnauthenticatedError) -> JSONResponse:
    return JSONResponse(status_code=401, content={"detail": str(exc)})


@app.get("/health")
def health():
    return {"ok": True}
