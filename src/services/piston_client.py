from __future__ import annotations

import logging
from typing import Any

import httpx

from src.app.domain.models import ExecutionOutcome
from src.services.errors import SandboxTimeoutError, SandboxUnavailableError, UnsupportedLanguageError

logger = logging.getLogger(__name__)

DEFAULT_PISTON_URL = "https://emkc.org/api/v2/piston"

# Runtime versions the editor ships with
LANGUAGE_VERSIONS: dict[str, str] = {
    "javascript": "18.15.0",
    "typescript": "5.0.3",
    "python": "3.10.0",
    "java": "15.0.2",
    "go": "1.16.2",
    "rust": "1.68.2",
    "cpp": "10.2.0",
    "csharp": "6.12.0",
    "ruby": "3.0.1",
    "swift": "5.3.3",
}


def build_request(language: str, code: str) -> dict[str, Any]:
    version = LANGUAGE_VERSIONS.get(language)
    if version is None:
        raise UnsupportedLanguageError(language)
    return {"language": language, "version": version, "files": [{"content": code}]}


def _stage_failure(stage: dict[str, Any] | None) -> str | None:
    if not stage:
        return None
    code = stage.get("code")
    if code in (None, 0):
        return None
    return stage.get("stderr") or stage.get("output") or f"exited with code {code}"


def parse_response(data: dict[str, Any]) -> ExecutionOutcome:
    """
    Reduce a Piston response to output/error.

    A non-zero compile or run exit code is an error; its stderr (or output)
    becomes the error text.
    """
    if data.get("message"):
        return ExecutionOutcome(error=str(data["message"]))

    compile_error = _stage_failure(data.get("compile"))
    if compile_error:
        return ExecutionOutcome(error=compile_error)

    run = data.get("run") or {}
    run_error = _stage_failure(run)
    if run_error:
        return ExecutionOutcome(error=run_error)

    return ExecutionOutcome(output=(run.get("output") or "").strip())


class PistonClient:
    def __init__(self, base_url: str = DEFAULT_PISTON_URL, timeout: float = 15.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def execute(self, language: str, code: str) -> ExecutionOutcome:
        payload = build_request(language, code)
        url = f"{self.base_url}/execute"

        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(url, json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as error:
            raise SandboxTimeoutError(url, self.timeout) from error
        except httpx.HTTPStatusError as error:
            raise SandboxUnavailableError(f"HTTP {error.response.status_code}") from error
        except httpx.HTTPError as error:
            raise SandboxUnavailableError(str(error)) from error

        logger.debug("Piston run finished: language=%s", language)
        return parse_response(data)
