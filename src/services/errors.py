class ServiceError(Exception):
    pass


class UnsupportedLanguageError(ServiceError):
    def __init__(self, language: str):
        super().__init__(f"Language not supported by the sandbox: {language}")
        self.language = language


class SandboxUnavailableError(ServiceError):
    def __init__(self, reason: str):
        super().__init__(f"Execution sandbox unavailable: {reason}")
        self.reason = reason


class SandboxTimeoutError(SandboxUnavailableError):
    def __init__(self, url: str, timeout_seconds: float):
        super().__init__(f"timeout after {timeout_seconds}s: {url}")
        self.url = url
        self.timeout_seconds = timeout_seconds
