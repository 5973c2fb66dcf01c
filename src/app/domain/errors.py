from __future__ import annotations


class CodeCraftError(Exception):
    pass


class UnauthenticatedError(CodeCraftError):
    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class UserNotFoundError(CodeCraftError):
    def __init__(self, user_id: str):
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


class NotFoundError(CodeCraftError):
    pass


class SnippetNotFoundError(NotFoundError):
    def __init__(self, snippet_id: str):
        super().__init__(f"Snippet not found: {snippet_id}")
        self.snippet_id = snippet_id


class CommentNotFoundError(NotFoundError):
    def __init__(self, comment_id: str):
        super().__init__(f"Comment not found: {comment_id}")
        self.comment_id = comment_id


class ForbiddenError(CodeCraftError):
    def __init__(self, message: str = "Not allowed"):
        super().__init__(message)


class EntitlementDeniedError(CodeCraftError):
    def __init__(self, language: str):
        super().__init__(f"Upgrade required: {language} is available on the Pro plan")
        self.language = language


class InvalidSignatureError(CodeCraftError):
    def __init__(self, provider: str, reason: str = "Signature mismatch"):
        super().__init__(f"Invalid {provider} webhook signature: {reason}")
        self.provider = provider
        self.reason = reason


class UpstreamUnavailableError(CodeCraftError):
    retryable = True

    def __init__(self, operation: str, reason: str):
        super().__init__(f"Store unavailable during {operation}: {reason}")
        self.operation = operation
        self.reason = reason
