"""Error taxonomy. Each error knows the HTTP status it maps to."""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_body(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class InvalidInput(AppError):
    status_code = 400


class Unauthenticated(AppError):
    status_code = 401


class Forbidden(AppError):
    status_code = 403


class NotFound(AppError):
    status_code = 404


class Conflict(AppError):
    status_code = 409


class GenerationError(AppError):
    """LLM call failed (network, rate limit, non-2xx)."""


class GenerationFormatError(GenerationError):
    """LLM answered, but not with the JSON shape we asked for."""


class InvalidQuizFormat(GenerationFormatError):
    pass


class PersistenceError(AppError):
    pass
