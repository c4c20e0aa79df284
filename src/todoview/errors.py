from __future__ import annotations


class TodoViewError(Exception):
    """Base class for errors surfaced to the user as notifications."""


class NetworkFailure(TodoViewError):
    pass


class ServerError(TodoViewError):
    def __init__(self, status_code: int, message: str = "") -> None:
        self.status_code = status_code
        self.message = message.strip()
        detail = self.message or "no details"
        super().__init__(f"HTTP {status_code}: {detail}")


class ValidationError(TodoViewError):
    pass
