from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    VALIDATION = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    FILE_SYSTEM = "FILE_SYSTEM_ERROR"
    AI_SERVICE = "AI_SERVICE_ERROR"
    DATABASE = "DATABASE_ERROR"


# Every kind must have an entry; checked at import time below.
HTTP_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.FILE_SYSTEM: 500,
    ErrorKind.AI_SERVICE: 502,
    ErrorKind.DATABASE: 500,
}

_unmapped = set(ErrorKind) - set(HTTP_STATUS_BY_KIND)
if _unmapped:
    raise RuntimeError(f"ErrorKind without HTTP status: {sorted(k.name for k in _unmapped)}")


class DocumentVaultException(Exception):
    """
    Single exception type for the vault. The `kind` discriminator tells callers
    (and the HTTP layer) how to classify the failure; `cause` keeps the
    underlying exception for logging.
    """

    kind: ErrorKind = ErrorKind.DATABASE

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        *,
        kind: Optional[ErrorKind] = None,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        if kind is not None:
            self.kind = kind

    @property
    def status_code(self) -> int:
        return HTTP_STATUS_BY_KIND[self.kind]

    def to_dict(self) -> dict:
        return {"error": self.kind.value, "message": self.message}

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message} | cause={self.cause!r}"
        return self.message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.name}, message={self.message!r})"


class ValidationError(DocumentVaultException):
    kind = ErrorKind.VALIDATION


class NotFoundError(DocumentVaultException):
    kind = ErrorKind.NOT_FOUND


class FileSystemError(DocumentVaultException):
    kind = ErrorKind.FILE_SYSTEM


class AIServiceError(DocumentVaultException):
    kind = ErrorKind.AI_SERVICE


class DatabaseError(DocumentVaultException):
    kind = ErrorKind.DATABASE
