from .custom_exception import (
    HTTP_STATUS_BY_KIND,
    AIServiceError,
    DatabaseError,
    DocumentVaultException,
    ErrorKind,
    FileSystemError,
    NotFoundError,
    ValidationError,
)

__all__ = [
    "HTTP_STATUS_BY_KIND",
    "AIServiceError",
    "DatabaseError",
    "DocumentVaultException",
    "ErrorKind",
    "FileSystemError",
    "NotFoundError",
    "ValidationError",
]
