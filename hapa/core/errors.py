from __future__ import annotations


class HapaError(Exception):
    """Base class for domain errors raised by services."""


class StorageError(HapaError):
    pass


class FileValidationError(HapaError):
    def __init__(self, message: str, *, code: str = "invalid_file"):
        super().__init__(message)
        self.code = code


class EmailDeliveryError(HapaError):
    pass


class NotFoundError(HapaError):
    pass
