"""
Domain errors raised by the rental tax engine and its service layer.

Routers translate them into HTTP responses:
    InvalidInputError -> 422, NotFoundError -> 404, ConflictError -> 409.
"""
from typing import Any


class RentalTaxError(Exception):
    """Base class for every error raised by the rental tax engine."""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message


class InvalidInputError(RentalTaxError):
    """Malformed tax year, non-positive mortgage principal or unknown form type."""


class NotFoundError(RentalTaxError):
    """Property, property scope or statement missing or not owned by the caller."""


class ConflictError(RentalTaxError):
    """A statement already exists for the same (user, form, property, year) key."""
