from __future__ import annotations

from typing import Any


class StampbookError(Exception):
    status_code = 400
    code = "BAD_REQUEST"

    def __init__(self, message: str, *, details: Any | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(StampbookError):
    status_code = 404
    code = "NOT_FOUND"


class DomainValidationError(StampbookError):
    status_code = 422
    code = "VALIDATION_ERROR"


class ConflictError(StampbookError):
    status_code = 409
    code = "CONFLICT"


class PokemonUnavailableError(StampbookError):
    """Raised when a draw needs a rarity tier that has no Pokémon in the catalog."""

    status_code = 409
    code = "NO_ELIGIBLE_POKEMON"


class AuthenticationError(StampbookError):
    status_code = 401
    code = "UNAUTHORIZED"
