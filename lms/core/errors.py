"""Domain errors raised by the service layer.

Routers translate them into ``HTTPException`` using ``status_code`` and
``code``; services never import FastAPI.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class DomainError(Exception):
    """Base class carrying a stable machine-readable code."""

    code: str
    status_code: int = 400

    def __str__(self) -> str:  # pragma: no cover - human readable message
        return self.code


class NotFoundError(DomainError):
    def __init__(self, code: str = "not_found"):
        super().__init__(code, 404)


class ForbiddenError(DomainError):
    def __init__(self, code: str = "forbidden"):
        super().__init__(code, 403)


class InvalidInputError(DomainError):
    def __init__(self, code: str = "invalid_input"):
        super().__init__(code, 422)


class ConflictError(DomainError):
    def __init__(self, code: str = "conflict"):
        super().__init__(code, 409)


class AuthenticationError(DomainError):
    def __init__(self, code: str = "invalid_credentials"):
        super().__init__(code, 401)
