"""
Domain exceptions mapped to HTTP responses in app.main.
"""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Required configuration (credentials, URLs) is missing."""


class UnsupportedRoleError(ValueError):
    """A conversation turn carries a role with no provider counterpart."""

    def __init__(self, role: object) -> None:
        super().__init__(f"Unsupported message role: {role!r}")
        self.role = role


class InvalidFilterError(ValueError):
    """A metadata filter references an unknown column or operator."""


__all__ = ["ConfigurationError", "UnsupportedRoleError", "InvalidFilterError"]
