from __future__ import annotations

from typing import List, Optional

from jsonschema import ValidationError


class HomerunError(Exception):
    """Base error for homerun engine exceptions."""


class ConfigError(HomerunError):
    """Raised when engine settings fail validation."""


class ContentError(HomerunError):
    """Raised when a bundled content table cannot be loaded or fails its schema."""

    def __init__(self, message: str, errors: Optional[List[ValidationError]] = None):
        super().__init__(message)
        self.errors = errors or []

    def to_human(self) -> str:
        parts = [str(self)]
        for e in self.errors:
            path = "/".join(str(p) for p in e.path) or "<root>"
            parts.append(f" - at {path}: {e.message}")
        return "\n".join(parts)


class UnknownArchetypeError(HomerunError, KeyError):
    """Raised when an archetype name has no profile in the content catalog."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown archetype: {self.name!r}"


class InsufficientFunds(HomerunError):
    """Raised when the profile cannot afford a purchase."""


__all__ = ["HomerunError", "ConfigError", "ContentError", "UnknownArchetypeError", "InsufficientFunds"]
