"""Provider interfaces exposed to the registry."""

from .base import Provider  # noqa: F401

__all__ = ["Provider"]
