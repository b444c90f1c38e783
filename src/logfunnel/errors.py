"""Exceptions raised by logfunnel.

Only two conditions escape the engine: a caller-asserted base64 payload that
does not decode, and a persistence failure. Everything else degrades through
the fallback rules.
"""
from __future__ import annotations


class LogfunnelError(Exception):
    """Base class for all logfunnel errors."""


class InvalidBase64Error(LogfunnelError, ValueError):
    """The ``raw_b64`` field of a payload is not valid base64."""

    def __init__(self, message: str = "Invalid base64 in raw_b64") -> None:
        super().__init__(message)


class StorageError(LogfunnelError):
    """The persistence layer failed to store or read entries."""
