from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when a required credential or setting is missing."""


class UpstreamError(RuntimeError):
    """Raised when a call on the departure board's fatal path fails."""
