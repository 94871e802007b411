"""Error types for stagetrim."""
from __future__ import annotations


class StageTrimError(Exception):
    """Base exception for a failed trim run."""


class ConfigurationError(StageTrimError):
    """Raised when invocation parameters are missing or invalid."""


class CollectionError(StageTrimError):
    """Raised when secret versions cannot be listed."""


class MutationError(StageTrimError):
    """Raised when a stage label cannot be removed from its version."""
