"""
errors.py — Failure taxonomy for the brand engine.

Per-job errors (GenerationError, FetchError) are caught at the job boundary
by the dispatcher. Session-level errors (AnalysisError, RefinementError)
propagate to the caller with a readable message.
"""

from __future__ import annotations


class BrandEngineError(Exception):
    """Base class for every error raised by the engine."""


class CredentialMissing(BrandEngineError):
    """No API key configured. Raised before any request is attempted."""

    def __init__(self, message: str = "GEMINI_API_KEY not set in environment / .env") -> None:
        super().__init__(message)


class AnalysisError(BrandEngineError):
    """The reference image could not be turned into a StyleProfile."""


class GenerationError(BrandEngineError):
    """One generation job (image or video) failed."""


class JobCancelled(GenerationError):
    """The owning session was torn down while the job was still polling."""


class FetchError(BrandEngineError):
    """A finished video could not be downloaded from its result URI."""


class RefinementError(BrandEngineError):
    """A masked edit failed. The target asset is left untouched."""


class RefinementRejected(BrandEngineError):
    """A refinement submission was refused before any network call."""


class DispatchError(BrandEngineError):
    """A dispatch could not start (empty selection, no style profile)."""


class SessionClosed(BrandEngineError):
    """The session was closed; start a new one."""
