"""
Brand Engine — reference image → style profile → branded mockup gallery,
with mask-based refinement and undo.
"""

from .config import EngineConfig
from .errors import (
    AnalysisError,
    BrandEngineError,
    CredentialMissing,
    DispatchError,
    FetchError,
    GenerationError,
    JobCancelled,
    RefinementError,
    RefinementRejected,
    SessionClosed,
)
from .models import Asset, Category, GenerationRequest, MediaKind, StyleProfile, VideoJobHandle
from .media import MediaRef
from .session import BrandSession

__all__ = [
    "AnalysisError",
    "Asset",
    "BrandEngineError",
    "BrandSession",
    "Category",
    "CredentialMissing",
    "DispatchError",
    "EngineConfig",
    "FetchError",
    "GenerationError",
    "GenerationRequest",
    "JobCancelled",
    "MediaKind",
    "MediaRef",
    "RefinementError",
    "RefinementRejected",
    "SessionClosed",
    "StyleProfile",
    "VideoJobHandle",
]
