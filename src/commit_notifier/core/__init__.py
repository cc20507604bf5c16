"""
Core modules for Commit Notifier
"""

from .errors import (
    AnalysisServiceError,
    ArtifactIOError,
    CommitNotifierError,
    ConfigurationError,
    DeliveryError,
    PayloadValidationError,
)
from .vcs_models import AnalysisResult, Attachment, CommitEvent, EmailReport, FileChange
from .git_analyzer import GitAnalyzer
from .pipeline import PipelineOrchestrator

__all__ = [
    "AnalysisServiceError",
    "ArtifactIOError",
    "CommitNotifierError",
    "ConfigurationError",
    "DeliveryError",
    "PayloadValidationError",
    "AnalysisResult",
    "Attachment",
    "CommitEvent",
    "EmailReport",
    "FileChange",
    "GitAnalyzer",
    "PipelineOrchestrator",
]
