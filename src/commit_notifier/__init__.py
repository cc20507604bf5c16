"""
Commit Notifier

커밋 변경 사항을 AI로 리뷰하고 결과를 작성자에게 이메일로 알려주는 도구
"""

__version__ = "0.1.0"
__author__ = "Commit Notifier Team"

# Core modules - Version control and commit sources
from .core.git_analyzer import GitAnalyzer
from .core.commit_source import (
    CommitSource,
    EventFileCommitSource,
    LocalCommitSource,
    WebhookCommitSource,
)

# Core modules - Analysis and delivery
from .core.llm_agent import AnalysisEngine, LLMAgent
from .core.response_parser import ResponseParser, parse_response
from .core.artifact_stager import ArtifactStager
from .core.notifier import Notifier, SendGridNotifier, SmtpNotifier
from .core.pipeline import PipelineOrchestrator, create_orchestrator

# Core modules - Data models
from .core.vcs_models import AnalysisResult, Attachment, CommitEvent, EmailReport, FileChange

# Utility modules - Configuration and logging
from .utils.config import Config
from .utils.logger import get_logger, setup_logger, LogContext

__all__ = [
    # Version control and commit sources
    "GitAnalyzer",
    "CommitSource",
    "EventFileCommitSource",
    "LocalCommitSource",
    "WebhookCommitSource",

    # Analysis and delivery
    "AnalysisEngine",
    "LLMAgent",
    "ResponseParser",
    "parse_response",
    "ArtifactStager",
    "Notifier",
    "SendGridNotifier",
    "SmtpNotifier",
    "PipelineOrchestrator",
    "create_orchestrator",

    # Data models
    "AnalysisResult",
    "Attachment",
    "CommitEvent",
    "EmailReport",
    "FileChange",

    # Configuration and utilities
    "Config",
    "get_logger",
    "setup_logger",
    "LogContext",
]

# Module metadata
__title__ = "Commit Notifier"
__description__ = "커밋 변경 사항 AI 리뷰 및 이메일 알림 도구"
