import base64
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import List, Tuple

DEFAULT_LANGUAGE = "text"
DEFAULT_EXTENSION = ".txt"
FALLBACK_EXPLANATION = "Unable to analyze commit"


@dataclass(frozen=True)
class FileChange:
    path: str
    diff: str = ""

    @property
    def basename(self) -> str:
        return PurePosixPath(self.path).name or self.path

    @property
    def extension(self) -> str:
        """경로의 확장자 (없으면 .txt)"""
        return PurePosixPath(self.path).suffix or DEFAULT_EXTENSION


@dataclass(frozen=True)
class CommitEvent:
    id: str
    message: str
    author_email: str
    changed_files: Tuple[FileChange, ...] = ()

    @property
    def short_id(self) -> str:
        return self.id[:7]


@dataclass(frozen=True)
class AnalysisResult:
    detected_language: str = DEFAULT_LANGUAGE
    corrected_code: str = ""
    explanation: str = ""
    extension: str = DEFAULT_EXTENSION
    is_fallback: bool = False

    @classmethod
    def fallback(cls) -> 'AnalysisResult':
        """분석 서비스 실패 시 사용하는 대체 결과"""
        return cls(explanation=FALLBACK_EXPLANATION, is_fallback=True)


@dataclass(frozen=True)
class Attachment:
    filename: str
    content: bytes
    media_type: str = "text/plain"

    @property
    def content_base64(self) -> str:
        return base64.b64encode(self.content).decode("ascii")


@dataclass
class EmailReport:
    to: str
    subject: str
    body_text: str
    body_html: str
    attachments: List[Attachment] = field(default_factory=list)
