"""
Commit Source Module - 커밋 이벤트 수집

웹훅 payload, CI 이벤트 파일, 로컬 Git HEAD에서 CommitEvent 목록을 만듭니다.
"""
import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

from commit_notifier.core.errors import PayloadValidationError
from commit_notifier.core.git_analyzer import GitAnalyzer
from commit_notifier.core.vcs_models import CommitEvent, FileChange
from commit_notifier.utils.logger import get_logger

logger = get_logger(__name__)


def parse_push_commit(entry: Any, index: int = 0) -> CommitEvent:
    """
    push 이벤트의 커밋 항목 하나를 CommitEvent로 변환

    Args:
        entry: {id, message, author: {email}, added: [...], modified: [...]}
        index: 오류 메시지용 항목 순번

    Returns:
        added 파일이 먼저 오는 CommitEvent
    """
    if not isinstance(entry, dict):
        raise PayloadValidationError(f"Commit #{index} is not an object")

    missing = [key for key in ('id', 'message', 'author', 'added', 'modified') if key not in entry]
    if missing:
        raise PayloadValidationError(f"Commit #{index} is missing fields: {', '.join(missing)}")

    author = entry['author']
    if not isinstance(author, dict) or not author.get('email'):
        raise PayloadValidationError(f"Commit #{index} has no author email")

    added = entry['added']
    modified = entry['modified']
    for name, files in (('added', added), ('modified', modified)):
        if not isinstance(files, list) or not all(isinstance(f, str) for f in files):
            raise PayloadValidationError(f"Commit #{index} field '{name}' must be a list of paths")

    return CommitEvent(
        id=str(entry['id']),
        message=str(entry['message']),
        author_email=author['email'],
        changed_files=tuple(FileChange(path=path) for path in added + modified)
    )


class CommitSource(ABC):
    """커밋 이벤트 공급자"""

    @abstractmethod
    def collect(self) -> List[CommitEvent]:
        """커밋 이벤트 목록 반환"""
        pass


class WebhookCommitSource(CommitSource):
    """웹훅 push 이벤트 payload에서 커밋 수집"""

    def __init__(self, payload: Any):
        self.payload = payload

    def collect(self) -> List[CommitEvent]:
        if not isinstance(self.payload, dict):
            raise PayloadValidationError("Payload must be a JSON object")

        commits = self.payload.get('commits')
        if not commits:
            raise PayloadValidationError("No commits found in the payload")
        if not isinstance(commits, list):
            raise PayloadValidationError("'commits' must be an array")

        return [parse_push_commit(entry, i) for i, entry in enumerate(commits)]


class EventFileCommitSource(CommitSource):
    """CI가 제공하는 이벤트 JSON 파일에서 커밋 수집 (예: GITHUB_EVENT_PATH)"""

    def __init__(self, event_path: str):
        self.event_path = Path(event_path)

    def collect(self) -> List[CommitEvent]:
        with open(self.event_path, 'r', encoding='utf-8') as f:
            event: Dict[str, Any] = json.load(f)

        commits = event.get('commits') or []
        if not commits:
            logger.warning(f"No commits found in event file {self.event_path}")
            return []

        return [parse_push_commit(entry, i) for i, entry in enumerate(commits)]


class LocalCommitSource(CommitSource):
    """로컬 저장소의 현재 HEAD 커밋 하나를 수집"""

    def __init__(self, git_analyzer: GitAnalyzer):
        self.git_analyzer = git_analyzer

    def collect(self) -> List[CommitEvent]:
        commit = self.git_analyzer.head_commit()
        logger.info(
            f"Local HEAD {commit.short_id} by {commit.author_email} "
            f"({len(commit.changed_files)} files)"
        )
        return [commit]


def resolve_commit_source(event_path: Optional[str], git_analyzer: Optional[GitAnalyzer]) -> CommitSource:
    """
    배치 모드용 커밋 소스 선택

    Args:
        event_path: CI 이벤트 파일 경로 (있으면 우선 사용)
        git_analyzer: 이벤트 파일이 없을 때 사용할 로컬 저장소 분석기

    Returns:
        CommitSource 인스턴스
    """
    if event_path:
        logger.info(f"Reading commits from event file {event_path}")
        return EventFileCommitSource(event_path)
    if git_analyzer is None:
        raise ValueError("No event file and no local repository available")
    logger.info("No event file provided, inspecting local HEAD")
    return LocalCommitSource(git_analyzer)
