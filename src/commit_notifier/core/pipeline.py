"""
Pipeline Module - 커밋 분석 및 알림 파이프라인

커밋 하나마다 파일별로 diff 조회 → 분석 → 파싱 → 첨부파일 스테이징을 수행하고,
결과를 하나의 리포트로 모아 작성자에게 이메일로 보냅니다.
파일 하나, 커밋 하나의 실패는 다른 파일과 커밋의 처리를 중단시키지 않습니다.
"""
import asyncio
import html
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from starlette.concurrency import run_in_threadpool

from commit_notifier.core.artifact_stager import ArtifactStager, attachment_filename, unique_filename
from commit_notifier.core.errors import ArtifactIOError, DeliveryError
from commit_notifier.core.git_analyzer import PlaceholderDiffExtractor, create_diff_extractor
from commit_notifier.core.llm_agent import AnalysisEngine, LLMAgent
from commit_notifier.core.notifier import Notifier, create_notifier
from commit_notifier.core.response_parser import ResponseParser
from commit_notifier.core.vcs_models import (
    AnalysisResult,
    Attachment,
    CommitEvent,
    DEFAULT_EXTENSION,
    EmailReport,
    FileChange,
)
from commit_notifier.utils.config import Config
from commit_notifier.utils.logger import get_logger, LogContext

logger = get_logger(__name__)

TEST_COMMIT_HASH = "1234567"
TEST_ANALYSIS = "Test analysis content for debugging."
TEST_ATTACHMENT_CONTENT = "console.log('Hello World!');"


class OutcomeStatus(str, Enum):
    """처리 결과 상태"""
    COMPLETED = "completed"
    DEGRADED = "degraded"
    FAILED = "failed"


@dataclass
class FileOutcome:
    """파일 하나의 처리 결과"""
    change: FileChange
    result: AnalysisResult
    attachment: Optional[Attachment] = None
    errors: List[str] = field(default_factory=list)

    @property
    def status(self) -> OutcomeStatus:
        if self.attachment is None:
            return OutcomeStatus.FAILED
        if self.result.is_fallback or self.errors:
            return OutcomeStatus.DEGRADED
        return OutcomeStatus.COMPLETED


@dataclass
class CommitOutcome:
    """커밋 하나의 처리 결과"""
    commit: CommitEvent
    files: List[FileOutcome] = field(default_factory=list)
    report: Optional[EmailReport] = None
    delivered: bool = False
    errors: List[str] = field(default_factory=list)
    execution_time: Optional[float] = None

    def add_error(self, error: str):
        """오류 추가"""
        self.errors.append(error)
        logger.error(f"Commit {self.commit.short_id}: {error}")

    @property
    def status(self) -> OutcomeStatus:
        if not self.delivered:
            return OutcomeStatus.FAILED
        if self.errors or any(f.status != OutcomeStatus.COMPLETED for f in self.files):
            return OutcomeStatus.DEGRADED
        return OutcomeStatus.COMPLETED


@dataclass
class BatchResult:
    """여러 커밋의 처리 결과"""
    outcomes: List[CommitOutcome] = field(default_factory=list)
    execution_time: Optional[float] = None

    @property
    def all_delivered(self) -> bool:
        return all(outcome.delivered for outcome in self.outcomes)

    def to_summary_dict(self) -> Dict[str, Any]:
        """요약 딕셔너리 변환"""
        return {
            "total_commits": len(self.outcomes),
            "delivered": sum(1 for o in self.outcomes if o.delivered),
            "failed": sum(1 for o in self.outcomes if not o.delivered),
            "total_files": sum(len(o.files) for o in self.outcomes),
            "total_attachments": sum(len(o.report.attachments) for o in self.outcomes if o.report),
            "execution_time_seconds": self.execution_time,
            "errors": [error for o in self.outcomes for error in o.errors],
            "success": self.all_delivered,
        }


def attachment_extension(result: AnalysisResult, change: FileChange) -> str:
    """
    첨부파일 확장자 결정

    인식된 언어의 확장자를 우선 사용하고, 없으면 원본 파일 경로의 확장자를 사용합니다.
    """
    if result.extension != DEFAULT_EXTENSION:
        return result.extension
    return change.extension


def render_html(text: str) -> str:
    return html.escape(text).replace("\n", "<br>")


class PipelineOrchestrator:
    """커밋 분석 파이프라인 오케스트레이터"""

    def __init__(
        self,
        engine: AnalysisEngine,
        notifier: Notifier,
        diff_extractor=None,
        stager: Optional[ArtifactStager] = None,
        parser: Optional[ResponseParser] = None,
        max_concurrency: int = 1,
        commit_timeout: float = 300.0
    ):
        """
        Args:
            engine: 분석 엔진
            notifier: 이메일 전송기
            diff_extractor: diff_for(commit_id, file_path)를 제공하는 객체
            stager: 첨부파일 스테이저
            parser: 응답 파서
            max_concurrency: 커밋 하나 안에서 동시에 분석할 파일 수
            commit_timeout: 커밋 하나의 분석 제한 시간(초)
        """
        self.engine = engine
        self.notifier = notifier
        self.diff_extractor = diff_extractor or PlaceholderDiffExtractor()
        self.stager = stager or ArtifactStager()
        self.parser = parser or ResponseParser()
        self.max_concurrency = max(1, max_concurrency)
        self.commit_timeout = commit_timeout

    async def run_batch(self, commits: Iterable[CommitEvent]) -> BatchResult:
        """
        커밋 목록을 순서대로 하나씩 처리

        Args:
            commits: 처리할 커밋 목록

        Returns:
            커밋별 처리 결과
        """
        commits = list(commits)
        batch = BatchResult()
        start_time = datetime.now()

        for index, commit in enumerate(commits):
            logger.info(f"Processing commit {index + 1}/{len(commits)}: {commit.short_id}")
            try:
                outcome = await self.process_commit(commit)
            except Exception as e:
                logger.exception(f"Unexpected error while processing commit {commit.short_id}")
                outcome = CommitOutcome(commit=commit)
                outcome.add_error(f"Critical error: {e}")
            batch.outcomes.append(outcome)

        batch.execution_time = (datetime.now() - start_time).total_seconds()
        summary = batch.to_summary_dict()
        logger.info(
            f"Batch finished: {summary['delivered']}/{summary['total_commits']} emails delivered "
            f"in {batch.execution_time:.2f}s"
        )
        return batch

    async def process_commit(self, commit: CommitEvent) -> CommitOutcome:
        """
        커밋 하나를 분석하고 작성자에게 리포트 전송

        분석이 전부 실패해도 가능한 범위의 리포트를 보냅니다.
        """
        outcome = CommitOutcome(commit=commit)
        start_time = datetime.now()

        with LogContext(f"commit {commit.short_id} ({len(commit.changed_files)} files)", logger):
            try:
                outcome.files = await self.analyze_files(commit)
            except Exception as e:
                logger.exception(f"Analysis of commit {commit.short_id} failed")
                outcome.add_error(f"Analysis failed: {e}")
                outcome.files = [
                    FileOutcome(change=change, result=AnalysisResult.fallback())
                    for change in commit.changed_files
                ]

            outcome.report = self.build_report(commit, outcome.files)

            try:
                await self.notifier.deliver(outcome.report)
                outcome.delivered = True
            except DeliveryError as e:
                outcome.add_error(f"Error sending email: {e}")

        outcome.execution_time = (datetime.now() - start_time).total_seconds()
        return outcome

    async def analyze_files(self, commit: CommitEvent) -> List[FileOutcome]:
        """
        커밋의 모든 파일을 분석하고 첨부파일 생성

        분석은 max_concurrency만큼 동시에 수행될 수 있지만,
        결과 목록은 항상 changed_files 순서를 따릅니다.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.commit_timeout
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def bounded(change: FileChange):
            async with semaphore:
                return await self._analyze_file(commit, change, deadline)

        analyses = await asyncio.gather(*(bounded(change) for change in commit.changed_files))

        outcomes = []
        used_names: List[str] = []
        for change, (diff, result) in zip(commit.changed_files, analyses):
            outcome = FileOutcome(change=change, result=result)
            extension = attachment_extension(result, change)
            filename = unique_filename(attachment_filename(commit.id, change.path, extension), used_names)
            try:
                outcome.attachment = await run_in_threadpool(
                    self.stager.stage,
                    commit.id,
                    change.path,
                    result.corrected_code or diff,
                    extension,
                    filename
                )
                used_names.append(filename)
            except ArtifactIOError as e:
                outcome.errors.append(str(e))
                logger.error(f"Commit {commit.short_id}: attachment for {change.path} omitted: {e}")
            except Exception as e:
                outcome.errors.append(f"Unexpected staging error: {e}")
                logger.exception(f"Commit {commit.short_id}: attachment for {change.path} omitted")
            outcomes.append(outcome)

        return outcomes

    async def _analyze_file(self, commit: CommitEvent, change: FileChange, deadline: float):
        """파일 하나의 diff 조회 및 분석. (diff, AnalysisResult) 반환"""
        diff = change.diff
        if not diff:
            diff = await run_in_threadpool(self.diff_extractor.diff_for, commit.id, change.path)

        remaining = deadline - asyncio.get_running_loop().time()
        raw_text = None
        if remaining <= 0:
            logger.warning(f"Commit {commit.short_id}: time budget exhausted before analyzing {change.path}")
        else:
            try:
                raw_text = await asyncio.wait_for(
                    self.engine.analyze(commit.message, diff, change.path),
                    timeout=remaining
                )
            except asyncio.TimeoutError:
                logger.warning(f"Commit {commit.short_id}: analysis of {change.path} timed out")
            except Exception as e:
                logger.warning(f"Commit {commit.short_id}: analysis of {change.path} failed: {e}")

        result = self.parser.parse(raw_text)
        if result.is_fallback:
            logger.info(f"Commit {commit.short_id}: using fallback analysis for {change.path}")
        return diff, result

    def build_report(self, commit: CommitEvent, files: List[FileOutcome]) -> EmailReport:
        """파일별 분석 결과를 하나의 이메일 리포트로 합침"""
        if files:
            analysis = "".join(
                f"Analysis for {f.change.path}:\n{f.result.explanation}\n\n" for f in files
            )
        else:
            analysis = "No changed files were found in this commit.\n\n"
        body_text = f"{analysis}Commit Hash: {commit.id}\n"

        return EmailReport(
            to=commit.author_email,
            subject=f"Code Analysis and Commit Report - {commit.short_id}",
            body_text=body_text,
            body_html=render_html(body_text),
            attachments=[f.attachment for f in files if f.attachment is not None]
        )

    async def send_test_email(self, recipient: str) -> None:
        """
        고정된 테스트 리포트를 전송

        Raises:
            ArtifactIOError: 테스트 첨부파일 스테이징 실패
            DeliveryError: 전송 실패
        """
        attachment = await run_in_threadpool(
            self.stager.stage,
            TEST_COMMIT_HASH, "test_file.txt", TEST_ATTACHMENT_CONTENT,
            DEFAULT_EXTENSION, "test_file.txt"
        )
        body_text = f"Analysis: {TEST_ANALYSIS}\nCommit Hash: {TEST_COMMIT_HASH}\n"
        report = EmailReport(
            to=recipient,
            subject=f"Code Analysis and Commit Report - {TEST_COMMIT_HASH}",
            body_text=body_text,
            body_html=render_html(body_text),
            attachments=[attachment]
        )
        await self.notifier.deliver(report)

    def close(self) -> None:
        """종료 시 분석 엔진 정리 (모니터링 flush 등)"""
        self.engine.close()


def create_orchestrator(
    config: Config,
    engine: Optional[AnalysisEngine] = None,
    notifier: Optional[Notifier] = None,
    diff_extractor=None
) -> PipelineOrchestrator:
    """
    설정으로부터 파이프라인 구성

    Args:
        config: 통합 설정
        engine: 분석 엔진 (없으면 LLMAgent 생성)
        notifier: 이메일 전송기 (없으면 설정된 provider로 생성)
        diff_extractor: diff 추출기 (없으면 repo_path로 생성)

    Returns:
        PipelineOrchestrator 인스턴스
    """
    return PipelineOrchestrator(
        engine=engine or LLMAgent(config.completion),
        notifier=notifier or create_notifier(config.email),
        diff_extractor=diff_extractor or create_diff_extractor(config.app.repo_path),
        stager=ArtifactStager(config.app.temp_directory if config.app.disk_staging else None),
        max_concurrency=config.app.max_concurrent_requests,
        commit_timeout=config.app.commit_timeout
    )
