"""
Git Analyzer Module - VCS 변경사항 조회

로컬 Git 저장소에서 HEAD 커밋 정보와 파일별 diff를 추출합니다.
"""
from pathlib import Path
from typing import List, Optional

import git
from git import Repo

from commit_notifier.core.vcs_models import CommitEvent, FileChange
from commit_notifier.utils.logger import get_logger

# 로깅 설정
logger = get_logger(__name__)


def placeholder_diff(file_path: Optional[str]) -> str:
    """diff를 얻을 수 없을 때 분석에 넘길 대체 텍스트"""
    target = file_path or "this commit"
    return f"// Changes in {target}\n// (diff content unavailable)\n"


class PlaceholderDiffExtractor:
    """Git 저장소 없이 동작하는 diff 추출기 (서버 모드 기본값)"""

    def diff_for(self, commit_id: str, file_path: Optional[str] = None) -> str:
        return placeholder_diff(file_path)


class GitAnalyzer:
    """Git 저장소 분석 클래스"""

    def __init__(self, repo_path: str = "."):
        """
        GitAnalyzer 초기화

        Args:
            repo_path: Git 저장소 경로
        """
        self.repo_path = Path(repo_path).resolve()
        self._repo: Optional[Repo] = None
        self._initialize_repo()

    def _initialize_repo(self) -> None:
        """Git 저장소 초기화 및 검증"""
        try:
            self._repo = Repo(self.repo_path, search_parent_directories=True)
            if self._repo.bare:
                raise ValueError(f"Cannot analyze bare repository at {self.repo_path}")
            logger.debug(f"Opened repository at {self.repo_path}")
        except (git.InvalidGitRepositoryError, git.NoSuchPathError):
            raise ValueError(f"Invalid Git repository at {self.repo_path}")

    @property
    def repo(self) -> Repo:
        """Git 저장소 객체 반환"""
        if self._repo is None:
            self._initialize_repo()
        return self._repo

    def head_commit(self) -> CommitEvent:
        """
        현재 HEAD 커밋의 해시, 메시지, 작성자 이메일 조회

        Returns:
            변경 파일 목록이 채워진 CommitEvent
        """
        commit = self.repo.head.commit
        return CommitEvent(
            id=commit.hexsha,
            message=commit.message.strip(),
            author_email=commit.author.email or "",
            changed_files=tuple(FileChange(path=p) for p in self.changed_paths(commit.hexsha))
        )

    def changed_paths(self, commit_id: str) -> List[str]:
        """
        커밋에서 추가/수정된 파일 경로 목록 (삭제된 파일 제외)

        Args:
            commit_id: 커밋 해시

        Returns:
            diff 순서대로 정렬된 파일 경로 목록
        """
        # --root: 초기 커밋도 빈 트리 대비 변경사항으로 표시
        name_status = self.repo.git.diff_tree(
            "--no-commit-id", "--name-status", "-r", "--root", commit_id
        )

        paths = []
        for line in name_status.split('\n'):
            parts = line.split('\t')
            if len(parts) < 2:
                continue
            status = parts[0]
            if status.startswith('D'):
                continue
            # 이름 변경(R)/복사(C)는 마지막 컬럼이 새 경로
            path = parts[-1]
            if path not in paths:
                paths.append(path)
        return paths

    def diff_for(self, commit_id: str, file_path: Optional[str] = None) -> str:
        """
        커밋 하나에서 파일 하나의 패치 텍스트 조회

        Args:
            commit_id: 커밋 해시
            file_path: 파일 경로 (None이면 커밋 전체 패치)

        Returns:
            패치 텍스트. 조회에 실패하거나 결과가 비어있으면 대체 텍스트
        """
        args = [commit_id, "--patch", "--format="]
        if file_path:
            args += ["--", file_path]

        try:
            diff_content = self.repo.git.show(*args)
        except (git.GitCommandError, ValueError) as e:
            logger.warning(f"Failed to get diff for {commit_id[:7]} {file_path or ''}: {e}")
            return placeholder_diff(file_path)

        if not diff_content.strip():
            logger.info(f"Empty diff for {commit_id[:7]} {file_path or ''}, using placeholder")
            return placeholder_diff(file_path)
        return diff_content


def create_diff_extractor(repo_path: Optional[str]):
    """
    저장소 경로로 diff 추출기 생성

    Args:
        repo_path: Git 저장소 경로 (None이거나 유효하지 않으면 대체 추출기)

    Returns:
        GitAnalyzer 또는 PlaceholderDiffExtractor
    """
    if repo_path is None:
        return PlaceholderDiffExtractor()
    try:
        return GitAnalyzer(str(repo_path))
    except ValueError as e:
        logger.warning(f"{e}; diffs will use placeholders")
        return PlaceholderDiffExtractor()
