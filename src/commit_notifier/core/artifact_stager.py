"""
Artifact Stager Module

수정된 코드를 Attachment로 만듭니다. 기본은 메모리에서 바로 생성하고,
스테이징 디렉터리가 지정되면 임시 파일에 기록한 뒤 다시 읽고
어떤 경로로 빠져나가든 임시 파일을 삭제합니다.
"""
import os
import re
import tempfile
from pathlib import Path, PurePosixPath
from typing import Iterable, Optional

from commit_notifier.core.errors import ArtifactIOError
from commit_notifier.core.vcs_models import Attachment, DEFAULT_EXTENSION
from commit_notifier.utils.logger import get_logger

logger = get_logger(__name__)

_UNSAFE_CHARS = re.compile(r'[^A-Za-z0-9._-]+')


def encode_content(content: str) -> bytes:
    """
    첨부 내용을 바이트로 변환

    UTF-8이 아닌 파일의 diff는 GitPython이 surrogateescape로 디코딩하므로
    같은 방식으로 인코딩해 원래 바이트를 그대로 복원합니다.
    """
    return content.encode("utf-8", errors="surrogateescape")


def sanitize_basename(file_path: str) -> str:
    """경로에서 파일명만 남기고 파일 시스템에 안전한 문자로 치환"""
    name = PurePosixPath(file_path.replace('\\', '/')).name
    name = _UNSAFE_CHARS.sub('_', name).strip('.')
    return name or "file"


def attachment_filename(commit_id: str, file_path: str, extension: str) -> str:
    """
    첨부파일 이름 생성: corrected_<basename>_<hash7><ext>

    Args:
        commit_id: 커밋 해시
        file_path: 원본 파일 경로
        extension: 첨부파일 확장자

    Returns:
        첨부파일 이름
    """
    return f"corrected_{sanitize_basename(file_path)}_{commit_id[:7]}{extension or DEFAULT_EXTENSION}"


def unique_filename(filename: str, taken: Iterable[str]) -> str:
    """
    이미 사용 중인 이름과 겹치면 확장자 앞에 순번을 붙임

    같은 basename을 가진 파일이 여러 디렉터리에 있을 때 이름 충돌을 막습니다.
    """
    taken = set(taken)
    if filename not in taken:
        return filename
    stem, suffix = os.path.splitext(filename)
    counter = 2
    while f"{stem}-{counter}{suffix}" in taken:
        counter += 1
    return f"{stem}-{counter}{suffix}"


class ArtifactStager:
    """첨부파일 스테이징 (메모리 또는 임시 파일)"""

    def __init__(self, staging_dir: Optional[Path] = None, media_type: str = "text/plain"):
        """
        Args:
            staging_dir: 임시 파일을 만들 디렉터리 (None이면 디스크를 거치지 않음)
            media_type: 첨부파일 MIME 타입
        """
        self.staging_dir = Path(staging_dir) if staging_dir else None
        self.media_type = media_type

    def stage(self, commit_id: str, file_path: str, content: str,
              extension: str = DEFAULT_EXTENSION, filename: Optional[str] = None) -> Attachment:
        """
        내용으로 Attachment 생성

        Args:
            commit_id: 커밋 해시
            file_path: 원본 파일 경로
            content: 첨부할 텍스트
            extension: 첨부파일 확장자
            filename: 첨부파일 이름 (없으면 커밋 해시와 basename으로 생성)

        Returns:
            Attachment

        Raises:
            ArtifactIOError: 인코딩/쓰기/읽기/삭제 실패
        """
        filename = filename or attachment_filename(commit_id, file_path, extension)
        try:
            payload = encode_content(content)
        except UnicodeEncodeError as e:
            raise ArtifactIOError(f"Cannot encode attachment for {file_path}: {e}") from e

        if self.staging_dir is None:
            return Attachment(filename=filename, content=payload, media_type=self.media_type)

        prefix = f"{commit_id[:7]}_{sanitize_basename(file_path)}_"

        try:
            self.staging_dir.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(prefix=prefix, suffix=extension, dir=self.staging_dir)
        except OSError as e:
            raise ArtifactIOError(f"Failed to create staging file for {file_path}: {e}") from e

        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(payload)
            data = Path(temp_path).read_bytes()
        except OSError as e:
            raise ArtifactIOError(f"Failed to stage {file_path}: {e}") from e
        finally:
            self._release(temp_path)

        logger.debug(f"Staged {filename} ({len(data)} bytes)")
        return Attachment(filename=filename, content=data, media_type=self.media_type)

    def _release(self, temp_path: str) -> None:
        try:
            os.unlink(temp_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise ArtifactIOError(f"Failed to remove staging file {temp_path}: {e}") from e
