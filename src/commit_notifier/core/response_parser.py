"""
Response Parser Module

completion 응답 텍스트에서 언어, 수정 코드, 설명을 추출합니다.
입력이 어떤 형태든 예외 없이 AnalysisResult를 반환합니다.
"""
import re
from typing import Optional

from commit_notifier.core.vcs_models import (
    AnalysisResult,
    DEFAULT_EXTENSION,
    DEFAULT_LANGUAGE,
)

LANGUAGE_EXTENSIONS = {
    'javascript': '.js',
    'python': '.py',
    'java': '.java',
    'c++': '.cpp',
    'typescript': '.ts',
    'html': '.html',
    'css': '.css',
}

LANGUAGE_PATTERN = re.compile(r'Language:\s*([\w+#]+)', re.IGNORECASE)
CODE_BLOCK_PATTERN = re.compile(r'```[\w+#.-]*[ \t]*\r?\n(.*?)```', re.DOTALL)
ANY_FENCE_PATTERN = re.compile(r'```.*?```', re.DOTALL)


def extension_for(language: str) -> str:
    """언어 이름에 대응하는 파일 확장자 (미지원 언어는 .txt)"""
    return LANGUAGE_EXTENSIONS.get(language.lower(), DEFAULT_EXTENSION)


def parse_response(raw_text: Optional[str]) -> AnalysisResult:
    """
    completion 응답 파싱

    Args:
        raw_text: 모델 응답 원문 (None이면 분석 실패로 간주)

    Returns:
        AnalysisResult (실패 시 대체 결과)
    """
    if raw_text is None:
        return AnalysisResult.fallback()

    match = LANGUAGE_PATTERN.search(raw_text)
    language = match.group(1).lower() if match else DEFAULT_LANGUAGE

    code_match = CODE_BLOCK_PATTERN.search(raw_text)
    corrected_code = code_match.group(1) if code_match else ""

    explanation = ANY_FENCE_PATTERN.sub('', raw_text).strip()

    return AnalysisResult(
        detected_language=language,
        corrected_code=corrected_code,
        explanation=explanation,
        extension=extension_for(language)
    )


class ResponseParser:
    """parse_response를 감싼 파서 (오케스트레이터 주입용)"""

    def parse(self, raw_text: Optional[str]) -> AnalysisResult:
        return parse_response(raw_text)
