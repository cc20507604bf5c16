"""
LLM Agent Module - AI 기반 커밋 리뷰 에이전트

chat completion 서비스(Groq, OpenAI, Azure OpenAI)에 커밋 메시지와 diff를 보내
리뷰 응답 원문을 받아옵니다.
"""
import os
from abc import ABC, abstractmethod
from typing import Optional

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import AzureChatOpenAI, ChatOpenAI
from langfuse import Langfuse
from langfuse.langchain import CallbackHandler

from commit_notifier.core.errors import AnalysisServiceError, ConfigurationError
from commit_notifier.utils.config import CompletionConfig
from commit_notifier.utils.logger import get_logger
from commit_notifier.utils.prompt_loader import PromptLoader

# 로깅 설정
logger = get_logger(__name__)

PROMPT_TEMPLATE = "commit_review"

DEFAULT_SYSTEM_PROMPT = (
    "You are a senior developer reviewing code changes. "
    "Review the commit and propose corrections. "
    "Start with 'Language: <name>', then give the corrected code in a fenced code block "
    "and explain the changes."
)
DEFAULT_HUMAN_PROMPT = "Analyze this commit:\nMessage: {commit_message}\nFile: {file_path}\nChanges:\n{diff}"


class AnalysisEngine(ABC):
    """커밋 분석 엔진 인터페이스"""

    @abstractmethod
    async def analyze(self, commit_message: str, diff: str, file_path: Optional[str] = None) -> Optional[str]:
        """
        커밋 분석 요청

        Returns:
            응답 원문. 실패하면 None (ResponseParser가 대체 결과로 변환)
        """
        pass

    def close(self) -> None:
        """종료 시 리소스 정리"""
        return None


def create_chat_model(config: CompletionConfig) -> BaseChatModel:
    """
    설정된 provider에 맞는 LangChain 채팅 모델 생성

    Args:
        config: Completion 서비스 설정

    Returns:
        ChatOpenAI 또는 AzureChatOpenAI
    """
    if config.provider == 'azure':
        return AzureChatOpenAI(
            azure_endpoint=config.azure_endpoint,
            api_key=config.api_key,
            azure_deployment=config.azure_deployment,
            api_version=config.api_version,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            timeout=config.request_timeout,
            max_retries=0
        )
    if config.provider in ('groq', 'openai'):
        return ChatOpenAI(
            model=config.model,
            api_key=config.api_key,
            base_url=config.base_url,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            timeout=config.request_timeout,
            max_retries=0
        )
    raise ConfigurationError(f"Unsupported LLM provider: {config.provider}")


class LLMAgent(AnalysisEngine):
    """LLM 기반 커밋 리뷰 에이전트"""

    def __init__(self, config: CompletionConfig, llm: Optional[BaseChatModel] = None,
                 prompt_loader: Optional[PromptLoader] = None):
        """
        LLMAgent 초기화

        Args:
            config: Completion 서비스 설정
            llm: 미리 만든 채팅 모델 (테스트 주입용, 없으면 설정으로 생성)
            prompt_loader: 프롬프트 로더 (선택사항)
        """
        self.config = config
        self.prompt_loader = prompt_loader or PromptLoader()
        self.llm = llm or create_chat_model(config)
        logger.info(f"Completion client initialized ({config.provider}, model={config.model or config.azure_deployment})")
        self._initialize_langfuse()

    def _initialize_langfuse(self) -> None:
        """LangFuse 모니터링 초기화"""
        if all([
            os.getenv('LANGFUSE_PUBLIC_KEY'),
            os.getenv('LANGFUSE_SECRET_KEY'),
            os.getenv('LANGFUSE_HOST')
        ]):
            self.langfuse = Langfuse()
            self.langfuse_handler = CallbackHandler()
            logger.info("LangFuse monitoring initialized")
        else:
            self.langfuse = None
            self.langfuse_handler = None
            logger.debug("LangFuse not configured, monitoring disabled")

    def _run_config(self, file_path: Optional[str]) -> Optional[dict]:
        """LangFuse가 켜져 있으면 completion 호출을 추적하는 실행 설정"""
        if self.langfuse_handler is None:
            return None
        return {
            "callbacks": [self.langfuse_handler],
            "run_name": PROMPT_TEMPLATE,
            "metadata": {"file_path": file_path or "(whole commit)"}
        }

    def _build_messages(self, commit_message: str, diff: str, file_path: Optional[str]):
        system_prompt, human_prompt = self.prompt_loader.get_prompt(
            PROMPT_TEMPLATE,
            commit_message=commit_message,
            file_path=file_path or "(whole commit)",
            diff=diff
        )
        if not system_prompt:
            system_prompt = DEFAULT_SYSTEM_PROMPT
        if not human_prompt:
            human_prompt = DEFAULT_HUMAN_PROMPT.format(
                commit_message=commit_message,
                file_path=file_path or "(whole commit)",
                diff=diff
            )
        return [
            SystemMessage(content=system_prompt),
            HumanMessage(content=human_prompt)
        ]

    async def complete(self, commit_message: str, diff: str, file_path: Optional[str] = None) -> str:
        """
        completion 호출 (실패 시 AnalysisServiceError)

        Args:
            commit_message: 커밋 메시지
            diff: 파일 diff 텍스트
            file_path: 대상 파일 경로

        Returns:
            응답 원문
        """
        messages = self._build_messages(commit_message, diff, file_path)
        try:
            response = await self.llm.ainvoke(messages, config=self._run_config(file_path))
        except Exception as e:
            raise AnalysisServiceError(f"Completion request failed: {e}") from e

        content = getattr(response, 'content', None)
        if not isinstance(content, str) or not content.strip():
            raise AnalysisServiceError("Completion returned no usable content")

        logger.debug(f"Completion received for {file_path}: {len(content)} characters")
        return content

    async def analyze(self, commit_message: str, diff: str, file_path: Optional[str] = None) -> Optional[str]:
        try:
            return await self.complete(commit_message, diff, file_path)
        except AnalysisServiceError as e:
            logger.warning(f"Error analyzing {file_path or 'commit'}: {e}")
            return None

    def close(self) -> None:
        if self.langfuse is not None:
            self.langfuse.flush()
