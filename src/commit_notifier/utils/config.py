"""
Configuration Management Module

환경 변수 및 설정 파일을 관리하는 모듈
"""
import os
from pathlib import Path
from typing import Optional, Dict, Any, List
from dataclasses import dataclass
import json
from dotenv import load_dotenv

from commit_notifier.core.errors import ConfigurationError

# 환경 변수 로드
load_dotenv()

GROQ_BASE_URL = "https://api.groq.com/openai/v1"

DEFAULT_MODELS = {
    'groq': 'llama-3.1-8b-instant',
    'openai': 'gpt-4o-mini',
    'azure': '',
}

API_KEY_VARS = {
    'groq': 'GROQ_API_KEY',
    'openai': 'OPENAI_API_KEY',
    'azure': 'AZURE_OPENAI_API_KEY',
}


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_number(name: str, default: str, cast=int):
    value = os.getenv(name, default)
    try:
        return cast(value)
    except ValueError:
        kind = "an integer" if cast is int else "a number"
        raise ConfigurationError(f"{name} must be {kind}, got {value!r}") from None


@dataclass
class CompletionConfig:
    """Completion 서비스 설정"""
    provider: str
    api_key: Optional[str]
    model: str
    base_url: Optional[str] = None
    azure_endpoint: Optional[str] = None
    azure_deployment: Optional[str] = None
    api_version: Optional[str] = None
    temperature: float = 0.2
    max_tokens: int = 1000
    request_timeout: int = 60

    @classmethod
    def from_env(cls) -> 'CompletionConfig':
        """환경 변수에서 설정 로드"""
        provider = os.getenv('LLM_PROVIDER', 'groq').strip().lower()
        base_url = os.getenv('LLM_BASE_URL')
        if provider == 'groq' and not base_url:
            base_url = GROQ_BASE_URL

        return cls(
            provider=provider,
            api_key=os.getenv(API_KEY_VARS.get(provider, 'LLM_API_KEY')) or os.getenv('LLM_API_KEY'),
            model=os.getenv('LLM_MODEL', DEFAULT_MODELS.get(provider, '')),
            base_url=base_url,
            azure_endpoint=os.getenv('AZURE_OPENAI_ENDPOINT'),
            azure_deployment=os.getenv('AZURE_OPENAI_DEPLOYMENT_NAME_FOR_AGENT'),
            api_version=os.getenv('AZURE_OPENAI_API_VERSION'),
            temperature=_env_number("LLM_TEMPERATURE", "0.2", float),
            max_tokens=_env_number("LLM_MAX_TOKENS", "1000"),
            request_timeout=_env_number("LLM_REQUEST_TIMEOUT", "60")
        )


@dataclass
class EmailConfig:
    """이메일 전송 설정 (SMTP 또는 SendGrid)"""
    provider: str
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    sendgrid_api_key: Optional[str] = None
    sender: Optional[str] = None
    test_recipient: Optional[str] = None

    @classmethod
    def from_env(cls) -> 'EmailConfig':
        """환경 변수에서 설정 로드"""
        sendgrid_api_key = os.getenv('SENDGRID_API_KEY')
        smtp_host = os.getenv('SMTP_HOST')
        smtp_user = os.getenv('SMTP_USER')

        provider = os.getenv('EMAIL_PROVIDER', '').strip().lower()
        if not provider:
            provider = 'sendgrid' if sendgrid_api_key and not smtp_host else 'smtp'

        if provider == 'sendgrid':
            sender = os.getenv('SENDGRID_VERIFIED_SENDER')
        else:
            sender = os.getenv('SMTP_FROM_EMAIL', smtp_user)

        return cls(
            provider=provider,
            smtp_host=smtp_host,
            smtp_port=_env_number("SMTP_PORT", "587"),
            smtp_user=smtp_user,
            smtp_password=os.getenv('SMTP_PASS') or os.getenv('SMTP_PASSWORD'),
            sendgrid_api_key=sendgrid_api_key,
            sender=sender,
            test_recipient=os.getenv('TEST_EMAIL_RECIPIENT')
        )


@dataclass
class AppConfig:
    """애플리케이션 전체 설정"""
    temp_directory: Path
    disk_staging: bool
    log_level: str
    repo_path: Path
    max_concurrent_requests: int
    commit_timeout: float
    process_all_commits: bool
    host: str
    port: int

    @classmethod
    def from_env(cls) -> 'AppConfig':
        """환경 변수에서 설정 로드"""
        return cls(
            temp_directory=Path(os.getenv('TEMP_DIRECTORY', './temp')),
            disk_staging=_env_flag('DISK_STAGING'),
            log_level=os.getenv('LOG_LEVEL', 'INFO'),
            repo_path=Path(os.getenv('REPO_PATH', '.')),
            max_concurrent_requests=_env_number("MAX_CONCURRENT_REQUESTS", "1"),
            commit_timeout=_env_number("COMMIT_TIMEOUT", "300", float),
            process_all_commits=_env_flag('WEBHOOK_PROCESS_ALL_COMMITS'),
            host=os.getenv('HOST', '0.0.0.0'),
            port=_env_number("PORT", "3000")
        )


class Config:
    """통합 설정 관리 클래스"""

    def __init__(self, config_file: Optional[str] = None):
        """
        설정 초기화

        Args:
            config_file: 설정 파일 경로 (선택사항)
        """
        # 기본 환경 변수에서 로드
        self.completion = CompletionConfig.from_env()
        self.email = EmailConfig.from_env()
        self.app = AppConfig.from_env()

        # 설정 파일이 있으면 오버라이드
        if config_file:
            self.load_from_file(config_file)

        # 디스크 스테이징을 쓰는 경우에만 디렉토리 생성
        if self.app.disk_staging:
            self.app.temp_directory.mkdir(parents=True, exist_ok=True)

    def load_from_file(self, config_file: str):
        """설정 파일에서 설정 로드"""
        config_path = Path(config_file)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_file}")

        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        self._update_from_dict(data)

    def _update_from_dict(self, data: Dict[str, Any]):
        """딕셔너리에서 설정 업데이트"""
        for section_name in ('completion', 'email', 'app'):
            section = getattr(self, section_name)
            for key, value in data.get(section_name, {}).items():
                if hasattr(section, key):
                    if key.endswith('_directory') or key == 'repo_path':
                        value = Path(value)
                    setattr(section, key, value)

    def validate(self) -> List[str]:
        """설정 유효성 검증"""
        errors = []

        # Completion 서비스 설정 검증
        completion = self.completion
        if completion.provider not in API_KEY_VARS:
            errors.append(f"Unsupported LLM provider: {completion.provider}")
        elif not completion.api_key:
            errors.append(f"{API_KEY_VARS[completion.provider]} is not configured")
        if completion.provider == 'azure':
            if not completion.azure_endpoint:
                errors.append("AZURE_OPENAI_ENDPOINT is not configured")
            if not completion.azure_deployment:
                errors.append("AZURE_OPENAI_DEPLOYMENT_NAME_FOR_AGENT is not configured")
        elif not completion.model:
            errors.append("LLM_MODEL is not configured")

        # 이메일 설정 검증
        email = self.email
        if email.provider == 'smtp':
            for name, value in (
                ('SMTP_HOST', email.smtp_host),
                ('SMTP_USER', email.smtp_user),
                ('SMTP_PASS', email.smtp_password),
            ):
                if not value:
                    errors.append(f"{name} is not configured")
        elif email.provider == 'sendgrid':
            if not email.sendgrid_api_key:
                errors.append("SENDGRID_API_KEY is not configured")
            if not email.sender:
                errors.append("SENDGRID_VERIFIED_SENDER is not configured")
        else:
            errors.append(f"Unsupported email provider: {email.provider}")

        if self.app.max_concurrent_requests < 1:
            errors.append("MAX_CONCURRENT_REQUESTS must be at least 1")
        if self.app.commit_timeout <= 0:
            errors.append("COMMIT_TIMEOUT must be positive")

        return errors

    def require_valid(self) -> None:
        """검증 실패 시 ConfigurationError 발생"""
        errors = self.validate()
        if errors:
            raise ConfigurationError(errors)
