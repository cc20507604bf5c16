"""
공용 테스트 fixture
"""
import asyncio
from typing import Dict, List, Optional

import pytest

from commit_notifier.core.errors import DeliveryError
from commit_notifier.core.llm_agent import AnalysisEngine
from commit_notifier.core.notifier import Notifier
from commit_notifier.core.vcs_models import EmailReport

CONFIG_ENV_VARS = [
    "LLM_PROVIDER", "LLM_API_KEY", "LLM_MODEL", "LLM_BASE_URL",
    "LLM_TEMPERATURE", "LLM_MAX_TOKENS", "LLM_REQUEST_TIMEOUT",
    "GROQ_API_KEY", "OPENAI_API_KEY",
    "AZURE_OPENAI_API_KEY", "AZURE_OPENAI_ENDPOINT",
    "AZURE_OPENAI_DEPLOYMENT_NAME_FOR_AGENT", "AZURE_OPENAI_API_VERSION",
    "EMAIL_PROVIDER", "SMTP_HOST", "SMTP_PORT", "SMTP_USER", "SMTP_PASS", "SMTP_PASSWORD",
    "SMTP_FROM_EMAIL", "SENDGRID_API_KEY", "SENDGRID_VERIFIED_SENDER", "TEST_EMAIL_RECIPIENT",
    "TEMP_DIRECTORY", "DISK_STAGING", "LOG_LEVEL", "REPO_PATH", "MAX_CONCURRENT_REQUESTS",
    "COMMIT_TIMEOUT", "WEBHOOK_PROCESS_ALL_COMMITS", "HOST", "PORT",
    "LANGFUSE_PUBLIC_KEY", "LANGFUSE_SECRET_KEY", "LANGFUSE_HOST",
    "GITHUB_EVENT_PATH",
]

SAMPLE_RESPONSE = (
    "Language: Python\n"
    "```python\n"
    "def add(a, b):\n"
    "    return a + b\n"
    "```\n"
    "Renamed the helper and fixed the return value."
)


class FakeEngine(AnalysisEngine):
    """파일 경로별로 응답과 지연 시간을 지정할 수 있는 분석 엔진"""

    def __init__(self, responses: Optional[Dict[str, Optional[str]]] = None,
                 delays: Optional[Dict[str, float]] = None,
                 default: Optional[str] = SAMPLE_RESPONSE):
        self.responses = responses or {}
        self.delays = delays or {}
        self.default = default
        self.calls: List[tuple] = []
        self.closed = False

    async def analyze(self, commit_message, diff, file_path=None):
        self.calls.append((commit_message, diff, file_path))
        delay = self.delays.get(file_path, 0)
        if delay:
            await asyncio.sleep(delay)
        return self.responses.get(file_path, self.default)

    def close(self):
        self.closed = True


class RecordingNotifier(Notifier):
    """전송된 리포트를 기록하는 Notifier (fail=True면 DeliveryError)"""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.reports: List[EmailReport] = []

    async def deliver(self, report: EmailReport) -> None:
        self.reports.append(report)
        if self.fail:
            raise DeliveryError("SMTP server unavailable")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """설정 관련 환경 변수를 비우고 스테이징 디렉터리를 임시 경로로 지정"""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("TEMP_DIRECTORY", str(tmp_path / "staging"))


@pytest.fixture
def valid_env(monkeypatch):
    """검증을 통과하는 최소 설정"""
    monkeypatch.setenv("GROQ_API_KEY", "gsk_test_key_1234567890")
    monkeypatch.setenv("SMTP_HOST", "smtp.example.com")
    monkeypatch.setenv("SMTP_USER", "bot@example.com")
    monkeypatch.setenv("SMTP_PASS", "secret")
    monkeypatch.setenv("TEST_EMAIL_RECIPIENT", "qa@example.com")


@pytest.fixture
def push_payload():
    return {
        "commits": [
            {
                "id": "abc1234def5678",
                "message": "Add feature",
                "author": {"email": "dev@example.com"},
                "added": ["src/a.py"],
                "modified": ["web/b.js", "docs/c.txt"],
            },
            {
                "id": "fff0000aaa1111",
                "message": "Second commit",
                "author": {"email": "other@example.com"},
                "added": [],
                "modified": ["README.md"],
            },
        ]
    }
