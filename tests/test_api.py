"""
Webhook API 테스트 (FastAPI TestClient)
"""
import pytest
from fastapi.testclient import TestClient

from commit_notifier.api.app import create_app
from commit_notifier.core.errors import ConfigurationError
from commit_notifier.core.pipeline import PipelineOrchestrator
from commit_notifier.utils.config import Config
from conftest import FakeEngine, RecordingNotifier


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def make_client(valid_env, engine, notifier):
    def factory(**env):
        config = Config()
        for key, value in env.items():
            setattr(config.app, key, value)
        orchestrator = PipelineOrchestrator(engine, notifier)
        return TestClient(create_app(config, orchestrator))
    return factory


class TestWebhook:
    """POST /webhook"""

    def test_first_commit_only_by_default(self, make_client, notifier, push_payload):
        with make_client() as client:
            response = client.post("/webhook", json=push_payload)

        assert response.status_code == 200
        assert response.text == "Webhook processed and email sent for the latest commit."
        assert len(notifier.reports) == 1
        report = notifier.reports[0]
        assert report.to == "dev@example.com"
        first = push_payload["commits"][0]
        assert len(report.attachments) == len(first["added"]) + len(first["modified"])

    def test_all_commits_when_enabled(self, make_client, notifier, push_payload):
        with make_client(process_all_commits=True) as client:
            response = client.post("/webhook", json=push_payload)

        assert response.status_code == 200
        assert [r.to for r in notifier.reports] == ["dev@example.com", "other@example.com"]
        assert [len(r.attachments) for r in notifier.reports] == [3, 1]

    @pytest.mark.parametrize("payload", [{}, {"commits": []}])
    def test_missing_or_empty_commits(self, make_client, notifier, payload):
        """commits가 없으면 400, 메일 전송 없음"""
        with make_client() as client:
            response = client.post("/webhook", json=payload)

        assert response.status_code == 400
        assert "No commits found" in response.text
        assert response.headers["content-type"].startswith("text/plain")
        assert notifier.reports == []

    def test_invalid_json(self, make_client, notifier):
        with make_client() as client:
            response = client.post("/webhook", content=b"not json", headers={"Content-Type": "application/json"})

        assert response.status_code == 400
        assert notifier.reports == []

    def test_malformed_commit(self, make_client, notifier):
        with make_client() as client:
            response = client.post("/webhook", json={"commits": [{"id": "abc"}]})

        assert response.status_code == 400
        assert notifier.reports == []

    def test_delivery_failure_returns_500(self, make_client, notifier, push_payload):
        notifier.fail = True

        with make_client() as client:
            response = client.post("/webhook", json=push_payload)

        assert response.status_code == 500
        assert response.text == "Error processing the webhook."

    def test_analysis_failure_still_returns_200(self, make_client, engine, notifier, push_payload):
        engine.default = None

        with make_client() as client:
            response = client.post("/webhook", json=push_payload)

        assert response.status_code == 200
        assert notifier.reports[0].body_text.count("Unable to analyze commit") == 3
        assert len(notifier.reports[0].attachments) == 3


class TestTestEmail:
    """POST /test-email"""

    def test_sends_to_configured_recipient(self, make_client, notifier):
        with make_client() as client:
            response = client.post("/test-email")

        assert response.status_code == 200
        assert response.text == "Test email sent successfully!"
        assert notifier.reports[0].to == "qa@example.com"

    def test_delivery_failure(self, make_client, notifier):
        notifier.fail = True

        with make_client() as client:
            response = client.post("/test-email")

        assert response.status_code == 500
        assert response.text == "Error sending test email."

    def test_missing_recipient(self, make_client, notifier, monkeypatch):
        monkeypatch.delenv("TEST_EMAIL_RECIPIENT")

        with make_client() as client:
            response = client.post("/test-email")

        assert response.status_code == 500
        assert notifier.reports == []


class TestHealth:
    def test_health(self, make_client):
        with make_client() as client:
            response = client.get("/health")

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "healthy"
        assert body["completion"] == {"provider": "groq", "ready": True}
        assert body["email"] == {"provider": "smtp", "ready": True}


class TestCreateApp:
    def test_lifespan_closes_engine(self, make_client, engine):
        with make_client():
            assert engine.closed is False

        assert engine.closed is True

    def test_invalid_config_is_rejected(self):
        """orchestrator 없이 필수 설정이 빠지면 생성 실패"""
        with pytest.raises(ConfigurationError) as exc_info:
            create_app(Config())

        assert "GROQ_API_KEY is not configured" in exc_info.value.errors
