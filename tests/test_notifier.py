"""
Notifier 테스트 - SMTP / SendGrid
"""
import base64
import json
import smtplib
from unittest.mock import MagicMock, patch

import httpx
import pytest

from commit_notifier.core.errors import ConfigurationError, DeliveryError
from commit_notifier.core.notifier import (
    SENDGRID_API_URL,
    SendGridNotifier,
    SmtpNotifier,
    build_mime_message,
    create_notifier,
)
from commit_notifier.core.vcs_models import Attachment, EmailReport
from commit_notifier.utils.config import EmailConfig


@pytest.fixture
def report():
    return EmailReport(
        to="dev@example.com",
        subject="Code Analysis and Commit Report - abc1234",
        body_text="Analysis for a.py:\nok\n\nCommit Hash: abc1234def\n",
        body_html="Analysis for a.py:<br>ok<br><br>Commit Hash: abc1234def<br>",
        attachments=[Attachment(filename="corrected_a.py_abc1234.py", content=b"x = 1\n")]
    )


class TestMimeMessage:
    """MIME 메시지 구성"""

    def test_structure(self, report):
        msg = build_mime_message(report, "bot@example.com")

        assert msg["From"] == "bot@example.com"
        assert msg["To"] == "dev@example.com"
        assert msg["Subject"] == "Code Analysis and Commit Report - abc1234"

        body, attachment = msg.get_payload()
        assert [p.get_content_type() for p in body.get_payload()] == ["text/plain", "text/html"]
        assert attachment.get_content_type() == "text/plain"
        assert attachment.get_filename() == "corrected_a.py_abc1234.py"
        assert attachment.get_payload(decode=True) == b"x = 1\n"


class TestSmtpNotifier:
    """SmtpNotifier 테스트"""

    @pytest.mark.asyncio
    async def test_deliver_with_starttls(self, report):
        notifier = SmtpNotifier("smtp.example.com", 587, "bot@example.com", "secret")

        with patch("commit_notifier.core.notifier.smtplib.SMTP") as smtp_cls:
            server = smtp_cls.return_value.__enter__.return_value = smtp_cls.return_value
            await notifier.deliver(report)

        smtp_cls.assert_called_once_with("smtp.example.com", 587, timeout=30.0)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("bot@example.com", "secret")
        sent = server.send_message.call_args.args[0]
        assert sent["To"] == "dev@example.com"

    @pytest.mark.asyncio
    async def test_deliver_with_ssl_port(self, report):
        notifier = SmtpNotifier("smtp.example.com", 465, "bot@example.com", "secret")

        with patch("commit_notifier.core.notifier.smtplib.SMTP_SSL") as smtp_ssl:
            await notifier.deliver(report)

        assert smtp_ssl.call_args.args == ("smtp.example.com", 465)

    @pytest.mark.asyncio
    async def test_failure_raises_delivery_error(self, report):
        notifier = SmtpNotifier("smtp.example.com", 587, "bot@example.com", "wrong")

        with patch("commit_notifier.core.notifier.smtplib.SMTP") as smtp_cls:
            smtp_cls.return_value.__enter__.return_value = smtp_cls.return_value
            smtp_cls.return_value.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")
            with pytest.raises(DeliveryError, match="dev@example.com"):
                await notifier.deliver(report)

    def test_verify(self):
        notifier = SmtpNotifier("smtp.example.com", 587, "bot@example.com", "secret")

        with patch("commit_notifier.core.notifier.smtplib.SMTP") as smtp_cls:
            assert notifier.verify() is True
            smtp_cls.side_effect = ConnectionRefusedError("refused")
            assert notifier.verify() is False


class TestSendGridNotifier:
    """SendGridNotifier 테스트 (httpx.MockTransport)"""

    @pytest.mark.asyncio
    async def test_payload_sent_to_api(self, report):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["auth"] = request.headers["Authorization"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(202)

        notifier = SendGridNotifier("SG.key", "verified@example.com", transport=httpx.MockTransport(handler))
        await notifier.deliver(report)

        body = captured["body"]
        assert captured["url"] == SENDGRID_API_URL
        assert captured["auth"] == "Bearer SG.key"
        assert body["from"] == {"email": "verified@example.com"}
        assert body["personalizations"][0]["to"] == [{"email": "dev@example.com"}]
        attachment = body["attachments"][0]
        assert attachment["filename"] == "corrected_a.py_abc1234.py"
        assert attachment["type"] == "text/plain"
        assert base64.b64decode(attachment["content"]) == b"x = 1\n"

    def test_no_attachments_key_when_empty(self, report):
        report.attachments = []
        payload = SendGridNotifier("SG.key", "v@example.com").build_payload(report)

        assert "attachments" not in payload

    @pytest.mark.asyncio
    async def test_api_error(self, report):
        transport = httpx.MockTransport(lambda request: httpx.Response(401, text="unauthorized"))
        notifier = SendGridNotifier("SG.bad", "v@example.com", transport=transport)

        with pytest.raises(DeliveryError, match="401"):
            await notifier.deliver(report)

    @pytest.mark.asyncio
    async def test_network_error(self, report):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        notifier = SendGridNotifier("SG.key", "v@example.com", transport=httpx.MockTransport(handler))

        with pytest.raises(DeliveryError):
            await notifier.deliver(report)


class TestCreateNotifier:
    def test_smtp(self):
        notifier = create_notifier(EmailConfig(provider="smtp", smtp_host="h", smtp_user="u", smtp_password="p"))

        assert isinstance(notifier, SmtpNotifier)
        assert notifier.sender == "u"

    def test_sendgrid(self):
        notifier = create_notifier(EmailConfig(provider="sendgrid", sendgrid_api_key="k", sender="s@example.com"))

        assert isinstance(notifier, SendGridNotifier)

    def test_unknown(self):
        with pytest.raises(ConfigurationError):
            create_notifier(EmailConfig(provider="carrier-pigeon"))
