"""
Notifier Module - 리뷰 결과 이메일 전송

SMTP 또는 SendGrid API로 EmailReport를 전송합니다.
전송 실패는 DeliveryError로 알리고, 호출자가 커밋 단위로 처리합니다.
"""
import smtplib
import ssl
from abc import ABC, abstractmethod
from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Dict, Optional

import httpx
from starlette.concurrency import run_in_threadpool

from commit_notifier.core.errors import ConfigurationError, DeliveryError
from commit_notifier.core.vcs_models import EmailReport
from commit_notifier.utils.config import EmailConfig
from commit_notifier.utils.logger import get_logger

logger = get_logger(__name__)

SENDGRID_API_URL = "https://api.sendgrid.com/v3/mail/send"


class Notifier(ABC):
    """이메일 전송 인터페이스"""

    @abstractmethod
    async def deliver(self, report: EmailReport) -> None:
        """
        리포트 한 건 전송

        Raises:
            DeliveryError: 전송 실패
        """
        pass


def build_mime_message(report: EmailReport, sender: str) -> MIMEMultipart:
    """EmailReport를 text/html 본문과 첨부파일을 가진 MIME 메시지로 변환"""
    msg = MIMEMultipart("mixed")
    msg["From"] = sender
    msg["To"] = report.to
    msg["Subject"] = report.subject

    body = MIMEMultipart("alternative")
    body.attach(MIMEText(report.body_text, "plain", "utf-8"))
    body.attach(MIMEText(report.body_html, "html", "utf-8"))
    msg.attach(body)

    for attachment in report.attachments:
        maintype, _, subtype = attachment.media_type.partition("/")
        part = MIMEBase(maintype or "application", subtype or "octet-stream")
        part.set_payload(attachment.content)
        encoders.encode_base64(part)
        part.add_header("Content-Disposition", "attachment", filename=attachment.filename)
        msg.attach(part)

    return msg


class SmtpNotifier(Notifier):
    """SMTP 서버를 통한 전송"""

    def __init__(self, host: str, port: int, user: str, password: str,
                 sender: Optional[str] = None, timeout: float = 30.0):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender or user
        self.timeout = timeout

    def _connect(self) -> smtplib.SMTP:
        context = ssl.create_default_context()
        if self.port == 465:
            return smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout, context=context)
        server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        server.ehlo()
        server.starttls(context=context)
        server.ehlo()
        return server

    def send_sync(self, report: EmailReport) -> None:
        """SMTP 전송 (동기 - blocking)"""
        msg = build_mime_message(report, self.sender)
        try:
            with self._connect() as server:
                server.login(self.user, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryError(f"SMTP delivery to {report.to} failed: {e}") from e
        logger.info(f"SMTP: email sent to {report.to} ({report.subject})")

    async def deliver(self, report: EmailReport) -> None:
        await run_in_threadpool(self.send_sync, report)

    def verify(self) -> bool:
        """SMTP 연결 및 로그인 확인"""
        try:
            with self._connect() as server:
                server.login(self.user, self.password)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP connection error: {e}")
            return False
        logger.info("SMTP connection successful")
        return True


class SendGridNotifier(Notifier):
    """SendGrid v3 API를 통한 전송"""

    def __init__(self, api_key: str, sender: str, timeout: float = 30.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key
        self.sender = sender
        self.timeout = timeout
        self._transport = transport

    def build_payload(self, report: EmailReport) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "personalizations": [{"to": [{"email": report.to}]}],
            "from": {"email": self.sender},
            "subject": report.subject,
            "content": [
                {"type": "text/plain", "value": report.body_text},
                {"type": "text/html", "value": report.body_html},
            ],
        }
        if report.attachments:
            payload["attachments"] = [
                {
                    "content": attachment.content_base64,
                    "filename": attachment.filename,
                    "type": attachment.media_type,
                    "disposition": "attachment",
                }
                for attachment in report.attachments
            ]
        return payload

    async def deliver(self, report: EmailReport) -> None:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(SENDGRID_API_URL, json=self.build_payload(report), headers=headers)
        except httpx.HTTPError as e:
            raise DeliveryError(f"SendGrid request for {report.to} failed: {e}") from e

        if response.status_code not in (200, 202):
            raise DeliveryError(f"SendGrid API error: {response.status_code} - {response.text}")
        logger.info(f"SendGrid: email sent to {report.to} ({report.subject})")


def create_notifier(config: EmailConfig) -> Notifier:
    """설정된 provider에 맞는 Notifier 생성"""
    if config.provider == 'sendgrid':
        return SendGridNotifier(api_key=config.sendgrid_api_key, sender=config.sender)
    if config.provider == 'smtp':
        return SmtpNotifier(
            host=config.smtp_host,
            port=config.smtp_port,
            user=config.smtp_user,
            password=config.smtp_password,
            sender=config.sender
        )
    raise ConfigurationError(f"Unsupported email provider: {config.provider}")
