"""
Webhook endpoints - push 이벤트 처리 및 테스트 메일 전송

응답은 모두 plain text이며, 처리 결과를 상태 코드로 알립니다.
"""
from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from commit_notifier.core.commit_source import WebhookCommitSource
from commit_notifier.core.errors import ArtifactIOError, DeliveryError, PayloadValidationError
from commit_notifier.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["webhook"])


@router.post("/webhook", response_class=PlainTextResponse)
async def handle_webhook(request: Request) -> PlainTextResponse:
    """
    push 이벤트 payload를 받아 커밋 리포트를 전송

    - 잘못된 payload: 400
    - 전송 실패: 500
    - 성공: 200
    """
    try:
        payload = await request.json()
    except ValueError:
        logger.warning("Webhook rejected: body is not valid JSON")
        return PlainTextResponse("Invalid JSON payload.", status_code=400)

    try:
        commits = WebhookCommitSource(payload).collect()
    except PayloadValidationError as e:
        logger.warning(f"Webhook rejected: {e}")
        return PlainTextResponse(str(e), status_code=400)

    if not request.app.state.config.app.process_all_commits:
        commits = commits[:1]

    orchestrator = request.app.state.orchestrator
    try:
        batch = await orchestrator.run_batch(commits)
    except Exception:
        logger.exception("Unexpected error while processing webhook")
        return PlainTextResponse("Error processing the webhook.", status_code=500)

    if not batch.all_delivered:
        return PlainTextResponse("Error processing the webhook.", status_code=500)

    if len(commits) == 1:
        return PlainTextResponse("Webhook processed and email sent for the latest commit.")
    return PlainTextResponse(f"Webhook processed and emails sent for {len(commits)} commits.")


@router.post("/test-email", response_class=PlainTextResponse)
async def send_test_email(request: Request) -> PlainTextResponse:
    """고정된 테스트 리포트를 TEST_EMAIL_RECIPIENT로 전송"""
    recipient = request.app.state.config.email.test_recipient
    if not recipient:
        logger.error("TEST_EMAIL_RECIPIENT is not configured")
        return PlainTextResponse("Error sending test email.", status_code=500)

    try:
        await request.app.state.orchestrator.send_test_email(recipient)
    except (ArtifactIOError, DeliveryError) as e:
        logger.error(f"Error sending test email: {e}")
        return PlainTextResponse("Error sending test email.", status_code=500)

    return PlainTextResponse("Test email sent successfully!")
