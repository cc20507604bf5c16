"""Health check endpoint.

Reports service status and whether completion/email credentials are present
(no outbound calls are made).
"""
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Request

from commit_notifier import __version__

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(request: Request) -> Dict[str, Any]:
    config = request.app.state.config
    email = config.email
    if email.provider == 'sendgrid':
        email_ready = bool(email.sendgrid_api_key and email.sender)
    else:
        email_ready = bool(email.smtp_host and email.smtp_user and email.smtp_password)

    return {
        "status": "healthy",
        "service": "Commit Notifier",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "completion": {
            "provider": config.completion.provider,
            "ready": bool(config.completion.api_key),
        },
        "email": {
            "provider": email.provider,
            "ready": email_ready,
        },
    }
