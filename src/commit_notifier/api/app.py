"""FastAPI server for commit review notifications"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from commit_notifier import __version__
from commit_notifier.api.routes.health import router as health_router
from commit_notifier.api.routes.webhook import router as webhook_router
from commit_notifier.core.pipeline import PipelineOrchestrator, create_orchestrator
from commit_notifier.utils.config import Config
from commit_notifier.utils.logger import get_logger

logger = get_logger(__name__)


def create_app(config: Optional[Config] = None,
               orchestrator: Optional[PipelineOrchestrator] = None) -> FastAPI:
    """
    FastAPI 애플리케이션 생성

    Args:
        config: 통합 설정 (없으면 환경 변수에서 로드)
        orchestrator: 파이프라인 (없으면 설정으로 구성, 이때 설정 검증 수행)

    Returns:
        FastAPI 인스턴스

    Raises:
        ConfigurationError: orchestrator 없이 필수 설정이 빠진 경우
    """
    config = config or Config()
    if orchestrator is None:
        config.require_valid()
        orchestrator = create_orchestrator(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Commit Notifier server ready (email provider: {config.email.provider})")
        yield
        orchestrator.close()
        logger.info("Commit Notifier server stopped")

    app = FastAPI(title="Commit Notifier", version=__version__, lifespan=lifespan)
    app.state.config = config
    app.state.orchestrator = orchestrator

    app.include_router(health_router)
    app.include_router(webhook_router)

    return app
