"""
Logging Utility Module

commit_notifier 로거 계층 설정. 콘솔은 Rich, 파일은 일반 포맷을 사용합니다.
"""
import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional

from rich.console import Console
from rich.logging import RichHandler

# 로그는 stderr로 보내고 stdout은 CLI 결과 출력에 사용
console = Console(stderr=True)

LOGGER_NAME = "commit_notifier"

FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'
PLAIN_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# 요청마다 INFO 로그를 남기는 라이브러리
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "langfuse", "git.cmd")


def _level(log_level: str) -> int:
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")
    return level


def _console_handler(level: int, use_rich: bool) -> logging.Handler:
    if use_rich:
        handler: logging.Handler = RichHandler(
            console=console,
            show_time=True,
            show_path=False,
            rich_tracebacks=True,
            markup=False
        )
    else:
        handler = logging.StreamHandler(console.file)
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT, datefmt=DATE_FORMAT))
    handler.setLevel(level)
    return handler


def _file_handler(log_file: str) -> logging.Handler:
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(log_path, encoding='utf-8')
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def quiet_loggers(names: Iterable[str] = NOISY_LOGGERS, level: int = logging.WARNING) -> None:
    """외부 라이브러리 로거의 레벨을 올림"""
    for name in names:
        logging.getLogger(name).setLevel(level)


def setup_logger(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    use_rich: bool = True
) -> logging.Logger:
    """
    commit_notifier 로거 설정

    여러 번 호출해도 핸들러가 중복되지 않습니다.
    DEBUG가 아니면 외부 HTTP/Git 라이브러리 로그는 WARNING 이상만 남깁니다.

    Args:
        log_level: 로그 레벨 (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: 로그 파일 경로 (선택사항, 항상 DEBUG까지 기록)
        use_rich: Rich 핸들러 사용 여부

    Returns:
        설정된 로거 객체
    """
    level = _level(log_level)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if log_file else level)

    handlers: List[logging.Handler] = [_console_handler(level, use_rich)]
    if log_file:
        handlers.append(_file_handler(log_file))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        logger.addHandler(handler)

    quiet_loggers(level=logging.DEBUG if level <= logging.DEBUG else logging.WARNING)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    commit_notifier 하위 로거 반환

    모듈의 __name__을 그대로 넘기면 접두사가 중복되지 않습니다.
    """
    if not name or name == LOGGER_NAME:
        return logging.getLogger(LOGGER_NAME)
    if name.startswith(f"{LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


class LogContext:
    """작업 하나의 시작/완료/실패와 소요 시간을 기록하는 컨텍스트 관리자"""

    def __init__(self, operation: str, logger: Optional[logging.Logger] = None):
        self.operation = operation
        self.logger = logger or get_logger()
        self.start_time: Optional[datetime] = None

    @property
    def elapsed(self) -> float:
        if self.start_time is None:
            return 0.0
        return (datetime.now() - self.start_time).total_seconds()

    def __enter__(self):
        self.start_time = datetime.now()
        self.logger.info(f"Starting {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.logger.info(f"Completed {self.operation} in {self.elapsed:.2f}s")
        else:
            self.logger.error(f"Failed {self.operation} after {self.elapsed:.2f}s: {exc_val}")
        return False


# 모듈 임포트 시 기본 로거 설정
setup_logger()
