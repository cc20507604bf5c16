"""
Commit Notifier CLI Interface

커밋 리뷰 및 이메일 알림 도구의 명령줄 인터페이스
"""
import asyncio
import os
import sys
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from commit_notifier.core.commit_source import resolve_commit_source
from commit_notifier.core.errors import ConfigurationError, PayloadValidationError
from commit_notifier.core.git_analyzer import GitAnalyzer, create_diff_extractor
from commit_notifier.core.notifier import SmtpNotifier, create_notifier
from commit_notifier.core.pipeline import BatchResult, OutcomeStatus, create_orchestrator
from commit_notifier.utils.config import API_KEY_VARS, Config
from commit_notifier.utils.logger import setup_logger

# Rich console for pretty output
console = Console()


def _abort_on_config_errors(error: ConfigurationError) -> None:
    console.print("[red]✗[/red] 설정 오류:")
    for message in error.errors:
        console.print(f"   - {message}")
    sys.exit(1)


def _mask(value: Optional[str]) -> str:
    if not value:
        return "미설정"
    return value[:4] + "..." + value[-4:] if len(value) > 12 else "***"


def _print_batch_summary(batch: BatchResult) -> None:
    table = Table(title="커밋 처리 결과")
    table.add_column("커밋", style="cyan")
    table.add_column("작성자", style="magenta")
    table.add_column("파일", justify="right")
    table.add_column("첨부", justify="right")
    table.add_column("상태")

    status_styles = {
        OutcomeStatus.COMPLETED: "[green]✓ 완료[/green]",
        OutcomeStatus.DEGRADED: "[yellow]△ 일부 실패[/yellow]",
        OutcomeStatus.FAILED: "[red]✗ 전송 실패[/red]",
    }
    for outcome in batch.outcomes:
        attachments = len(outcome.report.attachments) if outcome.report else 0
        table.add_row(
            outcome.commit.short_id,
            outcome.commit.author_email,
            str(len(outcome.files)),
            str(attachments),
            status_styles[outcome.status]
        )

    console.print(table)
    summary = batch.to_summary_dict()
    console.print(
        f"\n전송 {summary['delivered']}/{summary['total_commits']}건, "
        f"소요 시간 {summary['execution_time_seconds'] or 0:.2f}초"
    )


@click.group()
@click.option(
    '--log-level',
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
    default=None,
    help='Set the logging level (default: LOG_LEVEL or INFO)'
)
@click.option(
    '--config',
    type=click.Path(exists=True),
    help='Path to configuration file'
)
@click.pass_context
def cli(ctx, log_level, config):
    """Commit Notifier - 커밋 AI 리뷰 및 이메일 알림 도구"""
    ctx.ensure_object(dict)
    try:
        settings = Config(config_file=config)
    except ConfigurationError as e:
        _abort_on_config_errors(e)
    setup_logger(log_level or settings.app.log_level)
    ctx.obj['config'] = settings


@cli.command()
@click.option(
    '--repo',
    type=click.Path(exists=True, file_okay=False),
    default=None,
    help='Git repository path (default: REPO_PATH)'
)
@click.option(
    '--event-path',
    envvar='GITHUB_EVENT_PATH',
    type=click.Path(dir_okay=False),
    default=None,
    help='Push event JSON file (default: GITHUB_EVENT_PATH)'
)
@click.pass_context
def run(ctx, repo, event_path):
    """이벤트 파일 또는 로컬 HEAD의 커밋을 분석하고 작성자에게 메일 전송"""
    config: Config = ctx.obj['config']
    try:
        config.require_valid()
    except ConfigurationError as e:
        _abort_on_config_errors(e)

    repo_path = repo or config.app.repo_path
    if event_path and not os.path.exists(event_path):
        console.print(f"[yellow]![/yellow] 이벤트 파일을 찾을 수 없습니다: {event_path}")
        event_path = None

    git_analyzer = None
    if event_path:
        # 이벤트 파일의 커밋도 repo_path 저장소에서 diff 조회
        diff_extractor = create_diff_extractor(repo_path)
    else:
        try:
            git_analyzer = GitAnalyzer(str(repo_path))
        except ValueError as e:
            console.print(f"[red]✗[/red] {e}")
            sys.exit(1)
        diff_extractor = git_analyzer

    try:
        commits = resolve_commit_source(event_path, git_analyzer).collect()
    except (OSError, ValueError, PayloadValidationError) as e:
        console.print(f"[red]✗[/red] 커밋 정보를 읽을 수 없습니다: {e}")
        sys.exit(1)
    if not commits:
        console.print("[yellow]![/yellow] 처리할 커밋이 없습니다.")
        return

    orchestrator = create_orchestrator(config, diff_extractor=diff_extractor)
    try:
        batch = asyncio.run(orchestrator.run_batch(commits))
    finally:
        orchestrator.close()

    _print_batch_summary(batch)
    if not batch.all_delivered:
        sys.exit(1)


@cli.command()
@click.option('--host', default=None, help='Bind address (default: HOST or 0.0.0.0)')
@click.option('--port', type=int, default=None, help='Port (default: PORT or 3000)')
@click.pass_context
def serve(ctx, host, port):
    """웹훅 서버 실행"""
    import uvicorn

    from commit_notifier.api.app import create_app

    config: Config = ctx.obj['config']
    try:
        app = create_app(config)
    except ConfigurationError as e:
        _abort_on_config_errors(e)

    uvicorn.run(
        app,
        host=host or config.app.host,
        port=port or config.app.port,
        log_level=config.app.log_level.lower()
    )


@cli.command()
@click.option('--verify-smtp', is_flag=True, help='Connect to the SMTP server and log in')
@click.pass_context
def check_config(ctx, verify_smtp):
    """환경 설정 확인"""
    config: Config = ctx.obj['config']
    console.print("\n[bold]환경 설정 확인[/bold]")

    completion = config.completion
    email = config.email

    table = Table(title="설정 상태")
    table.add_column("항목", style="cyan")
    table.add_column("값", style="yellow")

    table.add_row("LLM provider", completion.provider)
    table.add_row("LLM model", completion.model or completion.azure_deployment or "미설정")
    table.add_row(API_KEY_VARS.get(completion.provider, "LLM_API_KEY"), _mask(completion.api_key))
    table.add_row("Email provider", email.provider)
    if email.provider == 'sendgrid':
        table.add_row("SENDGRID_API_KEY", _mask(email.sendgrid_api_key))
    else:
        table.add_row("SMTP server", f"{email.smtp_host or '미설정'}:{email.smtp_port}")
        table.add_row("SMTP_USER", email.smtp_user or "미설정")
        table.add_row("SMTP_PASS", _mask(email.smtp_password))
    table.add_row("Sender", email.sender or "미설정")
    table.add_row("Staging", str(config.app.temp_directory) if config.app.disk_staging else "in-memory")
    table.add_row("Max concurrent requests", str(config.app.max_concurrent_requests))
    table.add_row("Commit timeout", f"{config.app.commit_timeout:g}s")
    table.add_row("Webhook commits", "all" if config.app.process_all_commits else "first only")

    console.print(table)

    errors = config.validate()
    if errors:
        console.print("\n[red]✗[/red] 일부 설정이 누락되었습니다:")
        for message in errors:
            console.print(f"   - {message}")
        console.print("   .env 파일을 확인하거나 환경 변수를 설정해주세요.")
        sys.exit(1)

    console.print("\n[green]✓[/green] 모든 필수 설정이 올바르게 구성되었습니다.")

    if verify_smtp:
        notifier = create_notifier(email)
        if not isinstance(notifier, SmtpNotifier):
            console.print("[yellow]![/yellow] SMTP 전송을 사용하지 않으므로 연결 확인을 건너뜁니다.")
        elif notifier.verify():
            console.print("[green]✓[/green] SMTP 연결 성공")
        else:
            console.print("[red]✗[/red] SMTP 연결 실패")
            sys.exit(1)


def main():
    """메인 엔트리포인트"""
    cli()


if __name__ == "__main__":
    main()
