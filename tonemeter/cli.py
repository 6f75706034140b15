"""ToneMeter CLI -- run tone moderation from the terminal."""

import click
from rich.console import Console
from rich.table import Table

from tonemeter import __version__
from tonemeter.config import ConfigError, load_settings
from tonemeter.logging import configure_logging

console = Console()


def _build_service(settings, heuristic_only: bool = False):
    from tonemeter.llm.client import LLMClient
    from tonemeter.moderation.gateway import ClassifierGateway
    from tonemeter.moderation.heuristics import HeuristicAnalyzer
    from tonemeter.moderation.log_store import ModerationLogStore
    from tonemeter.moderation.service import ModerationService

    analyzer = HeuristicAnalyzer(extra_terms=settings.aggressive_terms)
    backend = None
    if not heuristic_only:
        backend = LLMClient(
            model=settings.classifier_model,
            api_key=settings.anthropic_api_key or None,
            timeout=settings.classifier_timeout,
        )
    return ModerationService(
        log_store=ModerationLogStore(settings.moderation_dir),
        gateway=ClassifierGateway(backend, timeout=settings.classifier_timeout),
        analyzer=analyzer,
        daily_quota=settings.daily_quota,
    )


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", default=None, help="YAML settings file")
@click.pass_context
def main(ctx: click.Context, config_path: str | None):
    """ToneMeter -- tone moderation for co-parenting messages."""
    try:
        settings = load_settings(config_path)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    configure_logging(settings.log_level)
    ctx.obj = settings


# ── Analyze ──────────────────────────────────────────────────────────


@main.command()
@click.argument("text")
@click.option("--author", default="cli", help="Author id charged for the analysis")
@click.option("--heuristic-only", is_flag=True, help="Skip the external classifier")
@click.option("--no-log", is_flag=True, help="Do not record the analysis or spend quota")
@click.pass_obj
def analyze(settings, text: str, author: str, heuristic_only: bool, no_log: bool):
    """Analyze the tone of TEXT and print the verdict."""
    from tonemeter.moderation.models import QuotaExceeded

    service = _build_service(settings, heuristic_only=heuristic_only)
    try:
        verdict = service.evaluate(text, author, no_log, enforce_quota=not no_log)
    except QuotaExceeded as exc:
        raise click.ClickException(str(exc)) from exc

    status = "[green]OK to send[/]" if verdict.is_clean else "[red]Blocked[/]"
    table = Table(title=f"Tone analysis: {status}", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Tone score", str(verdict.tone_score))
    table.add_row("Has issues", str(verdict.has_issues))
    table.add_row("Intoxication suspected", str(verdict.is_intoxication_suspected))
    table.add_row("Issues", "\n".join(verdict.issues) or "-")
    table.add_row("Suggestion", verdict.suggestion or "-")
    console.print(table)

    if not verdict.is_clean:
        raise SystemExit(1)


# ── Quota ────────────────────────────────────────────────────────────


@main.command()
@click.argument("author")
@click.pass_obj
def quota(settings, author: str):
    """Show today's analysis usage for AUTHOR."""
    service = _build_service(settings, heuristic_only=True)
    status = service.quota_status(author)
    console.print(
        f"[bold]{author}[/]: {status.used}/{status.limit} used today, "
        f"{status.remaining} remaining"
    )


# ── Logs ─────────────────────────────────────────────────────────────


@main.command()
@click.option("--author", default=None, help="Only show entries for this author")
@click.option("--limit", default=20, show_default=True)
@click.pass_obj
def logs(settings, author: str | None, limit: int):
    """List recorded analyses, newest first."""
    from datetime import datetime, timezone

    from tonemeter.moderation.log_store import ModerationLogStore

    entries = ModerationLogStore(settings.moderation_dir).list_entries(author, limit=limit)
    if not entries:
        console.print("[yellow]No moderation log entries.[/]")
        return

    table = Table(title=f"Moderation log ({len(entries)} entries)")
    table.add_column("When (UTC)", style="dim")
    table.add_column("Author", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Flags")
    table.add_column("Source", style="dim")
    table.add_column("Message", style="dim")
    table.add_column("Text")

    for e in entries:
        flags = []
        if e.has_issues:
            flags.append("issues")
        if e.is_intoxication_suspected:
            flags.append("intoxication")
        table.add_row(
            datetime.fromtimestamp(e.created_at, timezone.utc).strftime("%Y-%m-%d %H:%M"),
            e.author_id,
            str(e.tone_score),
            ", ".join(flags) or "-",
            e.source,
            e.message_id or "-",
            e.original_content[:60],
        )

    console.print(table)


if __name__ == "__main__":
    main()
