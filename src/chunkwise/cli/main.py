"""chunkwise command line entry point.

Commands:
    summarize  Summarize a file (or stdin) and print the result
    chunk      Show how a file would be split into chunks
    serve      Run the MCP server over stdio
"""

import asyncio
import logging
from typing import Optional

import click
from rich.console import Console
from rich.markdown import Markdown
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn

from chunkwise.config import _PACKAGE_VERSION, SummarizerConfig, set_config
from chunkwise.core.summarization import (
    EventType,
    SummarizationOrchestrator,
    SummarizeEvent,
    SummaryMode,
    SummaryResult,
)
from chunkwise.cli.output import emit_error, emit_exception, emit_response, emit_success
from chunkwise.tools.summarize import chunk_action

logger = logging.getLogger(__name__)

_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _get_config(ctx: click.Context) -> SummarizerConfig:
    return ctx.obj["config"]


def _read_input(path: str) -> str:
    try:
        with click.open_file(path, "r", encoding="utf-8") as handle:
            return handle.read()
    except UnicodeDecodeError as e:
        emit_error(
            f"Input is not valid UTF-8 text: {e.reason} at byte {e.start}",
            code="VALIDATION_ERROR",
            error_type="validation",
            remediation="Pass a UTF-8 encoded text file",
            details={"path": path},
        )


@click.group()
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    envvar="CHUNKWISE_CONFIG_FILE",
    help="TOML configuration file.",
)
@click.option(
    "--log-level",
    type=click.Choice(_LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Override the configured log level.",
)
@click.version_option(_PACKAGE_VERSION, prog_name="chunkwise")
@click.pass_context
def cli(ctx: click.Context, config_file: Optional[str], log_level: Optional[str]) -> None:
    """Summarize large code and documentation with an LLM."""
    try:
        config = SummarizerConfig.from_env(config_file)
        if log_level:
            config.log_level = log_level.upper()
    except ValueError as e:
        emit_error(
            f"Invalid configuration: {e}",
            code="VALIDATION_ERROR",
            error_type="validation",
            remediation="Check the config file and CHUNKWISE_* environment variables",
        )
    config.setup_logging()
    set_config(config)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


async def _summarize_with_progress(
    config: SummarizerConfig,
    text: str,
    mode: SummaryMode,
    console: Console,
) -> SummaryResult:
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.percentage:>3.0f}%"),
        console=console,
        transient=True,
    ) as progress:
        task_id = progress.add_task("Summarizing", total=100)

        def on_event(event: SummarizeEvent) -> None:
            if event.event == EventType.PROGRESS and event.percent is not None:
                description = "Finalizing" if event.stage == "finalizing" else "Summarizing chunks"
                progress.update(task_id, completed=event.percent, description=description)
            elif event.event == EventType.WARNING:
                progress.console.print(f"[yellow]warning:[/yellow] {event.message}")
            elif event.event == EventType.INFO:
                progress.console.print(f"[dim]{event.message}[/dim]")

        async with SummarizationOrchestrator.from_config(config) as orchestrator:
            return await orchestrator.summarize(text, mode, on_event=on_event)


@cli.command("summarize")
@click.argument("path", type=click.Path(allow_dash=True, dir_okay=False))
@click.option(
    "--mode",
    type=click.Choice([m.value for m in SummaryMode], case_sensitive=False),
    default=SummaryMode.AUTO.value,
    show_default=True,
    help="Prompt emphasis; auto detects code vs documentation.",
)
@click.option("--json", "as_json", is_flag=True, help="Print the response envelope as JSON.")
@click.pass_context
def summarize_cmd(ctx: click.Context, path: str, mode: str, as_json: bool) -> None:
    """Summarize the text in PATH (use - for stdin)."""
    config = _get_config(ctx)
    text = _read_input(path)
    stderr = Console(stderr=True, quiet=as_json)

    try:
        result = asyncio.run(_summarize_with_progress(config, text, SummaryMode(mode.lower()), stderr))
    except Exception as e:
        emit_exception(e)

    if as_json:
        data = result.to_dict()
        warnings = data.pop("warnings")
        emit_success(data, warnings=warnings)
        return

    Console().print(Markdown(result.summary))
    stderr.print(
        f"[dim]{result.aggregation.value} via {result.model}, "
        f"{result.chunk_count or 1} chunk(s), {result.elapsed_ms}ms[/dim]"
    )


@cli.command("chunk")
@click.argument("path", type=click.Path(allow_dash=True, dir_okay=False))
@click.option("--max-size", type=int, default=None, help="Maximum characters per chunk.")
@click.option("--min-size", type=int, default=None, help="Merge chunks smaller than this.")
@click.pass_context
def chunk_cmd(ctx: click.Context, path: str, max_size: Optional[int], min_size: Optional[int]) -> None:
    """Show how the text in PATH would be chunked."""
    config = _get_config(ctx)
    emit_response(
        chunk_action(
            _read_input(path),
            max_size if max_size is not None else config.max_chunk_size,
            min_size if min_size is not None else config.min_chunk_size,
        )
    )


@cli.command("serve")
@click.pass_context
def serve_cmd(ctx: click.Context) -> None:
    """Run the MCP server over stdio."""
    from chunkwise.server import create_server

    config = _get_config(ctx)
    logger.info(f"Starting {config.server_name} on stdio")
    create_server(config).run()


if __name__ == "__main__":
    cli()
