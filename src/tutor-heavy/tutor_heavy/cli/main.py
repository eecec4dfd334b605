"""CLI entrypoint for tutor-heavy — typer app with `solve` and `plan` commands."""

import asyncio
import base64
import json
import sys
from pathlib import Path

import structlog
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tutor_heavy.config.domain.config import TutorConfig
from tutor_heavy.config.infrastructure.observer import StructlogConfigObserver
from tutor_heavy.config.infrastructure.yaml_loader import YamlConfigLoader
from tutor_heavy.core.errors import TutorHeavyError
from tutor_heavy.provider.domain.prompts import build_prompt
from tutor_heavy.provider.infrastructure.factory import LiteLLMRunnerFactory
from tutor_heavy.provider.infrastructure.observer import StructlogProviderObserver
from tutor_heavy.session.application.solver import TutorSession
from tutor_heavy.session.domain.result import SessionResult
from tutor_heavy.session.infrastructure.observer import StructlogSessionObserver
from tutor_heavy.verification.domain.prompt import Prompt

app = typer.Typer(add_completion=False)


def _configure_structlog(log_format: str) -> None:
    """Configure structlog based on the requested format. Logs go to stderr."""
    if log_format == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    elif log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        typer.echo(f"Invalid log format: {log_format!r}. Must be 'console' or 'json'.")
        raise typer.Exit(code=1)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(0),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def _load_config(config_path: Path) -> TutorConfig:
    loader = YamlConfigLoader(observer=StructlogConfigObserver())
    return loader.load(path=config_path)


def _read_prompt(
    text: str | None, file: Path | None, ocr_file: Path | None, image: Path | None
) -> Prompt:
    """Merge the typed task and OCR text into a Prompt, attaching the image if given."""
    typed = text or ""
    if file is not None:
        typed = file.read_text(encoding="utf-8")
    ocr_text = ocr_file.read_text(encoding="utf-8") if ocr_file is not None else ""
    image_base64 = (
        base64.b64encode(image.read_bytes()).decode("ascii") if image is not None else None
    )
    return Prompt(content=build_prompt(typed, ocr_text), image_base64=image_base64)


def _print_result(console: Console, result: SessionResult) -> None:
    """Render every run, then the arbiter's decision."""
    table = Table(title="Model runs", show_lines=False)
    table.add_column("Provider")
    table.add_column("Final", overflow="fold")
    table.add_column("Units")
    table.add_column("Score", justify="right")
    table.add_column("Signals", overflow="fold")

    winner_id = result.decision.winner.id
    for run in result.runs:
        style = "bold green" if run.id == winner_id else ("red" if run.is_failure else "")
        table.add_row(
            escape(run.provider),
            escape(run.final),
            escape(run.units or ""),
            f"{run.score:.3f}",
            escape(" • ".join(run.signals)),
            style=style,
        )
    console.print(table)

    decision = result.decision
    winner = decision.winner
    heading = "Consensus" if decision.consensus else "Best by verification"
    console.print()
    console.print(f"[bold cyan]{heading}[/bold cyan]  [dim]{decision.reason}[/dim]")
    units = f"  [dim]{escape(winner.units)}[/dim]" if winner.units else ""
    console.print(f"[bold]{escape(winner.final)}[/bold]{units}")
    if winner.short_reason:
        console.print(f"[dim]{escape(winner.short_reason)}[/dim]")
    if winner.check:
        console.print(f"[dim]Check: {escape(winner.check)}[/dim]")
    console.print(f"[dim]{escape(winner.provider)} · {result.elapsed_seconds:.1f}s[/dim]")


@app.command()
def solve(
    text: str | None = typer.Argument(None, help="Task text"),
    file: Path | None = typer.Option(None, "--file", "-f", help="Read task text from a file"),
    ocr_file: Path | None = typer.Option(
        None, "--ocr-file", help="Text recognized from the task image"
    ),
    image: Path | None = typer.Option(
        None, "--image", help="Image forwarded to models that accept one"
    ),
    config_path: Path = typer.Option(
        ..., "--config", "-c", help="Path to the run plan YAML"
    ),
    include: list[str] = typer.Option(
        [], "--include", "-i", help="Optional provider to add to the plan (repeatable)"
    ),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Write the session result as JSON"
    ),
    log_format: str = typer.Option(
        "console",
        "--log-format",
        help="Log format: 'console' or 'json'",
    ),
) -> None:
    """Solve a math/science task with several models and pick the most likely answer."""
    try:
        _configure_structlog(log_format=log_format)
        config = _load_config(config_path=config_path)

        unknown = [pid for pid in include if pid not in config.optional_providers()]
        if unknown:
            typer.echo(
                f"Unknown optional provider(s): {', '.join(unknown)}."
                f" Available: {', '.join(config.optional_providers()) or 'none'}"
            )
            raise typer.Exit(code=1)

        prompt = _read_prompt(text=text, file=file, ocr_file=ocr_file, image=image)

        session = TutorSession(
            config=config,
            runner_factory=LiteLLMRunnerFactory(
                providers=config.providers,
                observer=StructlogProviderObserver(),
            ),
            observer=StructlogSessionObserver(),
        )
        result = asyncio.run(session.solve(prompt=prompt, include=include))

        _print_result(console=Console(), result=result)

        if output is not None:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(
                json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False),
                encoding="utf-8",
            )

    except KeyboardInterrupt:
        typer.echo("Session interrupted.")
        sys.exit(1)
    except TutorHeavyError as exc:
        typer.echo(str(exc))
        sys.exit(1)
    except OSError as exc:
        typer.echo(f"Failed to read input: {exc}")
        sys.exit(1)


@app.command()
def plan(
    config_path: Path = typer.Option(
        ..., "--config", "-c", help="Path to the run plan YAML"
    ),
) -> None:
    """Show the configured run plan and provider catalog."""
    _configure_structlog(log_format="console")
    try:
        config = _load_config(config_path=config_path)
    except TutorHeavyError as exc:
        typer.echo(str(exc))
        raise typer.Exit(code=1) from exc

    table = Table(title=escape(f"{config.name} v{config.version}"))
    table.add_column("Plan item")
    table.add_column("Provider")
    table.add_column("Model")
    table.add_column("Temperature", justify="right")
    table.add_column("Optional")
    for item in config.plan:
        table.add_row(
            escape(item.label),
            escape(item.provider),
            escape(config.providers[item.provider].model),
            f"{item.temperature:g}",
            "yes" if item.optional else "",
        )
    Console().print(table)


if __name__ == "__main__":
    app()
