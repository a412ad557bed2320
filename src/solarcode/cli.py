from __future__ import annotations
from pathlib import Path
from importlib.metadata import version as pkg_version, PackageNotFoundError
from typing import Optional

import typer

from .bootstrap import build_app
from .config import setup_guide
from .core.errors import ConfigurationError, ProviderError
from .core.types import CountTokensParameters
from .logging_setup import configure_logging
from .ui.banner import render_banner

app = typer.Typer(add_completion=False)

HELP_TEXT = "Commands: /help, /tokens, /exit, /quit"


def _app_version() -> Optional[str]:
    try:
        return f"v{pkg_version('solar-code')}"
    except PackageNotFoundError:
        return None


def _print_turn(session, text: str, use_stream: bool) -> None:
    if use_stream:
        gen = session.run_turn_stream(text)
        try:
            for piece in gen:
                typer.echo(piece, nl=False)
            typer.echo("")
        except KeyboardInterrupt:
            # Closing the generator keeps the partial answer in history and releases the connection
            gen.close()
            typer.echo("\n[stream interrupted]")
    else:
        typer.echo(session.run_turn(text))


@app.callback(invoke_without_command=True)
def chat(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML settings file (default: ./config/default.yaml when present)."),
    provider: Optional[str] = typer.Option(None, "--provider", help="Provider name (solar, echo)."),
    stream: Optional[bool] = typer.Option(None, "--stream/--no-stream", help="Stream answers as they arrive."),
    prompt: Optional[str] = typer.Option(None, "--prompt", "-p", help="Run one turn non-interactively and exit."),
    json_output: bool = typer.Option(False, "--json", help="Ask the model for a JSON-only answer."),
    setup: bool = typer.Option(False, "--setup", help="Print the Upstage API setup guide and exit."),
    banner: bool = typer.Option(True, "--banner/--no-banner", help="Show the logo on startup."),
    log_level: str = typer.Option("warning", "--log-level", help="debug, info, warning or error."),
):
    configure_logging(log_level)

    if setup:
        typer.echo(setup_guide())
        raise typer.Exit(0)

    # ----- Build provider + session -----
    try:
        ctx = build_app(config, provider=provider, stream=stream, json_output=json_output)
    except ConfigurationError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        typer.echo("\nRun: solar --setup for the detailed setup guide", err=True)
        raise typer.Exit(1)

    session = ctx["session"]
    generator = ctx["provider"]
    use_stream = bool(ctx["cfg"]["runtime"].get("stream", False))

    # ----- Non-interactive -----
    if prompt is not None:
        try:
            _print_turn(session, prompt, use_stream)
        except ProviderError as e:
            typer.echo(str(e), err=True)
            raise typer.Exit(1)
        return

    if banner:
        render_banner(_app_version())
    typer.echo(f"solar chat ({generator.model}). Type /help for commands. Ctrl+C to quit.")
    while True:
        try:
            user_input = input("solar> ").strip()
        except (EOFError, KeyboardInterrupt):
            typer.echo("\nBye.")
            return

        if not user_input:
            continue

        if user_input in ("/exit", "/quit"):
            typer.echo("Bye.")
            return

        if user_input == "/help":
            typer.echo(HELP_TEXT)
            continue

        if user_input == "/tokens":
            counted = generator.count_tokens(CountTokensParameters(contents=list(session.history)))
            typer.echo(f"~{counted.total_tokens} tokens in history (estimate)")
            continue

        # Normal turn; provider failures are reported and the loop continues
        try:
            _print_turn(session, user_input, use_stream)
        except ProviderError as e:
            typer.echo(f"[error] {e}", err=True)
