"""Command line interface for remote-browser-session."""

from __future__ import annotations

import base64
import logging
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from rich.console import Console
from rich.markup import escape

from .api.service import create_app
from .config import SessionServiceConfig, load_config
from .errors import SessionError
from .factory import build_dispatcher, build_registry
from .instructions import parse_command
from .models import ActionMethod

app = typer.Typer(help="Remote Browser Session entry point")
console = Console()


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Configure logging before executing any command."""

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@app.command()
def version() -> None:
    """Print the package version."""

    try:
        typer.echo(get_version("remote-browser-session"))
    except PackageNotFoundError:  # pragma: no cover - when running from source tree
        typer.echo("0.0.0")


def _load(
    config_path: Optional[Path],
    env_file: Optional[Path],
    headless: Optional[bool],
    **overrides: Any,
) -> SessionServiceConfig:
    if headless is not None:
        overrides.setdefault("browser", {})["headless"] = headless
    return load_config(config_path, env_file=env_file, **overrides)


@app.command()
def serve(
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to YAML configuration."),
    ] = None,
    env_file: Annotated[
        Optional[Path],
        typer.Option("--env-file", help="Path to an .env file with default configuration values."),
    ] = None,
    host: Annotated[
        Optional[str],
        typer.Option("--host", help="Binding address for the HTTP service."),
    ] = None,
    port: Annotated[
        Optional[int],
        typer.Option("--port", help="HTTP port for the service."),
    ] = None,
    headless: Annotated[
        Optional[bool],
        typer.Option("--headless/--headed", help="Run browsers in headless mode (or headed)."),
    ] = None,
    max_sessions: Annotated[
        Optional[int],
        typer.Option("--max-sessions", help="Maximum number of live sessions."),
    ] = None,
) -> None:
    """Serve the session API over HTTP."""

    import uvicorn

    overrides: dict[str, Any] = {}
    if host is not None or port is not None:
        overrides["service"] = {}
        if host is not None:
            overrides["service"]["host"] = host
        if port is not None:
            overrides["service"]["port"] = port
    if max_sessions is not None:
        overrides["limits"] = {"max_sessions": max_sessions}
    config = _load(config_path, env_file, headless, **overrides)

    registry = build_registry(config)
    dispatcher = build_dispatcher(config, registry)
    with registry:
        uvicorn.run(create_app(registry, dispatcher), host=config.service.host, port=config.service.port)


@app.command()
def run(
    script: Annotated[
        Path,
        typer.Argument(help="File with one command per line, e.g. 'GOTO https://example.com'."),
    ],
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to YAML configuration."),
    ] = None,
    env_file: Annotated[
        Optional[Path],
        typer.Option("--env-file", help="Path to an .env file with default configuration values."),
    ] = None,
    headless: Annotated[
        Optional[bool],
        typer.Option("--headless/--headed", help="Run the browser in headless mode (or headed)."),
    ] = None,
    screenshots: Annotated[
        Optional[Path],
        typer.Option("--screenshots", help="Directory to write SCREENSHOT results to."),
    ] = None,
) -> None:
    """Run a script of commands against a fresh session."""

    lines = [
        line.strip()
        for line in script.read_text().splitlines()
        if line.strip() and not line.strip().startswith("#")
    ]
    config = _load(config_path, env_file, headless)
    registry = build_registry(config)
    dispatcher = build_dispatcher(config, registry)

    with registry:
        try:
            session_id = registry.create_session()
        except SessionError as exc:
            console.print(f"[red]Could not create session:[/red] {escape(str(exc))}")
            raise typer.Exit(code=1) from None
        console.print(f"Session {session_id} started")
        shot_index = 0
        try:
            for number, line in enumerate(lines, start=1):
                method, instruction = parse_command(line)
                result = dispatcher.run_action(session_id, method, instruction)
                if method is ActionMethod.SCREENSHOT and screenshots is not None:
                    screenshots.mkdir(parents=True, exist_ok=True)
                    path = screenshots / f"step_{shot_index:04d}.{config.browser.screenshot_type}"
                    path.write_bytes(base64.b64decode(result))
                    shot_index += 1
                    result = str(path)
                _print_result(number, line, result)
        except SessionError as exc:
            console.print(f"[red]{type(exc).__name__}:[/red] {escape(str(exc))}")
            raise typer.Exit(code=1) from None
        finally:
            registry.end_session(session_id)
    console.print("[green]Script completed successfully.[/green]")


def _print_result(number: int, line: str, result: Any) -> None:
    if result is None:
        console.print(f"[cyan]{number:>3}[/cyan] {escape(line)}")
        return
    if isinstance(result, str) and len(result) > 200:
        result = f"{result[:200]}..."
    console.print(f"[cyan]{number:>3}[/cyan] {escape(line)} -> {escape(repr(result))}")


if __name__ == "__main__":
    app()
