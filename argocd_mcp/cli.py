"""CLI commands for argocd-mcp."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .auth import resolve_token
from .client import ArgoCDClient, ArgoCDError
from .config import (
    ArgoCDSettings,
    Config,
    ConfigError,
    default_config_path,
    load_config,
    mask_token,
    save_config,
)
from .log import get_logger, setup_logging
from .server import run_stdio
from .shaping import json_to_yaml
from .tools import TOOLS, WRITE_TOOLS, ToolManager

console = Console()
err_console = Console(stderr=True)
logger = get_logger("cli")


def create_client(config: Config, token: str) -> ArgoCDClient:
    """API client for the configured server."""
    settings = config.argocd
    if settings.grpc_web:
        logger.debug("client.grpc_web", note="REST transport used; root path kept as prefix")
    return ArgoCDClient(
        settings.server,
        token,
        insecure=settings.insecure,
        plaintext=settings.plaintext,
        cert_file=settings.cert_file,
        grpc_web_root_path=settings.grpc_web_root_path,
    )


def _load(ctx: click.Context) -> Config:
    try:
        return load_config(ctx.obj.get("config_path"))
    except ConfigError as e:
        err_console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(1)


def parse_call_arguments(pairs: tuple[str, ...], stdin_text: str | None = None) -> dict[str, Any]:
    """Build tool arguments from ``key=value`` pairs or JSON on stdin.

    Values are read as JSON when they parse (``limit=5``, ``prune=true``,
    ``config={"username": "x"}``) and as plain strings otherwise.

    Raises:
        click.BadParameter: on a pair without ``=`` or stdin that is not a
            JSON object.
    """
    if pairs and pairs[0] == "-":
        try:
            arguments = json.loads(stdin_text or "")
        except ValueError as e:
            raise click.BadParameter(f"stdin is not valid JSON: {e}") from e
        if not isinstance(arguments, dict):
            raise click.BadParameter("stdin must contain a JSON object")
        return arguments

    arguments: dict[str, Any] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {pair!r}")
        try:
            arguments[key] = json.loads(value)
        except ValueError:
            arguments[key] = value
    return arguments


@click.group()
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="Config file path")
@click.pass_context
def main(ctx: click.Context, config_path: str | None) -> None:
    """argocd-mcp - Argo CD tools for MCP clients."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@main.command("version")
def version() -> None:
    """Show the version."""
    click.echo(f"argocd-mcp {__version__}")


@main.command("serve")
@click.option("--server", help="Argo CD server address (overrides config)")
@click.option("--token", help="Argo CD auth token (overrides config)")
@click.option("--grpc-web", is_flag=True, help="Server sits behind a gRPC-web proxy")
@click.option("--grpc-web-root-path", help="Path prefix of the API on the server")
@click.option("--safe-mode", is_flag=True, help="Reject write operations")
@click.pass_context
def serve(
    ctx: click.Context,
    server: str | None,
    token: str | None,
    grpc_web: bool,
    grpc_web_root_path: str | None,
    safe_mode: bool,
) -> None:
    """Run the MCP server over stdio."""
    config = _load(ctx).with_overrides(
        server=server,
        token=token,
        grpc_web=grpc_web,
        grpc_web_root_path=grpc_web_root_path,
        safe_mode=safe_mode,
    )
    setup_logging(config.logging.level, config.logging.format)

    async def _serve() -> None:
        resolved = await resolve_token(config)
        client = create_client(config, resolved)
        try:
            manager = ToolManager(
                client,
                limits=config.limits.to_limits(),
                safe_mode=config.server.safe_mode,
            )
            await run_stdio(manager, config.server.mcp_endpoint)
        finally:
            await client.aclose()

    try:
        asyncio.run(_serve())
    except ArgoCDError as e:
        # stdout belongs to the MCP protocol
        err_console.print(f"[red]{escape(e.message)}[/red]")
        sys.exit(1)


@main.group("config")
def config_group() -> None:
    """Manage the configuration file."""


@config_group.command("init")
@click.option("-s", "--server", help="Argo CD server address")
@click.option("-u", "--username", help="Username")
@click.option("-p", "--password", help="Password")
@click.option("-t", "--token", help="Auth token")
@click.option("-k", "--insecure", is_flag=True, help="Skip TLS verification")
@click.option("--plaintext", is_flag=True, help="Use plain HTTP")
@click.option("-c", "--cert-file", help="CA certificate file")
@click.option("--path", "path", type=click.Path(dir_okay=False), help="Where to write the config")
def config_init(
    server: str | None,
    username: str | None,
    password: str | None,
    token: str | None,
    insecure: bool,
    plaintext: bool,
    cert_file: str | None,
    path: str | None,
) -> None:
    """Create a config file, prompting for values when no flags are given."""
    if not any((server, username, password, token)):
        server = click.prompt("Argo CD server", default="localhost:8080")
        if click.confirm("Authenticate with a token?", default=True):
            token = click.prompt("Token", hide_input=True)
        else:
            username = click.prompt("Username", default="admin")
            password = click.prompt("Password", hide_input=True)
        insecure = click.confirm("Skip TLS verification?", default=False)

    config = Config(
        argocd=ArgoCDSettings(
            server=server or "localhost:8080",
            username=username or "",
            password=password or "",
            token=token or "",
            insecure=insecure,
            plaintext=plaintext,
            cert_file=cert_file or "",
        )
    )
    written = save_config(config, Path(path) if path else default_config_path())
    console.print(f"[green]Configuration saved to {written}[/green]")


@config_group.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show the effective configuration with secrets masked."""
    config = _load(ctx)

    table = Table(title="argocd-mcp configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("Server", config.argocd.server)
    table.add_row("Insecure", str(config.argocd.insecure))
    table.add_row("MCP endpoint", config.server.mcp_endpoint)
    table.add_row("Safe mode", str(config.server.safe_mode))
    table.add_row("Token", mask_token(config.argocd.token) if config.argocd.token else "(not set)")
    table.add_row("Username", config.argocd.username or "(not set)")
    console.print(table)


@main.command("test")
@click.pass_context
def test_connection(ctx: click.Context) -> None:
    """Check the connection by listing applications."""
    config = _load(ctx)
    setup_logging(config.logging.level, config.logging.format)

    async def _test() -> list[dict[str, Any]]:
        token = await resolve_token(config)
        async with create_client(config, token) as client:
            data = await client.list_applications()
        return list((data or {}).get("items") or [])

    try:
        apps = asyncio.run(_test())
    except ArgoCDError as e:
        console.print(f"[red]Connection failed: {escape(e.message)}[/red]")
        sys.exit(1)

    console.print(f"[green]Connected to {config.argocd.server}[/green]")
    console.print(f"Found {len(apps)} applications")
    for app in apps[:10]:
        name = (app.get("metadata") or {}).get("name", "")
        console.print(f"  - {name}")
    if len(apps) > 10:
        console.print(f"  ... and {len(apps) - 10} more")


@main.command("call")
@click.argument("tool", required=False)
@click.argument("pairs", nargs=-1)
@click.option("--list", "list_tools", is_flag=True, help="List available tools")
@click.option("-o", "--output", type=click.Choice(["json", "yaml"]), default="json", help="Output format")
@click.option("--pretty/--no-pretty", default=True, help="Indent JSON output")
@click.pass_context
def call(
    ctx: click.Context,
    tool: str | None,
    pairs: tuple[str, ...],
    list_tools: bool,
    output: str,
    pretty: bool,
) -> None:
    """Call a tool directly: argocd-mcp call get_application name=guestbook

    Pass - as the first argument to read a JSON object of arguments from stdin.
    """
    if list_tools or not tool:
        table = Table(title=f"Tools ({len(TOOLS)} total)")
        table.add_column("Name", style="cyan")
        table.add_column("Write", style="yellow")
        table.add_column("Description")
        for t in TOOLS:
            table.add_row(t.name, "yes" if t.name in WRITE_TOOLS else "", t.description or "")
        console.print(table)
        return

    stdin_text = click.get_text_stream("stdin").read() if pairs[:1] == ("-",) else None
    arguments = parse_call_arguments(pairs, stdin_text)
    config = _load(ctx)
    setup_logging(config.logging.level, config.logging.format)

    async def _call():
        token = await resolve_token(config)
        async with create_client(config, token) as client:
            manager = ToolManager(
                client,
                limits=config.limits.to_limits(),
                safe_mode=config.server.safe_mode,
            )
            return await manager.call_tool(tool, arguments)

    try:
        outcome = asyncio.run(_call())
    except ArgoCDError as e:
        err_console.print(f"[red]{escape(e.message)}[/red]")
        sys.exit(1)

    text = "\n".join(getattr(c, "text", "") for c in outcome.content)
    if outcome.isError:
        err_console.print(f"[red]Error:[/red] {escape(text)}")
        sys.exit(1)

    if output == "yaml":
        click.echo(json_to_yaml(text), nl=False)
    elif not pretty:
        try:
            click.echo(json.dumps(json.loads(text), separators=(",", ":"), ensure_ascii=False))
        except ValueError:
            click.echo(text)
    else:
        click.echo(text)


if __name__ == "__main__":
    main()
