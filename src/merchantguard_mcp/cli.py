"""Command-line interface for the MerchantGuard MCP server."""

from typing import Any, Dict, Optional

import click
from pydantic import ValidationError

from . import __version__
from .config import Settings
from .exceptions import ConfigurationError
from .logging import VALID_LOG_LEVELS, configure_logging, get_logger
from .tools import TOOLS


@click.group()
@click.option(
    "--config", "-c", type=click.Path(exists=False), help="Configuration file path (YAML)"
)
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(VALID_LOG_LEVELS, case_sensitive=False),
    help="Override LOG_LEVEL",
)
@click.version_option(__version__, prog_name="merchantguard-mcp")
@click.pass_context
def main(ctx: click.Context, config: Optional[str], log_level: Optional[str]) -> None:
    """MerchantGuard MCP - GuardScore risk tools for AI agents."""
    ctx.ensure_object(dict)

    overrides: Dict[str, Any] = {}
    if log_level:
        overrides["log_level"] = log_level
    try:
        settings = Settings(_config_file=config, **overrides)
    except ConfigurationError as exc:
        raise click.ClickException(exc.message) from exc
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        raise click.ClickException(f"Invalid settings: {problems}") from exc

    configure_logging(settings.log_level, settings.log_format)
    ctx.obj["settings"] = settings


@main.command()
@click.option(
    "--transport",
    type=click.Choice(["stdio", "streamable-http"]),
    default="stdio",
    show_default=True,
    help="MCP transport",
)
@click.option("--host", default=None, help="Bind host for streamable-http (overrides HOST)")
@click.option("--port", type=int, default=None, help="Bind port for streamable-http (overrides PORT)")
@click.pass_context
def serve(ctx: click.Context, transport: str, host: Optional[str], port: Optional[int]) -> None:
    """Run the MCP server."""
    from .server import create_server

    settings: Settings = ctx.obj["settings"]
    updates: Dict[str, Any] = {}
    if host:
        updates["host"] = host
    if port:
        updates["port"] = port
    if updates:
        settings = settings.model_copy(update=updates)

    logger = get_logger(__name__)
    server = create_server(settings)

    if transport == "streamable-http":
        logger.info(
            "Starting MerchantGuard MCP server",
            transport=transport,
            mcp_endpoint=f"http://{settings.host}:{settings.port}/mcp",
            health_endpoint=f"http://{settings.host}:{settings.port}/health",
        )
    else:
        logger.info("Starting MerchantGuard MCP server", transport=transport)

    server.run(transport=transport)


@main.command(name="tools")
def list_tools() -> None:
    """List the registered tool names."""
    for tool in TOOLS:
        click.echo(f"{tool.name}\t{tool.title}")


if __name__ == "__main__":
    main()
