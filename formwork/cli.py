"""Command line entry point: ``formwork serve`` and ``formwork secret``."""

import asyncio
import importlib
import logging
import secrets
import signal
from pathlib import Path

import click
from dotenv import set_key

LOG_LEVELS = ["debug", "info", "warning", "error"]


@click.group()
@click.version_option(package_name="formwork")
def cli():
    """Server-rendered forms with AJAX submission."""


@cli.command()
@click.option("--app", "app_path", default="formwork.demo:app", show_default=True, help="module:attribute of the ASGI app")
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8080, type=int, show_default=True)
@click.option("--reload", is_flag=True, help="Restart when source files change")
@click.option("--log-level", default="info", type=click.Choice(LOG_LEVELS), show_default=True)
def serve(app_path, host, port, reload, log_level):
    """Serve a form application with Hypercorn."""
    from hypercorn.asyncio import serve as hypercorn_serve
    from hypercorn.config import Config

    logging.basicConfig(level=log_level.upper())

    config = Config()
    config.application_path = app_path
    config.bind = [f"{host}:{port}"]
    config.loglevel = log_level.upper()
    config.include_server_header = False

    if reload:
        from hypercorn.run import run

        config.use_reloader = True
        run(config)
        return

    module_name, _, attribute = app_path.partition(":")
    app = getattr(importlib.import_module(module_name), attribute or "app")

    async def main() -> None:
        stop = asyncio.Event()
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(signum, stop.set)
        await hypercorn_serve(app, config, shutdown_trigger=stop.wait)

    asyncio.run(main())


@cli.command()
@click.option("--write", type=click.Path(dir_okay=False), default=None, help="Store the key as FORMWORK_SECRET_KEY in this .env file")
@click.option("--length", default=32, type=int, show_default=True, help="Random bytes in the key")
def secret(write, length):
    """Generate a session cookie secret."""
    key = secrets.token_urlsafe(length)
    if not write:
        click.echo(key)
        return

    env_path = Path(write)
    env_path.touch(exist_ok=True)
    set_key(env_path, "FORMWORK_SECRET_KEY", key, quote_mode="never")
    click.echo(f"FORMWORK_SECRET_KEY written to {env_path}")
