"""CLI commands for awaybot."""

import asyncio
import os
import sys
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from awaybot import __version__, __logo__

app = typer.Typer(
    name="awaybot",
    help=f"{__logo__} awaybot - away auto-responder for your messages",
    no_args_is_help=True,
)

away_app = typer.Typer(help="Manage the custom away message")
vip_app = typer.Typer(help="Manage VIP contacts")
app.add_typer(away_app, name="away")
app.add_typer(vip_app, name="vip")

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} awaybot v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-V", callback=version_callback, is_eager=True
    ),
):
    """awaybot - away auto-responder."""
    pass


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO")


def _open_store(config_path: Path | None = None):
    from awaybot.config.loader import load_config
    from awaybot.storage.store import FileStore

    config = load_config(config_path)
    return config, FileStore(config.workspace_path)


# ============================================================================
# Onboard / Run
# ============================================================================


@app.command()
def onboard():
    """Create the default configuration and workspace."""
    from awaybot.config.loader import get_config_path, save_config
    from awaybot.config.schema import Config

    config_path = get_config_path()

    if config_path.exists():
        console.print(f"[yellow]Config already exists at {config_path}[/yellow]")
        if not typer.confirm("Overwrite?"):
            raise typer.Exit()

    config = Config()
    save_config(config, config_path)
    console.print(f"[green]✓[/green] Created config at {config_path}")

    config.workspace_path.mkdir(parents=True, exist_ok=True)
    console.print(f"[green]✓[/green] Created workspace at {config.workspace_path}")

    console.print(f"\n{__logo__} awaybot is ready!")
    console.print("\nNext steps:")
    console.print("  1. Set [cyan]GROQ_API_KEY[/cyan] or provider.api_key in the config")
    console.print("  2. Start the WhatsApp bridge and scan its QR code")
    console.print("  3. Run: [cyan]awaybot run[/cyan]")


@app.command()
def run(
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Start answering messages."""
    from awaybot.auto_reply.pipeline import AwayResponder, AwaySession
    from awaybot.auto_reply.selector import ReplySelector
    from awaybot.channels.whatsapp import WhatsAppChannel
    from awaybot.proactive.summary import DailySummaryService
    from awaybot.providers.litellm_provider import LiteLLMProvider

    _configure_logging(verbose)
    config, store = _open_store(config_path)

    if not config.channels.whatsapp.enabled:
        console.print("[red]Error: WhatsApp channel is disabled in config.[/red]")
        raise typer.Exit(1)

    if not config.provider.api_key and not os.environ.get("GROQ_API_KEY"):
        console.print("[yellow]Warning: No API key configured; generated replies will fail.[/yellow]")

    session = AwaySession.from_store(store, config.responder)
    provider = LiteLLMProvider(
        api_key=config.provider.api_key or None,
        api_base=config.provider.api_base,
        default_model=config.provider.model,
        fallback_models=config.provider.fallback_models,
        cooldown_seconds=config.provider.cooldown_seconds,
    )
    selector = ReplySelector(
        store=store,
        memory=session.memory,
        provider=provider,
        config=config.responder,
        provider_config=config.provider,
    )
    responder = AwayResponder(session, selector, config.responder)
    summary_service = DailySummaryService(
        store=store,
        stats=session.stats,
        categorizer=session.categorizer,
        cron_expr=config.responder.summary_cron,
        timezone=config.responder.timezone,
    )
    channel = WhatsAppChannel(config.channels.whatsapp, responder.handle)

    console.print(f"📊 Total messages received: {session.stats.total_messages}")
    console.print(f"🤖 {config.responder.bot_name} is active and monitoring messages...")

    async def serve():
        await summary_service.start()
        try:
            await channel.start()
        finally:
            summary_service.stop()
            await channel.stop()

    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        console.print("\nShutting down...")


# ============================================================================
# Status / Summary
# ============================================================================


@app.command()
def status(
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file"),
):
    """Show message statistics and configuration."""
    from awaybot.auto_reply.schedule import Schedule
    from awaybot.storage.store import StateKey
    from awaybot.tracking.categorizer import Categorizer, VipList
    from awaybot.tracking.stats import StatsTracker

    config, store = _open_store(config_path)
    stats = StatsTracker(store).stats
    categorizer = Categorizer(store, VipList(store), limit=config.responder.category_limit)
    active_hours = Schedule.load(store)
    away = store.load(StateKey.AWAY_MESSAGE)

    table = Table(title=f"{__logo__} awaybot status")
    table.add_column("Item", style="cyan")
    table.add_column("Value")

    table.add_row("Workspace", str(config.workspace_path))
    table.add_row("Model", config.provider.model)
    table.add_row("Total messages", str(stats.total_messages))
    table.add_row("Since", stats.start_date)
    table.add_row("Last message", stats.last_message or "-")
    for name, count in categorizer.counts().items():
        table.add_row(f"Category: {name}", str(count))
    table.add_row(
        "Schedule",
        f"{active_hours.start_hour:02d}:00-{active_hours.end_hour:02d}:00" if active_hours.enabled else "always on",
    )
    table.add_row("Away message", away or "[dim]none[/dim]")

    console.print(table)


@app.command()
def summary(
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file"),
):
    """Write today's daily summary now."""
    from awaybot.proactive.summary import DailySummaryService
    from awaybot.tracking.categorizer import Categorizer, VipList
    from awaybot.tracking.stats import StatsTracker
    from awaybot.utils.helpers import local_now

    config, store = _open_store(config_path)
    service = DailySummaryService(
        store=store,
        stats=StatsTracker(store),
        categorizer=Categorizer(store, VipList(store), limit=config.responder.category_limit),
        cron_expr=config.responder.summary_cron,
        timezone=config.responder.timezone,
    )
    path = service.write_summary(local_now(config.responder.timezone).date())
    if path is None:
        console.print("[red]Failed to write daily summary[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Summary written to {path}")


@app.command()
def schedule(
    enable: bool = typer.Option(None, "--enable/--disable", help="Turn the active-hours window on or off"),
    start_hour: int = typer.Option(None, "--start", min=0, max=23, help="First active hour"),
    end_hour: int = typer.Option(None, "--end", min=0, max=23, help="First inactive hour"),
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file"),
):
    """Show or update the active-hours schedule."""
    from awaybot.auto_reply.schedule import Schedule

    _, store = _open_store(config_path)
    current = Schedule.load(store)

    if enable is not None:
        current.enabled = enable
    if start_hour is not None:
        current.start_hour = start_hour
    if end_hour is not None:
        current.end_hour = end_hour

    if enable is not None or start_hour is not None or end_hour is not None:
        current.save(store)
        console.print("[green]✓[/green] Schedule updated")

    state = "enabled" if current.enabled else "disabled"
    console.print(f"Schedule {state}: {current.start_hour:02d}:00 - {current.end_hour:02d}:00")


# ============================================================================
# Away message
# ============================================================================


@away_app.command("set")
def away_set(
    message: str = typer.Argument(..., help="Message sent to everyone while away"),
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file"),
):
    """Set the custom away message."""
    from awaybot.storage.store import StateKey

    _, store = _open_store(config_path)
    if not store.save(StateKey.AWAY_MESSAGE, message.strip()):
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Away message set: {message.strip()}")


@away_app.command("clear")
def away_clear(
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file"),
):
    """Remove the custom away message."""
    from awaybot.storage.store import StateKey

    _, store = _open_store(config_path)
    store.delete(StateKey.AWAY_MESSAGE)
    console.print("[green]✓[/green] Away message cleared")


@away_app.command("show")
def away_show(
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file"),
):
    """Show the custom away message."""
    from awaybot.storage.store import StateKey

    _, store = _open_store(config_path)
    message = store.load(StateKey.AWAY_MESSAGE)
    console.print(message or "[dim]No away message set[/dim]")


# ============================================================================
# VIP contacts
# ============================================================================


@vip_app.command("add")
def vip_add(
    entry: str = typer.Argument(..., help="Number or id fragment"),
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file"),
):
    """Add a VIP contact."""
    from awaybot.tracking.categorizer import VipList

    _, store = _open_store(config_path)
    if VipList(store).add(entry):
        console.print(f"[green]✓[/green] Added VIP: {entry}")
    else:
        console.print(f"[yellow]Already a VIP: {entry}[/yellow]")


@vip_app.command("remove")
def vip_remove(
    entry: str = typer.Argument(..., help="Number or id fragment"),
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file"),
):
    """Remove a VIP contact."""
    from awaybot.tracking.categorizer import VipList

    _, store = _open_store(config_path)
    if not VipList(store).remove(entry):
        console.print(f"[red]Not a VIP: {entry}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Removed VIP: {entry}")


@vip_app.command("list")
def vip_list(
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file"),
):
    """List VIP contacts."""
    from awaybot.tracking.categorizer import VipList

    _, store = _open_store(config_path)
    entries = VipList(store).entries
    if not entries:
        console.print("[dim]No VIP contacts[/dim]")
        return
    for entry in entries:
        console.print(f"  • {entry}")


if __name__ == "__main__":
    app()
