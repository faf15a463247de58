"""
Command Line Interface entry point using Typer.
"""
import json
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer

from . import __version__
from .audit import AuditLogger, read_events
from .backups import RETENTION_DAYS
from .config import get_log_path, load_settings
from .editor import PluginBlockEditor
from .errors import BridgeConfError
from .migration import start_up
from .plugins import SchemaPluginDirectory
from .retention import RetentionScheduler
from .store import ConfigStore
from .ui import (
    confirm,
    console,
    render_error,
    render_json,
    render_status,
    render_table,
    render_warning,
)
from .utils import human_size

app = typer.Typer(
    help=(
        "[bold cyan]BRIDGECONF[/]\n\n"
        "Inspect and edit the bridge config.json, its plugin blocks and its backups."
    ),
    no_args_is_help=True,
    rich_markup_mode="rich"
)

STORAGE_OPTION = typer.Option(
    None, "--storage", "-s", help="Bridge storage directory (defaults to $BRIDGECONF_STORAGE_PATH or ~/.homebridge)."
)

def open_store(storage: Optional[Path]) -> ConfigStore:
    settings = load_settings(storage)
    logger = AuditLogger(get_log_path(settings), on_warning=render_warning)
    return start_up(settings, logger)

def open_editor(storage: Optional[Path]) -> PluginBlockEditor:
    store = open_store(storage)
    return PluginBlockEditor(store, SchemaPluginDirectory(store.settings.plugins_path))

def parse_value(raw: str) -> Any:
    """Interpret a CLI value as JSON when it parses, otherwise as a plain string."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw

def fail(e: Exception) -> NoReturn:
    render_error(str(e))
    raise typer.Exit(1)

@app.command(name="show")
def show_cmd(storage: Optional[Path] = STORAGE_OPTION):
    """Print the current config.json."""
    try:
        render_json(open_store(storage).read())
    except BridgeConfError as e:
        fail(e)

@app.command(name="import")
def import_cmd(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file to save as config.json"),
    storage: Optional[Path] = STORAGE_OPTION,
):
    """Save a JSON document as config.json (normalized, with a backup of the current file)."""
    try:
        doc = json.loads(source.read_text(encoding="utf-8-sig"))
    except (OSError, json.JSONDecodeError) as e:
        fail(e)
    try:
        saved = open_store(storage).write(doc)
    except BridgeConfError as e:
        fail(e)
    render_status("save", f"config.json saved for bridge '{saved['bridge']['name']}'.", "green")

@app.command(name="set-ui-property")
def set_ui_property_cmd(
    name: str = typer.Argument(..., help="Property on the UI platform block"),
    value: str = typer.Argument("", help="JSON or plain value; empty removes the property"),
    storage: Optional[Path] = STORAGE_OPTION,
):
    """Set one property on the config UI's own platform block."""
    try:
        block = open_editor(storage).set_ui_property(name, parse_value(value) if value else "")
    except BridgeConfError as e:
        fail(e)
    render_json(block, title="UI platform block")

@app.command(name="backups")
def list_backups_cmd(storage: Optional[Path] = STORAGE_OPTION):
    """List config.json backups, newest first."""
    store = open_store(storage)
    backups = store.list_backups()
    if not backups:
        render_status("info", "No config backups found.")
        return

    rows = []
    for b in backups:
        path = store.backups.backup_path / b.filename
        size = human_size(path.stat().st_size) if path.exists() else "-"
        rows.append([b.id, b.timestamp.strftime("%Y-%m-%d %H:%M:%S"), size])
    render_table(f"Backups in {store.backups.backup_path}", ["ID", "Taken At", "Size"], rows)

@app.command(name="backup-show")
def show_backup_cmd(
    backup_id: str = typer.Argument(..., help="Backup ID (epoch millis)"),
    storage: Optional[Path] = STORAGE_OPTION,
):
    """Print one backup."""
    try:
        content = open_store(storage).get_backup(backup_id)
    except BridgeConfError as e:
        fail(e)
    render_json(content.decode("utf-8", errors="replace"), title=f"config.json.{backup_id}")

@app.command(name="backup-restore")
def restore_backup_cmd(
    backup_id: str = typer.Argument(..., help="Backup ID (epoch millis)"),
    storage: Optional[Path] = STORAGE_OPTION,
):
    """Make a backup the live config.json; the current file is backed up first."""
    try:
        open_store(storage).restore_backup(backup_id)
    except BridgeConfError as e:
        fail(e)
    render_status("restore", f"Backup {backup_id} restored to config.json.", "green")

@app.command(name="backups-purge")
def purge_backups_cmd(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    storage: Optional[Path] = STORAGE_OPTION,
):
    """Delete every config.json backup."""
    if not yes and not confirm("Delete ALL config.json backups?"):
        raise typer.Exit(0)
    removed = open_store(storage).delete_all_backups()
    render_status("delete", f"{removed} backup(s) deleted.")

@app.command(name="prune")
def prune_cmd(
    days: int = typer.Option(RETENTION_DAYS, "--days", "-d", min=0, help="Delete backups at least this many days old"),
    storage: Optional[Path] = STORAGE_OPTION,
):
    """Run the retention sweep once."""
    removed = open_store(storage).backups.prune_older_than(days)
    render_status("delete", f"{removed} backup(s) older than {days} days deleted.")

@app.command(name="plugin-blocks")
def plugin_blocks_cmd(
    plugin_name: str = typer.Argument(..., help="Plugin package name"),
    storage: Optional[Path] = STORAGE_OPTION,
):
    """Show the config blocks that belong to a plugin."""
    try:
        blocks = open_editor(storage).get_blocks_for_plugin(plugin_name)
    except BridgeConfError as e:
        fail(e)
    render_json(blocks, title=plugin_name)

@app.command(name="plugin-set-blocks")
def plugin_set_blocks_cmd(
    plugin_name: str = typer.Argument(..., help="Plugin package name"),
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file holding an array of blocks"),
    storage: Optional[Path] = STORAGE_OPTION,
):
    """Replace a plugin's config blocks with the array in a JSON file."""
    try:
        blocks = json.loads(source.read_text(encoding="utf-8-sig"))
    except (OSError, json.JSONDecodeError) as e:
        fail(e)
    try:
        saved = open_editor(storage).replace_blocks_for_plugin(plugin_name, blocks)
    except BridgeConfError as e:
        fail(e)
    render_status("plugin", f"{len(saved)} block(s) saved for {plugin_name}.", "green")

@app.command(name="plugin-remove-config")
def plugin_remove_config_cmd(
    plugin_name: str = typer.Argument(..., help="Plugin package name"),
    storage: Optional[Path] = STORAGE_OPTION,
):
    """Remove all config blocks of a plugin and re-enable it."""
    try:
        open_editor(storage).remove_plugin_config(plugin_name)
    except BridgeConfError as e:
        fail(e)
    render_status("plugin", f"Config for {plugin_name} removed.", "green")

@app.command(name="disable")
def disable_cmd(
    plugin_name: str = typer.Argument(..., help="Plugin package name"),
    storage: Optional[Path] = STORAGE_OPTION,
):
    """Add a plugin to disabledPlugins."""
    try:
        disabled = open_editor(storage).disable_plugin(plugin_name)
    except BridgeConfError as e:
        fail(e)
    render_status("plugin", f"Disabled plugins: {', '.join(disabled)}")

@app.command(name="enable")
def enable_cmd(
    plugin_name: str = typer.Argument(..., help="Plugin package name"),
    storage: Optional[Path] = STORAGE_OPTION,
):
    """Remove a plugin from disabledPlugins."""
    try:
        disabled = open_editor(storage).enable_plugin(plugin_name)
    except BridgeConfError as e:
        fail(e)
    render_status("plugin", f"Disabled plugins: {', '.join(disabled) or '(none)'}")

@app.command(name="daemon")
def run_daemon(storage: Optional[Path] = STORAGE_OPTION):
    """Run the nightly backup retention job in the foreground."""
    store = open_store(storage)
    scheduler = RetentionScheduler(store.backups, store.logger)
    render_status("daemon", f"Next config.json backup cleanup scheduled for {scheduler.next_run_time()}.")
    scheduler.run_forever()

@app.command(name="doctor")
def run_doctor(storage: Optional[Path] = STORAGE_OPTION):
    """Check the storage directory, config.json and backups."""
    from .doctor import run_diagnostics
    results = run_diagnostics(load_settings(storage))

    rows = []
    for r in results:
        status_text = "[bold green]PASS[/]" if r.status == "pass" else "[bold yellow]WARN[/]" if r.status == "warn" else "[bold red]FAIL[/]"
        rows.append([status_text, r.name, r.detail])

    render_table("bridgeconf doctor", ["Status", "Check", "Details"], rows)
    if any(r.status == "fail" for r in results):
        raise typer.Exit(1)

@app.command(name="log")
def show_log(
    last_n: int = typer.Option(50, "--last", "-n", help="Number of recent events to show"),
    storage: Optional[Path] = STORAGE_OPTION,
):
    """Show recent store events."""
    events = read_events(get_log_path(load_settings(storage)), last_n)
    if not events:
        render_status("info", "No events logged yet.")
        return

    rows = []
    for e in events:
        rows.append([e.get("timestamp", ""), e.get("level", ""), e.get("event", ""), str(e.get("details", {}))])
    render_table("Store events", ["Timestamp", "Level", "Event", "Details"], rows)

@app.command(name="version")
def version_cmd():
    """Display bridgeconf version information."""
    console.print(f"[bold cyan]bridgeconf[/] v{__version__}")

if __name__ == "__main__":
    app()
