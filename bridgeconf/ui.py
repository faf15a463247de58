"""
Rich terminal UI components with an ASCII fallback.
"""
import json
import sys
from typing import Any, Dict

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

# Detect ASCII fallback
try:
    "\U0001F4E6".encode(sys.stdout.encoding if sys.stdout and sys.stdout.encoding else "utf-8")
    HAS_UNICODE = True
except Exception:
    HAS_UNICODE = False

ICONS: Dict[str, str] = {
    "backup": "\U0001F4E6",
    "restore": "♻️",
    "delete": "\U0001F5D1️",
    "save": "\U0001F4BE",
    "success": "✅",
    "error": "❌",
    "warn": "⚠️",
    "info": "ℹ️",
    "daemon": "⏰",
    "doctor": "\U0001FA7A",
    "plugin": "\U0001F9E9",
}

ASCII_ICONS: Dict[str, str] = {
    "backup": "[BAK]",
    "restore": "[RST]",
    "delete": "[DEL]",
    "save": "[SAV]",
    "success": "[OK]",
    "error": "[ERR]",
    "warn": "[WARN]",
    "info": "[INF]",
    "daemon": "[DMN]",
    "doctor": "[DOC]",
    "plugin": "[PLG]",
}

def icon(name: str) -> str:
    return ICONS.get(name, "") if HAS_UNICODE else ASCII_ICONS.get(name, "")

console = Console(width=120)
err_console = Console(stderr=True, width=120)

def render_status(action: str, message: str, style: str = "white") -> None:
    """Print a single line status update."""
    i = icon(action)
    console.print(f"{i} [{style}]{message}[/]")

def render_error(message: str) -> None:
    """Print a styled error panel."""
    i = icon("error")
    err_console.print()
    err_console.print(Panel(Text(message, style="red"), border_style="red", expand=False, title=f"{i} ERROR"))

def render_warning(message: str) -> None:
    """Print a styled warning panel."""
    i = icon("warn")
    err_console.print(Panel(Text(message, style="yellow"), border_style="yellow", expand=False, title=f"{i} WARNING"))

def confirm(prompt_text: str) -> bool:
    """Interactive confirmation prompt."""
    i = icon("warn")
    return typer.confirm(f"{i} {prompt_text}", default=False)

def render_table(title: str, headers: list[str], rows: list[list[str]]) -> None:
    """Render a structured Rich Table."""
    console.print()
    table = Table(
        title=title,
        border_style="cyan",
        header_style="bold magenta",
        show_lines=True,
        box=box.ROUNDED if HAS_UNICODE else box.ASCII
    )

    if headers:
        table.add_column(headers[0], justify="center", no_wrap=True)
        for h in headers[1:]:
            table.add_column(h, justify="left", overflow="fold")

    for r in rows:
        table.add_row(*r)

    console.print(table)
    console.print()

def render_json(data: Any, title: str = "config.json") -> None:
    """Pretty-print a JSON document the way it is stored on disk."""
    text = data if isinstance(data, str) else json.dumps(data, indent=4, ensure_ascii=False)
    console.print(Panel(Syntax(text, "json", word_wrap=True), title=title, border_style="cyan"))
