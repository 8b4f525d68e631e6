"""
ui.py

Console output for the argbatch CLI, built on Rich. Everything goes to stderr:
stdout carries the batched commands' own output.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterable, List

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

_THEME = Theme(
    {
        "ui.info": "cyan",
        "ui.warn": "yellow bold",
        "ui.error": "red bold",
        "ui.header": "bold blue",
        "ui.dim": "dim",
        "ui.elapsed": "magenta",
    }
)

console = Console(theme=_THEME, highlight=False, stderr=True)

VERBOSE = False


def set_verbose(verbose: bool) -> None:
    """Set global verbosity. If False, log_info is suppressed."""
    global VERBOSE
    VERBOSE = bool(verbose)


def log_info(message: str) -> None:
    """Info is suppressed unless VERBOSE is True."""
    if VERBOSE:
        console.print(f"[ui.info]ℹ  {message}[/]")


def log_warning(message: str) -> None:
    console.print(f"[ui.warn]⚠️  {message}[/]")


def log_error(message: str) -> None:
    console.print(f"[ui.error]❌ {message}[/]")


@contextmanager
def section(title: str):
    """Header rule before the body, footer rule with elapsed time after. Only shown when verbose."""
    start = time.time()
    if VERBOSE:
        console.rule(f"[ui.header]{title} - START[/]")
    try:
        yield
    finally:
        if VERBOSE:
            elapsed = time.time() - start
            console.rule(
                f"[ui.header]{title} - END [ui.dim](Elapsed: [ui.elapsed]{elapsed:.2f}s[/ui.elapsed])[/]"
            )


def print_table(columns: List[str], rows: List[Iterable], title: str = "") -> None:
    table = Table(show_header=True, header_style="bold magenta", title=title or None)
    for c in columns:
        table.add_column(str(c), overflow="fold")
    for r in rows:
        table.add_row(*[str(x) for x in r])
    console.print(table)
