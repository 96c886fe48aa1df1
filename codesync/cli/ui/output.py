# codesync/cli/ui/output.py
"""
Output methods for CLI display.

Messages are escaped before printing, so paths and log-style tags such as
"[SYNC]" are shown literally instead of being read as Rich markup.
"""

from __future__ import annotations

from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from codesync.cli.ui.console import CHECK, CROSS, WARN, console


class OutputMixin:
    """Mixin providing output methods for the UI class."""

    def header(self, title: str, subtitle: str = "") -> None:
        """Print a command header in a fitted box."""
        content = f"[bold]{escape(title)}[/bold]"
        if subtitle:
            content += f"\n[dim]{escape(subtitle)}[/dim]"
        console.print(Panel.fit(content, border_style="blue"))

    def success(self, msg: str) -> None:
        console.print(f"[green]{CHECK}[/green] {escape(msg)}")

    def error(self, msg: str) -> None:
        console.print(f"[red]{CROSS}[/red] {escape(msg)}")

    def warning(self, msg: str, detail: str = "") -> None:
        detail_str = f" [dim]({escape(detail)})[/dim]" if detail else ""
        console.print(f"[yellow]{WARN}[/yellow] {escape(msg)}{detail_str}")

    def info(self, msg: str) -> None:
        console.print(f"[dim]{escape(msg)}[/dim]")

    def status(self, name: str, ok: bool, detail: str = "") -> None:
        """Print a status line (check/x with name and optional detail)."""
        icon, color = (CHECK, "green") if ok else (CROSS, "red")
        detail_str = f" [dim]({escape(detail)})[/dim]" if detail else ""
        console.print(f"  [{color}]{icon}[/{color}] {escape(name)}{detail_str}")

    def summary_panel(self, content: str, title: str = "", style: str = "green") -> None:
        """Print a summary panel, typically at the end of a command."""
        console.print(Panel(escape(content), title=escape(title), border_style=style))

    def table(self, headers: list[str], rows: list[list[str]], title: str = "") -> None:
        table = Table(title=title) if title else Table()
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(*(escape(str(cell)) for cell in row))
        console.print(table)

    def syntax(self, code: str, language: str = "yaml") -> None:
        """Print syntax-highlighted code."""
        console.print(Syntax(code, language, theme="monokai", line_numbers=False))


__all__ = ["OutputMixin"]
