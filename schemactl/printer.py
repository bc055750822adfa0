"""
Console output for schemactl.

The Printer is the reporter consumed by the execution plan and the
commands: status lines, spinners, rollback notifications and the boxed
FAIL / ERROR / WARNING panels. JSON output mode (--json) switches errors
and rollback warnings to machine-readable objects on stderr.
"""

import json
import traceback
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import click
from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.rule import Rule
from rich.text import Text

from schemactl.errors import CliError
from schemactl.output import get_output_options


BOX_WIDTH = 60

ICONS = {
    "success": "✔",
    "error": "✖",
    "info": "ℹ",
    "warning": "⚠",
    "step": "›",
    "suggestion": "→",
    "hint": "💡",
}

# badge label, badge style, border style
BADGES = {
    "error": ("ERROR", "bold white on red", "bright_red"),
    "fail": ("FAIL", "bold black on yellow", "yellow"),
    "warning": ("WARNING", "bold black on yellow", "yellow"),
}


def _boxed(
    title: str,
    message: Optional[str] = None,
    code: Optional[str] = None,
    suggestions: Optional[list[str]] = None,
    hints: Optional[list[str]] = None,
    badge: str = "error",
) -> Panel:
    """Build a rich Panel with badge, title, message and suggestions."""
    label, badge_style, border_style = BADGES[badge]

    parts: list[Any] = [Text(title, style="bold")]
    if message:
        parts.append(Text(""))
        parts.append(Text(message, style="dim"))
    if code:
        parts.append(Text(""))
        parts.append(Text(f"Code: {code}", style="dim"))
    if suggestions or hints:
        parts.append(Text(""))
        parts.append(Rule(style="dim"))
    if suggestions:
        parts.append(Text(""))
        for suggestion in suggestions:
            line = Text(f"{ICONS['suggestion']} ", style="bright_green")
            line.append(suggestion)
            parts.append(line)
    if hints:
        parts.append(Text(""))
        for hint in hints:
            line = Text(f"{ICONS['hint']} ")
            line.append(hint, style="bright_blue")
            parts.append(line)

    return Panel(
        Group(*parts),
        title=Text(f" {label} ", style=badge_style),
        title_align="left",
        border_style=border_style,
        width=BOX_WIDTH,
        padding=(1, 2),
    )


def _error_info(err: BaseException) -> tuple[str, str, str]:
    """Extract title, message and formatted stack from an exception."""
    title = type(err).__name__ or "Error"
    message = str(err)
    stack = "".join(traceback.format_exception(type(err), err, err.__traceback__))
    return title, message, stack


class Printer:
    """
    Formatted CLI output.

    Informational output (step, success, info, header, ...) is suppressed
    when quiet is set. Errors and rollback notifications are always shown.
    """

    def __init__(self, quiet: bool = False):
        self.quiet = quiet
        self.out = Console(highlight=False)
        self.err = Console(stderr=True, highlight=False)

    # -------------------------------------------------------------------------
    # Errors
    # -------------------------------------------------------------------------

    def fail(self, error: CliError) -> None:
        """Display an expected CLI failure."""
        options = get_output_options()
        if options.json:
            click.echo(json.dumps({"type": "fail", **error.to_dict()}, indent=2), err=True)
            return

        self.err.print(
            _boxed(
                error.title,
                error.message,
                error.code.value if error.code else None,
                error.suggestions,
                error.hints,
                badge="fail",
            )
        )
        if options.verbose and error.cause is not None:
            cause = error.cause
            self.err.print(Text("Cause:", style="dim"))
            self.err.print(Text("".join(traceback.format_exception(type(cause), cause, cause.__traceback__)), style="dim"))

    def error(self, err: BaseException) -> None:
        """Display an unexpected error."""
        options = get_output_options()
        title, message, stack = _error_info(err)
        if options.json:
            output: dict[str, Any] = {"type": "error", "title": title, "message": message}
            if options.verbose:
                output["stack"] = stack
            click.echo(json.dumps(output, indent=2), err=True)
            return

        self.err.print(
            _boxed(
                title,
                message,
                suggestions=["This is an unexpected error. Please report it if it persists."],
                badge="error",
            )
        )
        if options.verbose:
            self.err.print(Text("Stack trace:", style="dim"))
            self.err.print(Text(stack, style="dim"))

    def rollback_warning(self, failures: list[str]) -> None:
        """Display a warning about compensations that could not be completed."""
        if get_output_options().json:
            click.echo(
                json.dumps(
                    {
                        "type": "rollback_warning",
                        "message": "Some cleanup actions failed during rollback",
                        "failures": failures,
                    },
                    indent=2,
                ),
                err=True,
            )
            return

        self.err.print(
            _boxed(
                "Rollback Incomplete",
                "Some cleanup actions failed during error recovery.",
                suggestions=failures,
                hints=["You may need to manually clean up these resources."],
                badge="warning",
            )
        )

    # -------------------------------------------------------------------------
    # Execution plan notifications
    # -------------------------------------------------------------------------

    def abort_detected(self) -> None:
        self.out.print()
        self.out.print(
            f"[yellow]{ICONS['warning']}[/yellow] [bold]Abort detected.[/bold] "
            "Rollback will start after current task completes."
        )
        self.out.print("[dim]   Press Ctrl+C again to force quit (may leave incomplete changes).[/dim]")

    def force_exit(self) -> None:
        self.out.print()
        self.out.print(f"[bright_red]{ICONS['error']}[/bright_red] [bold]Force quitting...[/bold]")

    def rollback_start(self) -> None:
        self.out.print()
        self.out.print(
            f"[yellow]{ICONS['warning']}[/yellow] [bold]Rolling back changes, please do not interrupt...[/bold]"
        )
        self.out.print("[dim]   Press Ctrl+C to force quit (may leave incomplete changes).[/dim]")

    def rollback_complete(self) -> None:
        self.out.print(f"[bright_green]{ICONS['success']}[/bright_green] [dim]Rollback complete.[/dim]")

    # -------------------------------------------------------------------------
    # Status lines
    # -------------------------------------------------------------------------

    def success(self, message: str) -> None:
        if not self.quiet:
            self.out.print(f"[bright_green]{ICONS['success']}[/bright_green] {escape(message)}")

    def step(self, message: str) -> None:
        if not self.quiet:
            self.out.print(f"[dim]{ICONS['step']}[/dim] {escape(message)}")

    def warning(self, message: str) -> None:
        """Warnings are shown in quiet mode too."""
        self.out.print(f"[yellow]{ICONS['warning']}[/yellow] {escape(message)}")

    def info(self, message: str) -> None:
        if not self.quiet:
            self.out.print(f"[bright_blue]{ICONS['info']}[/bright_blue] {escape(message)}")

    def header(self, title: str) -> None:
        if not self.quiet:
            self.out.print()
            self.out.print(f"[bold]{escape(title)}[/bold]")
            self.out.print(f"[dim]{'─' * 40}[/dim]")

    def key_value(self, key: str, value: str) -> None:
        if not self.quiet:
            self.out.print(f"  [dim]{escape(key)}:[/dim] {escape(value)}")

    def text(self, message: str, indent: int = 0) -> None:
        if not self.quiet:
            self.out.print(f"{' ' * indent}{escape(message)}")

    def spacer(self) -> None:
        if not self.quiet:
            self.out.print()

    @contextmanager
    def spinner(self, start: str, success: Optional[str] = None, fail: str = "Operation failed") -> Iterator[None]:
        """
        Show a spinner while the wrapped block runs.

        Args:
            start: Message displayed while the block is running
            success: Message on success (defaults to start without trailing "...")
            fail: Message on failure; the original exception is re-raised
        """
        if self.quiet:
            yield
            return

        try:
            with self.out.status(escape(start), spinner="dots", spinner_style="cyan"):
                yield
        except Exception:
            self.out.print(f"[bright_red]{ICONS['error']}[/bright_red] {escape(fail)}")
            raise
        self.success(success or start.removesuffix("..."))


# Shared printer for the CLI; commands toggle quiet per invocation
printer = Printer()
