# src/kubesync/ui/formatter.py
import difflib
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from kubesync.core.engine import SyncEngine
from kubesync.core.models import ErrorKind, SaveError
from kubesync.sync.controller import ResourceSyncController


class SessionFormatter:
    """
    SessionFormatter: terminal renderings of a session for rich front-ends.
    Responsible for unsaved-change diffs, save errors, conflict banners and
    the session summary table.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def display_diff(self, original_text: str, edited_text: str, title: str) -> bool:
        """
        Renders a colorized unified diff of the canonical YAML against the
        edited YAML. Returns False when there is nothing to show.
        """
        diff = difflib.unified_diff(
            original_text.splitlines(),
            edited_text.splitlines(),
            fromfile="server",
            tofile="local",
            lineterm=""
        )
        diff_list = list(diff)

        if not diff_list:
            self.console.print(f"[dim]ℹ No unsaved changes for {title}.[/dim]")
            return False

        syntax = Syntax("\n".join(diff_list), "diff", theme="monokai", line_numbers=True)
        self.console.print(Panel(
            syntax,
            title=f"Unsaved changes: {title}",
            border_style="yellow"
        ))
        return True

    def show_session_diff(self, controller: ResourceSyncController) -> bool:
        if controller.is_loading:
            return False
        original = controller.codec.serialize(controller.canonical.tree)
        return self.display_diff(original, controller.text, controller.identity.key)

    def show_save_error(self, error: Optional[SaveError]):
        """Prints the error headline and, for validation failures, one row per field."""
        if error is None:
            return

        label = {
            ErrorKind.VALIDATION: "Validation failed",
            ErrorKind.PARSE: "YAML does not parse",
            ErrorKind.TRANSPORT: "Request failed",
        }[error.kind]
        headline = f"[bold red]{label}:[/bold red] {error.message}"
        if error.reason:
            headline += f" [dim]({error.reason})[/dim]"
        self.console.print(headline)

        if not error.causes:
            return

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Field", style="cyan")
        table.add_column("Message")
        table.add_column("Reason", style="dim")
        for cause in error.causes:
            table.add_row(cause.field, cause.message, cause.reason or "")
        self.console.print(table)

    def show_conflict(self, controller: ResourceSyncController) -> bool:
        if not controller.has_server_update:
            return False
        self.console.print(Panel(
            f"[bold yellow]⚠  {controller.identity.key} changed on the server[/bold yellow]\n\n"
            f"Server version: [white]{controller.pending_version_token}[/white]\n"
            f"Your edits are untouched. Reload to take the server copy, "
            f"or dismiss to keep editing.",
            expand=False, border_style="yellow"
        ))
        return True

    def print_session_table(self, engine: SyncEngine):
        """Builds the summary table of every open session."""
        table = Table(title="KubeSync Sessions", show_header=True, header_style="bold magenta")
        table.add_column("Object", style="cyan")
        table.add_column("Version")
        table.add_column("State", style="bold")
        table.add_column("Errors", justify="center")

        for identity, controller in engine.sessions.items():
            state = controller.state.value if controller.state else "Loading"
            color = {
                "Clean": "green", "Dirty": "yellow", "Saving": "blue", "ConflictPending": "red",
            }.get(state, "dim")
            error = controller.save_error
            table.add_row(
                identity.key,
                controller.version_token or "-",
                f"[{color}]{state}[/{color}]",
                str(len(error.causes) if error.causes else 1) if error else "-"
            )

        self.console.print(table)
