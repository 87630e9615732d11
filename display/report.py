"""Rich signal report: one table row per signal.

The display layer is fully decoupled from the engine. It receives the ranked
list get_signals() returned and an action catalog, and renders them. It never
re-sorts, filters or recomputes anything.

Usage:
    console = Console()
    SignalReport(console).render(signals, DEFAULT_SIGNAL_ACTIONS)
"""

from collections.abc import Sequence

from rich.console import Console
from rich.table import Table

from copilot.actions import CopilotAction
from copilot.signal_utils import get_recommended_signal_actions
from schemas.signal import Signal, SignalSeverity

_SEVERITY_STYLE: dict[SignalSeverity, str] = {
    SignalSeverity.CRITICAL: "bold white on red",
    SignalSeverity.HIGH: "red",
    SignalSeverity.MEDIUM: "yellow",
    SignalSeverity.LOW: "dim",
}


def _scope_label(signal: Signal) -> str:
    parts = [signal.scope.value]
    if signal.class_id:
        parts.append(f"class={signal.class_id}")
    if signal.student_id:
        parts.append(f"student={signal.student_id}")
    return "\n".join(parts)


class SignalReport:
    """Renders ranked signals and their recommended actions to a Rich console."""

    def __init__(self, console: Console) -> None:
        self._console = console

    def render(self, signals: Sequence[Signal], catalog: Sequence[CopilotAction]) -> None:
        """Print the signal table, or a notice when there is nothing to show."""
        if not signals:
            self._console.print("\n[green]No signals detected.[/green]")
            return
        self._console.print()
        self._console.print(self.build_table(signals, catalog))

    def build_table(self, signals: Sequence[Signal], catalog: Sequence[CopilotAction]) -> Table:
        """Build the table without printing it. Kept separate for tests."""
        table = Table(title="Signals", show_lines=True, border_style="bright_black")
        table.add_column("#",           style="dim",  width=3,  justify="right")
        table.add_column("Severity",    width=10,     justify="center")
        table.add_column("Type",        style="cyan", min_width=16)
        table.add_column("Scope",       style="dim",  min_width=14)
        table.add_column("Signal",      min_width=30)
        table.add_column("Detected at", style="dim",  width=24)
        table.add_column("Actions",     min_width=20)

        for i, signal in enumerate(signals, 1):
            style = _SEVERITY_STYLE[signal.severity]
            actions = get_recommended_signal_actions(signal, catalog)
            table.add_row(
                str(i),
                f"[{style}]{signal.severity.value}[/{style}]",
                signal.type.value,
                _scope_label(signal),
                f"[bold]{signal.title}[/bold]\n{signal.summary}",
                signal.detected_at,
                "\n".join(f"{n}. {a.title}" for n, a in enumerate(actions, 1)) or "-",
            )
        return table
