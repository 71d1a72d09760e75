"""Rich renderables shared by the CLI and the interactive console."""

from typing import Iterable

from rich.table import Table

from chaoscraft.brain.models import ChaosTest, TestStatus

STATUS_STYLES = {
    TestStatus.NOT_STARTED: "dim",
    TestStatus.RUNNING: "yellow",
    TestStatus.COMPLETED: "green",
    TestStatus.FAILED: "bold red",
}


def status_markup(status: TestStatus) -> str:
    style = STATUS_STYLES.get(status, "white")
    return f"[{style}]{status}[/{style}]"


def render_tests_table(tests: Iterable[ChaosTest]) -> Table:
    table = Table(title="Chaos Tests")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="white")
    table.add_column("Started (UTC)", style="magenta")
    table.add_column("Status")
    for test in tests:
        table.add_row(
            test.id[:8],
            test.name,
            test.created_at.strftime("%H:%M:%S"),
            status_markup(test.status),
        )
    return table
