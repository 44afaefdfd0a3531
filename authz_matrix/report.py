"""
Run report.

Writes every topology's mismatches to results/matrix_results.json and prints
a Rich table per topology.
"""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from rich.console import Console
from rich.table import Table

from authz_matrix import FailureRecord


@dataclass
class TopologyReport:
    """Outcome of one full matrix run against one topology."""

    topology: str
    trials: int
    failures: list[FailureRecord] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.failures


def save_results(reports: list[TopologyReport], results_dir: Path) -> Path:
    """Serialise reports to JSON."""
    results_dir.mkdir(parents=True, exist_ok=True)
    output_path = results_dir / "matrix_results.json"
    serialisable = [
        {
            "topology": r.topology,
            "trials": r.trials,
            "passed": r.passed,
            "failures": [asdict(f) for f in r.failures],
        }
        for r in reports
    ]
    with open(output_path, "w") as fh:
        json.dump(
            {"run_at": datetime.now(timezone.utc).isoformat(), "results": serialisable},
            fh,
            indent=2,
        )
    return output_path


def print_table(report: TopologyReport, console: Console | None = None) -> None:
    """Print the mismatches of one topology as a Rich table."""
    console = console or Console()
    if report.passed:
        console.print(
            f"[green]✓ {report.topology}: {report.trials} trials, no mismatches[/green]"
        )
        return

    table = Table(title=f"Authorization mismatches ({report.topology})", show_lines=True)
    table.add_column("#", justify="right")
    table.add_column("Test", style="cyan", no_wrap=True)
    table.add_column("Role", style="magenta")
    table.add_column("Db", style="white")
    table.add_column("Result", style="white")

    for i, f in enumerate(report.failures, 1):
        table.add_row(str(i), f.test_name, f.role_key, f.run_on_db, f.message)

    console.print(table)
    console.print(
        f"\n[bold]{report.topology}: {report.trials} trials  "
        f"[red]{len(report.failures)} mismatches[/red][/bold]"
    )
