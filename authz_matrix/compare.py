"""
Topology comparison.

Authorization semantics must not depend on topology, so the same catalogs run
against every topology should produce the same mismatches. This module lists
the (test, role, db) triples that only some topologies reported.
"""
from __future__ import annotations

from rich.console import Console
from rich.table import Table

from authz_matrix.report import TopologyReport

TrialKey = tuple[str, str, str]


def divergences(reports: list[TopologyReport]) -> dict[TrialKey, list[str]]:
    """Map each mismatching trial not shared by all topologies to the topologies that saw it."""
    seen: dict[TrialKey, list[str]] = {}
    for report in reports:
        for f in report.failures:
            topologies = seen.setdefault((f.test_name, f.role_key, f.run_on_db), [])
            if report.topology not in topologies:
                topologies.append(report.topology)

    everywhere = len(reports)
    return {key: tops for key, tops in seen.items() if len(tops) < everywhere}


def print_comparison(reports: list[TopologyReport], console: Console | None = None) -> None:
    console = console or Console()
    diff = divergences(reports)
    if not diff:
        names = ", ".join(r.topology for r in reports)
        console.print(f"[green]Mismatches identical across topologies ({names})[/green]")
        return

    table = Table(title="Topology-dependent outcomes", show_lines=True)
    table.add_column("Test", style="cyan", no_wrap=True)
    table.add_column("Role", style="magenta")
    table.add_column("Db")
    table.add_column("Reported by", style="yellow")
    for (test, role, db), topologies in diff.items():
        table.add_row(test, role, db, ", ".join(topologies))
    console.print(table)
