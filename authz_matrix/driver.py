"""
Matrix driver.

Runs the full authorization matrix against every configured topology:
  1. Load the role and command catalogs
  2. Check every declared expectation references a known role
  3. Bootstrap the operator and run the matrix, once per topology
  4. Save matrix_results.json
  5. Print per-topology mismatch tables and the topology comparison

Exit status: 0 clean, 1 mismatches, 2 configuration error, 3 environment error.
"""
from __future__ import annotations

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import Callable, Sequence

import structlog
from rich.console import Console

from authz_matrix.aggregator import FailureAggregator
from authz_matrix.catalog import RoleCatalog, TestCase, load_test_cases
from authz_matrix.compare import print_comparison
from authz_matrix.config import RESULTS_DIR, TOPOLOGIES, HarnessSettings
from authz_matrix.errors import (
    AuthorizationMismatchError,
    ConfigurationError,
    HarnessEnvironmentError,
)
from authz_matrix.report import TopologyReport, print_table, save_results
from authz_matrix.runner import MatrixRunner
from authz_matrix.system import Deployment, MongoDeployment
from authz_matrix.validator import validate

EXIT_OK = 0
EXIT_MISMATCH = 1
EXIT_CONFIGURATION = 2
EXIT_ENVIRONMENT = 3

LOG_LEVELS = ["debug", "info", "warning", "error"]

logger = structlog.get_logger(__name__)

DeploymentFactory = Callable[[str, str, HarnessSettings], Deployment]


def configure_logging(level: str = "info") -> None:
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
    )


def mongo_deployment(name: str, uri: str, settings: HarnessSettings) -> Deployment:
    return MongoDeployment(name, uri, timeout_ms=settings.server_selection_timeout_ms)


def load_catalogs(roles_module: str, cases_module: str) -> tuple[RoleCatalog, tuple[TestCase, ...]]:
    """Import ``ROLES`` and ``TESTS`` from the given modules."""
    try:
        roles = importlib.import_module(roles_module)
        cases = importlib.import_module(cases_module)
    except ImportError as exc:
        raise ConfigurationError(f"Cannot import catalog module: {exc}") from exc
    try:
        return RoleCatalog.from_declarations(roles.ROLES), load_test_cases(cases.TESTS)
    except AttributeError as exc:
        raise ConfigurationError(f"Catalog module is missing {exc.name}") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="authz-matrix",
        description="Check every (role x command) authorization outcome against live deployments.",
    )
    parser.add_argument(
        "--topology",
        action="append",
        choices=sorted(TOPOLOGIES),
        help="Topology to run against (repeatable, default: all)",
    )
    parser.add_argument("--roles", default="authz_matrix.catalogs.builtin_roles")
    parser.add_argument("--cases", default="authz_matrix.catalogs.commands")
    parser.add_argument(
        "--exhaustive",
        action="store_true",
        help="Also run roles a test case does not list, expecting them to be denied",
    )
    parser.add_argument(
        "--verify-revocation",
        action="store_true",
        help="After each trial, check the probe identity no longer authenticates",
    )
    parser.add_argument("--results-dir", type=Path, default=RESULTS_DIR)
    parser.add_argument(
        "--log-level",
        type=str.lower,
        choices=LOG_LEVELS,
        default="info",
    )
    return parser


def run_topologies(
    topologies: dict[str, str],
    catalog: RoleCatalog,
    test_cases: Sequence[TestCase],
    settings: HarnessSettings,
    runner: MatrixRunner,
    factory: DeploymentFactory = mongo_deployment,
    console: Console | None = None,
) -> list[TopologyReport]:
    console = console or Console()
    reports: list[TopologyReport] = []
    for name, uri in topologies.items():
        console.rule(f"[bold blue]{name}")
        deployment = factory(name, uri, settings)
        try:
            runner.provisioner.ensure_operator(deployment)
            aggregator = FailureAggregator()
            runner.run(deployment, test_cases, catalog, aggregator)
        finally:
            deployment.close()
        reports.append(TopologyReport(name, aggregator.trials, aggregator.records))
    return reports


def main(
    argv: Sequence[str] | None = None,
    factory: DeploymentFactory = mongo_deployment,
    console: Console | None = None,
) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    console = console or Console()
    settings = HarnessSettings.from_env()

    try:
        catalog, test_cases = load_catalogs(args.roles, args.cases)
        validate(test_cases, catalog)
    except ConfigurationError as exc:
        console.print(f"[red]Configuration error: {exc}[/red]")
        return EXIT_CONFIGURATION

    selected = {name: TOPOLOGIES[name] for name in (args.topology or TOPOLOGIES)}
    runner = MatrixRunner(
        settings,
        deny_unlisted=args.exhaustive,
        verify_revocation=args.verify_revocation,
    )
    console.print(
        f"[bold]{len(test_cases)} test cases x {len(catalog)} roles on "
        f"{', '.join(selected)}[/bold]"
    )

    try:
        reports = run_topologies(
            selected, catalog, test_cases, settings, runner, factory, console
        )
    except HarnessEnvironmentError as exc:
        logger.error("matrix_aborted", error=str(exc))
        console.print(f"[red]Environment error, run aborted: {exc}[/red]")
        return EXIT_ENVIRONMENT

    path = save_results(reports, args.results_dir)
    for report in reports:
        print_table(report, console)
    if len(reports) > 1:
        print_comparison(reports, console)
    console.print(f"\nResults written to [cyan]{path}[/cyan]")

    aggregate = FailureAggregator()
    for report in reports:
        aggregate.collect(report.failures)
    try:
        aggregate.assert_empty()
    except AuthorizationMismatchError as exc:
        logger.warning("matrix_mismatches", failures=len(exc.records))
        return EXIT_MISMATCH
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
