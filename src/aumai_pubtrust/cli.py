"""CLI entry point for aumai-pubtrust."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any, NoReturn

import click

from aumai_pubtrust.core import TrustReconciler
from aumai_pubtrust.errors import BatchAbortedError, PubtrustError
from aumai_pubtrust.inference import infer_target
from aumai_pubtrust.log import configure_logging
from aumai_pubtrust.models import (
    InferenceOptions,
    OperationRecord,
    Provider,
    ReconcileOptions,
)
from aumai_pubtrust.registry import DEFAULT_TIMEOUT, NpmTrustClient
from aumai_pubtrust.reporting import ConsoleObserver, ReconciliationObserver
from aumai_pubtrust.workspace import find_packages

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_PROVIDERS = [provider.value for provider in Provider]

_SHARED_OPTIONS: list[Callable[[Any], Any]] = [
    click.option(
        "--provider",
        type=click.Choice(_PROVIDERS),
        envvar="PUBTRUST_PROVIDER",
        help="CI/CD provider (inferred from the git remote by default).",
    ),
    click.option(
        "--repo",
        envvar="PUBTRUST_REPO",
        metavar="OWNER/NAME",
        help="Repository allowed to publish.",
    ),
    click.option(
        "--file",
        "pipeline_file",
        envvar="PUBTRUST_FILE",
        metavar="NAME",
        help="Workflow file that publishes, e.g. release.yml.",
    ),
    click.option(
        "--env",
        envvar="PUBTRUST_ENV",
        metavar="NAME",
        help="CI environment name for the trust claim.",
    ),
    click.option(
        "--registry",
        envvar="PUBTRUST_REGISTRY",
        metavar="URL",
        help="Base URL of the npm registry.",
    ),
    click.option(
        "--mise/--no-mise",
        default=None,
        envvar="PUBTRUST_MISE",
        help="Run npm through mise (default: on when running under mise).",
    ),
    click.option("--dry-run", is_flag=True, help="Show what would be done."),
    click.option(
        "-y", "--yes", is_flag=True, help='Answer "yes" to confirmation prompts.'
    ),
    click.option(
        "-C",
        "--dir",
        "directory",
        type=click.Path(exists=True, file_okay=False, path_type=Path),
        envvar="PUBTRUST_DIR",
        help="Run as if started in this directory.",
    ),
    click.option("--json", "json_output", is_flag=True, help="Only output JSON."),
    click.option(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        show_default=True,
        envvar="PUBTRUST_TIMEOUT",
        help="Seconds before an npm invocation is abandoned.",
    ),
    click.option("-v", "--verbose", is_flag=True, help="Log debug output."),
]


def _shared_options(func: Callable[..., Any]) -> Callable[..., Any]:
    for option in reversed(_SHARED_OPTIONS):
        func = option(func)
    return func


def _running_under_mise() -> bool:
    return "/mise/" in sys.executable


def _setup_logging(options: dict[str, Any]) -> None:
    configure_logging(level=logging.DEBUG if options["verbose"] else logging.WARNING)


def _reconciler(options: dict[str, Any]) -> TrustReconciler:
    mise = options["mise"]
    client = NpmTrustClient(
        cwd=options["directory"],
        mise=_running_under_mise() if mise is None else mise,
        registry=options["registry"],
        timeout=options["timeout"],
    )
    observer = (
        ReconciliationObserver() if options["json_output"] else ConsoleObserver()
    )
    return TrustReconciler(client, observer=observer)


def _reconcile_options(options: dict[str, Any]) -> ReconcileOptions:
    return ReconcileOptions(
        env=options["env"], dry_run=options["dry_run"], yes=options["yes"]
    )


def _emit(records: Sequence[OperationRecord], options: dict[str, Any]) -> None:
    if options["json_output"]:
        payload = [r.model_dump(mode="json", by_alias=True) for r in records]
        click.echo(json.dumps(payload, indent=2))


def _fail(exc: PubtrustError) -> NoReturn:
    click.echo(f"Error: {exc}", err=True)
    if isinstance(exc, BatchAbortedError) and exc.records:
        click.echo("Completed before the failure (not rolled back):", err=True)
        for record in exc.records:
            click.echo(
                f"  [{record.status.value}] {record.package}: "
                f"{' '.join(record.command)}",
                err=True,
            )
    sys.exit(1)


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


@click.group()
@click.version_option()
def main() -> None:
    """AumAI PubTrust: batch-manage npm trusted publishers."""


@main.command("create")
@click.argument("packages", nargs=-1, metavar="[github|gitlab] [PACKAGES]...")
@_shared_options
def create_command(packages: tuple[str, ...], **options: Any) -> None:
    """Trust a CI/CD workflow to publish the selected packages.

    PACKAGES are package.json files or package directories (globs allowed).
    A leading "github" or "gitlab" selects the provider.
    """
    patterns = list(packages)
    if patterns and patterns[0] in _PROVIDERS:
        options["provider"] = patterns.pop(0)

    _setup_logging(options)
    try:
        names = find_packages(options["directory"], patterns)
        desired = infer_target(
            InferenceOptions(
                cwd=options["directory"],
                provider=options["provider"],
                repository=options["repo"],
                pipeline_file=options["pipeline_file"],
            )
        )
        records = _reconciler(options).apply(
            names, desired, _reconcile_options(options)
        )
    except PubtrustError as exc:
        _fail(exc)

    _emit(records, options)


@main.command("list")
@click.argument("packages", nargs=-1)
@_shared_options
def list_command(packages: tuple[str, ...], **options: Any) -> None:
    """List the trusted publishers of the selected packages."""
    _setup_logging(options)
    try:
        names = find_packages(options["directory"], packages)
        records = _reconciler(options).list_relationships(
            names, _reconcile_options(options)
        )
    except PubtrustError as exc:
        _fail(exc)

    _emit(records, options)


@main.command("revoke")
@click.argument("packages", nargs=-1)
@_shared_options
def revoke_command(packages: tuple[str, ...], **options: Any) -> None:
    """Revoke the trusted publishers of the selected packages."""
    _setup_logging(options)
    try:
        names = find_packages(options["directory"], packages)
        records = _reconciler(options).revoke_all(names, _reconcile_options(options))
    except PubtrustError as exc:
        _fail(exc)

    if not records and not options["json_output"]:
        click.echo("No trusted relationships to revoke.")
    _emit(records, options)


if __name__ == "__main__":
    main()
