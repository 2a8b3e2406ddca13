"""Progress reporting for the reconciliation engine."""

from __future__ import annotations

from collections.abc import Sequence

import click

from aumai_pubtrust.models import (
    DesiredBinding,
    ExistingBinding,
    OperationRecord,
    OperationStatus,
)


class ReconciliationObserver:
    """Receives structured progress events; every hook is a no-op here.

    ``revoking`` and ``creating`` fire before the registry is invoked, so a
    console observer can announce a command whose output follows it.
    """

    def target(self, desired: DesiredBinding, packages: Sequence[str]) -> None:
        pass

    def queried(self, package: str, existing: ExistingBinding | None) -> None:
        pass

    def skipped(self, package: str, existing: ExistingBinding) -> None:
        pass

    def revoking(self, package: str, command: Sequence[str], dry_run: bool) -> None:
        pass

    def creating(self, package: str, command: Sequence[str], dry_run: bool) -> None:
        pass

    def relationships(self, records: Sequence[OperationRecord]) -> None:
        pass

    def aborted(self, package: str, error: Exception) -> None:
        pass


def describe_binding(binding: ExistingBinding) -> str:
    kind = binding.kind or "?"
    return f"{kind} {binding.repository} {binding.pipeline_file} (id={binding.id})"


def _command(command: Sequence[str], dry_run: bool) -> str:
    return ("[dry-run] " if dry_run else "") + " ".join(command)


class ConsoleObserver(ReconciliationObserver):
    """Render events to the terminal with click."""

    def target(self, desired: DesiredBinding, packages: Sequence[str]) -> None:
        click.echo(f"Provider  : {desired.provider.value}")
        click.echo(f"Repository: {desired.repository}")
        click.echo(f"Workflow  : {desired.pipeline_file}")
        click.echo(f"Packages  : {len(packages)}")
        for package in packages:
            click.echo(f"  - {package}")

    def queried(self, package: str, existing: ExistingBinding | None) -> None:
        if existing is not None:
            click.echo(f"found {package}: {describe_binding(existing)}")

    def skipped(self, package: str, existing: ExistingBinding) -> None:
        click.echo(
            click.style("skip", fg="yellow")
            + f" {package}: already trusts {existing.repository}"
            + f" {existing.pipeline_file}"
        )

    def revoking(self, package: str, command: Sequence[str], dry_run: bool) -> None:
        click.echo(
            click.style("revoke", fg="red") + f" {package}: {_command(command, dry_run)}"
        )

    def creating(self, package: str, command: Sequence[str], dry_run: bool) -> None:
        click.echo(
            click.style("trust", fg="green") + f" {package}: {_command(command, dry_run)}"
        )

    def relationships(self, records: Sequence[OperationRecord]) -> None:
        for record in records:
            if record.parsed_json is not None:
                click.echo(f"{record.package}: {describe_binding(record.parsed_json)}")
            elif record.status is OperationStatus.dry_run:
                click.echo(f"{record.package}: {_command(record.command, True)}")
            else:
                click.echo(
                    f"{record.package}: " + click.style("no trusted publisher", dim=True)
                )

    def aborted(self, package: str, error: Exception) -> None:
        click.echo(click.style("failed", fg="red") + f" {package}", err=True)


__all__ = ["ConsoleObserver", "ReconciliationObserver", "describe_binding"]
