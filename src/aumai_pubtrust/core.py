"""Trusted publisher reconciliation for a batch of packages."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager

from aumai_pubtrust.confirm import confirm as confirm_prompt
from aumai_pubtrust.errors import (
    BatchAbortedError,
    PubtrustError,
    RegistryCommandFailed,
)
from aumai_pubtrust.models import (
    DesiredBinding,
    ExistingBinding,
    OperationRecord,
    OperationStatus,
    OutputMode,
    ReconcileOptions,
    ReconciliationDecision,
)
from aumai_pubtrust.registry import NpmTrustClient, parse_existing_binding
from aumai_pubtrust.reporting import ReconciliationObserver

logger = logging.getLogger(__name__)

ConfirmFn = Callable[..., None]

# ---------------------------------------------------------------------------
# Decision
# ---------------------------------------------------------------------------


def decide(
    existing: ExistingBinding | None, desired: DesiredBinding
) -> ReconciliationDecision:
    """Choose the minimal change that makes *existing* equal *desired*.

    Only repository and pipeline file are compared; the CI environment
    claim of an existing binding is not visible in the comparison.
    """
    if existing is None:
        return ReconciliationDecision.create_only
    if existing.matches(desired):
        return ReconciliationDecision.skip
    return ReconciliationDecision.revoke_then_create


# ---------------------------------------------------------------------------
# TrustReconciler
# ---------------------------------------------------------------------------


class TrustReconciler:
    """Create, list and revoke trusted publisher bindings package by package.

    Packages are processed strictly in order, one registry invocation at a
    time. The first failing package aborts the batch with
    :class:`BatchAbortedError`; nothing already done is rolled back.

    Args:
        client: Registry client adapter.
        confirm: Confirmation gate, called as
            ``confirm(prompt, auto_accept=..., dry_run=...)``.
        observer: Receives progress events; defaults to a silent one.
    """

    def __init__(
        self,
        client: NpmTrustClient,
        *,
        confirm: ConfirmFn = confirm_prompt,
        observer: ReconciliationObserver | None = None,
    ) -> None:
        self._client = client
        self._confirm = confirm
        self._observer = observer or ReconciliationObserver()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def apply(
        self,
        packages: Sequence[str],
        desired: DesiredBinding,
        options: ReconcileOptions | None = None,
    ) -> list[OperationRecord]:
        """Converge every package in *packages* onto *desired*.

        The current binding is always queried live, dry-run included, since
        it decides between skipping, creating and replacing. Under dry-run
        revoke and create are recorded but not run.

        Returns:
            The audit trail: one record per query, revoke and create.
        """
        options = options or ReconcileOptions()
        self._client.check_minimum_version()
        if not packages:
            return []

        self._observer.target(desired, packages)
        self._confirm(
            f"Create trusted relationships for {len(packages)} package(s)?",
            auto_accept=options.yes,
            dry_run=options.dry_run,
        )

        records: list[OperationRecord] = []
        for package in packages:
            with self._abort_on_failure(package, records):
                query = self._query(package)
                records.append(query)
                existing = query.parsed_json
                self._observer.queried(package, existing)

                decision = decide(existing, desired)
                logger.debug("%s: %s", package, decision.value)
                if existing is not None:
                    if decision is ReconciliationDecision.skip:
                        self._observer.skipped(package, existing)
                        continue
                    records.append(self._revoke(package, existing, options.dry_run))

                args = self._client.create_args(package, desired, options.env)
                self._observer.creating(
                    package, self._client.command(args), options.dry_run
                )
                records.append(self._mutate(package, args, options.dry_run))
        return records

    def list_relationships(
        self,
        packages: Sequence[str],
        options: ReconcileOptions | None = None,
    ) -> list[OperationRecord]:
        """Query the current binding of every package.

        A failed query is retried once with npm attached to the terminal, so
        one-time password prompts can be answered, and then queried a final
        time with captured output to obtain the JSON.

        Returns:
            One record per package; ``parsed_json`` is ``None`` when the
            package has no binding. Under dry-run nothing is invoked and each
            record holds the query command only.
        """
        options = options or ReconcileOptions()
        self._client.check_minimum_version()

        records: list[OperationRecord] = []
        for package in packages:
            if options.dry_run:
                records.append(
                    OperationRecord(
                        package=package,
                        command=self._client.command(
                            self._client.list_args(package)
                        ),
                        status=OperationStatus.dry_run,
                    )
                )
                continue
            with self._abort_on_failure(package, records):
                record = self._query_with_retry(package)
                self._observer.queried(package, record.parsed_json)
                records.append(record)

        self._observer.relationships(records)
        return records

    def revoke_all(
        self,
        packages: Sequence[str],
        options: ReconcileOptions | None = None,
    ) -> list[OperationRecord]:
        """Revoke the binding of every package that has one.

        Returns:
            One record per revocation. Packages without a binding contribute
            nothing, and when none has one no confirmation is asked.
        """
        options = options or ReconcileOptions()
        self._client.check_minimum_version()

        bound: list[tuple[str, ExistingBinding]] = []
        for package in packages:
            with self._abort_on_failure(package, []):
                existing = self._query(package).parsed_json
            self._observer.queried(package, existing)
            if existing is not None:
                bound.append((package, existing))

        if not bound:
            return []

        affected = len({package for package, _ in bound})
        self._confirm(
            f"Revoke {len(bound)} trusted relationship(s) "
            f"across {affected} package(s)?",
            auto_accept=options.yes,
            dry_run=options.dry_run,
        )

        records: list[OperationRecord] = []
        for package, existing in bound:
            with self._abort_on_failure(package, records):
                records.append(self._revoke(package, existing, options.dry_run))
        return records

    # ------------------------------------------------------------------
    # Registry steps
    # ------------------------------------------------------------------

    def _query(self, package: str) -> OperationRecord:
        result = self._client.run(self._client.list_args(package))
        return OperationRecord(
            package=package,
            command=result.command,
            status=OperationStatus.success,
            output=result.stdout,
            parsed_json=parse_existing_binding(result.stdout),
        )

    def _query_with_retry(self, package: str) -> OperationRecord:
        try:
            return self._query(package)
        except RegistryCommandFailed as exc:
            logger.warning(
                "trust list for %s failed, retrying interactively: %s", package, exc
            )

        try:
            self._client.run(self._client.list_args(package), OutputMode.inherited)
        except RegistryCommandFailed as exc:
            logger.warning("interactive trust list for %s failed: %s", package, exc)

        return self._query(package)

    def _revoke(
        self, package: str, existing: ExistingBinding, dry_run: bool
    ) -> OperationRecord:
        args = self._client.revoke_args(existing.id, package)
        self._observer.revoking(package, self._client.command(args), dry_run)
        return self._mutate(package, args, dry_run)

    def _mutate(self, package: str, args: list[str], dry_run: bool) -> OperationRecord:
        if dry_run:
            return OperationRecord(
                package=package,
                command=self._client.command(args),
                status=OperationStatus.dry_run,
            )
        result = self._client.run(args, OutputMode.inherited)
        return OperationRecord(
            package=package,
            command=result.command,
            status=OperationStatus.success,
            output=result.stdout,
        )

    @contextmanager
    def _abort_on_failure(
        self, package: str, records: list[OperationRecord]
    ) -> Iterator[None]:
        try:
            yield
        except PubtrustError as exc:
            self._observer.aborted(package, exc)
            raise BatchAbortedError(package, records, exc) from exc


__all__ = ["TrustReconciler", "decide"]
