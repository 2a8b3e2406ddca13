"""Exception hierarchy for aumai-pubtrust."""

from __future__ import annotations

from collections.abc import Sequence

from aumai_pubtrust.models import OperationRecord


class PubtrustError(RuntimeError):
    """Base class for every error this package raises on purpose."""


class InferenceError(PubtrustError):
    """Provider, repository or pipeline file could not be determined."""


class ProviderNotImplementedError(InferenceError, NotImplementedError):
    """The provider is recognised but not supported yet."""


# ---------------------------------------------------------------------------
# Registry client
# ---------------------------------------------------------------------------


class RegistryError(PubtrustError):
    """Base class for failures of the registry client."""


class VersionBelowMinimumError(RegistryError):
    def __init__(self, found: str, minimum: str) -> None:
        super().__init__(
            f"npm version {minimum} or newer is required, but got {found}. "
            "Please upgrade npm first."
        )
        self.found = found
        self.minimum = minimum


class RegistryCommandFailed(RegistryError):
    """A registry invocation exited non-zero or could not be started."""

    def __init__(
        self,
        command: Sequence[str],
        exit_code: int | None,
        detail: str = "",
    ) -> None:
        code = "unknown" if exit_code is None else str(exit_code)
        message = f'Failed to run command "{" ".join(command)}" (exit={code})'
        if detail:
            message = f"{message}\n{detail}"
        super().__init__(message)
        self.command = list(command)
        self.exit_code = exit_code
        self.detail = detail


class RegistryTimeoutError(RegistryCommandFailed):
    def __init__(self, command: Sequence[str], timeout: float) -> None:
        super().__init__(command, None, f"Timed out after {timeout:g}s")
        self.timeout = timeout


class RegistryResponseError(RegistryError):
    """The registry client produced output that cannot be interpreted."""


# ---------------------------------------------------------------------------
# Confirmation gate
# ---------------------------------------------------------------------------


class ConfirmationError(PubtrustError):
    pass


class CancelledError(ConfirmationError):
    def __init__(self) -> None:
        super().__init__("Operation cancelled by user.")


class NonInteractiveError(ConfirmationError):
    def __init__(self) -> None:
        super().__init__(
            "This command requires confirmation. "
            "Re-run with --yes in non-interactive mode."
        )


# ---------------------------------------------------------------------------
# Batch
# ---------------------------------------------------------------------------


class BatchAbortedError(PubtrustError):
    """A package failed mid-batch; later packages were not attempted.

    ``records`` is the audit trail up to the failure point. Operations it
    lists were not rolled back.
    """

    def __init__(
        self,
        package: str,
        records: Sequence[OperationRecord],
        cause: PubtrustError,
    ) -> None:
        super().__init__(f"Aborted at package {package!r}: {cause}")
        self.package = package
        self.records = list(records)
        self.cause = cause


__all__ = [
    "BatchAbortedError",
    "CancelledError",
    "ConfirmationError",
    "InferenceError",
    "NonInteractiveError",
    "ProviderNotImplementedError",
    "PubtrustError",
    "RegistryCommandFailed",
    "RegistryError",
    "RegistryResponseError",
    "RegistryTimeoutError",
    "VersionBelowMinimumError",
]
