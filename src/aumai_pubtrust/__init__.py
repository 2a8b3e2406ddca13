"""aumai-pubtrust: Batch-manage npm trusted publishers for CI/CD pipelines."""

from aumai_pubtrust.confirm import confirm
from aumai_pubtrust.core import TrustReconciler, decide
from aumai_pubtrust.errors import (
    BatchAbortedError,
    CancelledError,
    InferenceError,
    NonInteractiveError,
    ProviderNotImplementedError,
    PubtrustError,
    RegistryCommandFailed,
    RegistryTimeoutError,
    VersionBelowMinimumError,
)
from aumai_pubtrust.inference import infer_target
from aumai_pubtrust.models import (
    DesiredBinding,
    ExistingBinding,
    InferenceOptions,
    OperationRecord,
    OperationStatus,
    Provider,
    ReconcileOptions,
    ReconciliationDecision,
)
from aumai_pubtrust.registry import NpmTrustClient
from aumai_pubtrust.reporting import ConsoleObserver, ReconciliationObserver
from aumai_pubtrust.workspace import find_packages

__version__ = "0.1.0"

__all__ = [
    "BatchAbortedError",
    "CancelledError",
    "ConsoleObserver",
    "DesiredBinding",
    "ExistingBinding",
    "InferenceError",
    "InferenceOptions",
    "NonInteractiveError",
    "NpmTrustClient",
    "OperationRecord",
    "OperationStatus",
    "Provider",
    "ProviderNotImplementedError",
    "PubtrustError",
    "ReconcileOptions",
    "ReconciliationDecision",
    "ReconciliationObserver",
    "RegistryCommandFailed",
    "RegistryTimeoutError",
    "TrustReconciler",
    "VersionBelowMinimumError",
    "confirm",
    "decide",
    "find_packages",
    "infer_target",
]
