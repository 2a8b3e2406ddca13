"""Pydantic models for aumai-pubtrust."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class Provider(str, Enum):
    """CI/CD providers a trusted publisher binding can point at."""

    github = "github"
    gitlab = "gitlab"


class PackageManager(str, Enum):
    """Programs whose ``publish`` sub-command marks a publish step."""

    npm = "npm"
    pnpm = "pnpm"
    yarn = "yarn"


class OutputMode(str, Enum):
    """How a registry invocation's stdio is wired."""

    piped = "piped"
    inherited = "inherited"


class OperationStatus(str, Enum):
    success = "success"
    dry_run = "dry-run"


class ReconciliationDecision(str, Enum):
    """What to do with one package, given its current binding."""

    skip = "skip"
    create_only = "create-only"
    revoke_then_create = "revoke-then-create"


class DesiredBinding(BaseModel):
    """The binding every package in the batch should end up with."""

    model_config = ConfigDict(frozen=True)

    provider: Provider
    repository: str = Field(min_length=1)  # "owner/name"
    pipeline_file: str = Field(min_length=1)


class ExistingBinding(BaseModel):
    """The registry's current trusted publisher record for one package.

    Field names follow Python conventions; the registry's JSON keys
    (``type`` and ``file``) are accepted as aliases.
    """

    model_config = ConfigDict(
        frozen=True, populate_by_name=True, coerce_numbers_to_str=True
    )

    id: str
    kind: str = Field(default="", alias="type")
    pipeline_file: str = Field(default="", alias="file")
    repository: str = ""

    def matches(self, desired: DesiredBinding) -> bool:
        """True when repository and pipeline file equal *desired* exactly."""
        return (
            self.repository == desired.repository
            and self.pipeline_file == desired.pipeline_file
        )


class OperationRecord(BaseModel):
    """One registry invocation, issued or simulated, in a batch audit trail."""

    model_config = ConfigDict(frozen=True)

    package: str
    command: tuple[str, ...]
    status: OperationStatus
    output: str | None = None
    parsed_json: ExistingBinding | None = None


class RegistryResult(BaseModel):
    """Structured outcome of a successful registry invocation."""

    command: list[str]
    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0


class PublishStepMatch(BaseModel):
    """A pipeline step that runs a direct package publish command."""

    model_config = ConfigDict(frozen=True)

    file: str
    job: str
    step: int = Field(ge=1)
    command: str

    def describe(self) -> str:
        return f"{self.file} (job={self.job}, step={self.step}): {self.command}"


class InferenceOptions(BaseModel):
    """Explicit overrides for target inference; unset fields are inferred."""

    cwd: Path | None = None
    provider: Provider | None = None
    repository: str | None = None
    pipeline_file: str | None = None


class ReconcileOptions(BaseModel):
    """Per-batch policy for the reconciliation engine."""

    env: str | None = None  # CI environment claim, create only
    dry_run: bool = False
    yes: bool = False


__all__ = [
    "DesiredBinding",
    "ExistingBinding",
    "InferenceOptions",
    "OperationRecord",
    "OperationStatus",
    "OutputMode",
    "PackageManager",
    "Provider",
    "PublishStepMatch",
    "ReconcileOptions",
    "ReconciliationDecision",
    "RegistryResult",
]
