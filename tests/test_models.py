"""Tests for Pydantic models in aumai_pubtrust.models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from aumai_pubtrust.models import (
    DesiredBinding,
    ExistingBinding,
    InferenceOptions,
    OperationRecord,
    OperationStatus,
    PackageManager,
    Provider,
    PublishStepMatch,
)

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class TestProvider:
    def test_values(self) -> None:
        assert [p.value for p in Provider] == ["github", "gitlab"]

    def test_is_string_enum(self) -> None:
        assert isinstance(Provider.github, str)

    def test_invalid_value_raises(self) -> None:
        with pytest.raises(ValueError):
            Provider("bitbucket")


def test_package_managers_are_closed_set() -> None:
    assert {m.value for m in PackageManager} == {"npm", "pnpm", "yarn"}


def test_dry_run_status_value() -> None:
    assert OperationStatus.dry_run.value == "dry-run"


# ---------------------------------------------------------------------------
# DesiredBinding
# ---------------------------------------------------------------------------


class TestDesiredBinding:
    def test_provider_coerced_from_string(self) -> None:
        binding = DesiredBinding(
            provider="github", repository="acme/ntrust", pipeline_file="release.yml"
        )
        assert binding.provider is Provider.github

    @pytest.mark.parametrize("field", ["repository", "pipeline_file"])
    def test_empty_fields_rejected(self, field: str) -> None:
        data = {
            "provider": "github",
            "repository": "acme/ntrust",
            "pipeline_file": "release.yml",
        }
        data[field] = ""
        with pytest.raises(ValidationError):
            DesiredBinding(**data)

    def test_is_immutable(self, desired: DesiredBinding) -> None:
        with pytest.raises(ValidationError):
            desired.repository = "other/repo"  # type: ignore[misc]


# ---------------------------------------------------------------------------
# ExistingBinding
# ---------------------------------------------------------------------------


class TestExistingBinding:
    def test_registry_json_keys(self) -> None:
        binding = ExistingBinding.model_validate(
            {"id": "1", "type": "github", "file": "release.yml", "repository": "a/b"}
        )
        assert binding.kind == "github"
        assert binding.pipeline_file == "release.yml"

    def test_dump_by_alias_restores_registry_keys(self) -> None:
        binding = ExistingBinding(id="1", kind="github", pipeline_file="r.yml")
        assert binding.model_dump(by_alias=True) == {
            "id": "1",
            "type": "github",
            "file": "r.yml",
            "repository": "",
        }

    def test_matches_on_repository_and_file(self, desired: DesiredBinding) -> None:
        same = ExistingBinding(id="1", repository="acme/ntrust", pipeline_file="release.yml")
        other = ExistingBinding(id="1", repository="acme/ntrust", pipeline_file="ci.yml")
        assert same.matches(desired)
        assert not other.matches(desired)


# ---------------------------------------------------------------------------
# OperationRecord / PublishStepMatch / options
# ---------------------------------------------------------------------------


class TestOperationRecord:
    def test_command_is_stored_as_tuple(self) -> None:
        record = OperationRecord(
            package="pkg-a", command=["npm", "trust"], status=OperationStatus.success
        )
        assert record.command == ("npm", "trust")

    def test_json_dump(self) -> None:
        record = OperationRecord(
            package="pkg-a",
            command=["npm", "trust", "list"],
            status=OperationStatus.dry_run,
        )
        assert record.model_dump(mode="json") == {
            "package": "pkg-a",
            "command": ["npm", "trust", "list"],
            "status": "dry-run",
            "output": None,
            "parsed_json": None,
        }


class TestPublishStepMatch:
    def test_describe(self) -> None:
        match = PublishStepMatch(file="release.yml", job="release", step=2, command="npm publish")
        assert match.describe() == "release.yml (job=release, step=2): npm publish"

    def test_step_is_one_based(self) -> None:
        with pytest.raises(ValidationError):
            PublishStepMatch(file="a.yml", job="j", step=0, command="npm publish")


def test_inference_options_default_to_inference() -> None:
    options = InferenceOptions()
    assert options.provider is None
    assert options.repository is None
    assert options.pipeline_file is None
