"""Tests for aumai_pubtrust.registry: NpmTrustClient and helpers."""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from aumai_pubtrust.errors import (
    RegistryCommandFailed,
    RegistryResponseError,
    RegistryTimeoutError,
    VersionBelowMinimumError,
)
from aumai_pubtrust.models import DesiredBinding, OutputMode
from aumai_pubtrust.registry import (
    NpmTrustClient,
    compare_versions,
    parse_existing_binding,
    parse_version,
)


def _completed(
    returncode: int = 0, stdout: str | None = "", stderr: str | None = ""
) -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess([], returncode, stdout, stderr)


# ===========================================================================
# Versions
# ===========================================================================


class TestVersions:
    def test_parse_version(self) -> None:
        assert parse_version("11.10.0\n") == (11, 10, 0)
        assert parse_version("11.10.0-pre.1") == (11, 10, 0)
        assert parse_version("eleven") is None

    @pytest.mark.parametrize(
        ("left", "right", "expected"),
        [
            ("11.10.0", "11.10.0", 0),
            ("11.9.9", "11.10.0", -1),
            ("12.0.0", "11.10.0", 1),
            ("11.10.1", "11.10.0", 1),
        ],
    )
    def test_compare_versions(self, left: str, right: str, expected: int) -> None:
        assert compare_versions(left, right) == expected

    def test_compare_invalid_raises(self) -> None:
        with pytest.raises(RegistryResponseError, match="Invalid semantic version"):
            compare_versions("latest", "11.10.0")


# ===========================================================================
# parse_existing_binding
# ===========================================================================


class TestParseExistingBinding:
    @pytest.mark.parametrize("stdout", ["", "  \n", "null", "[]"])
    def test_absent(self, stdout: str) -> None:
        assert parse_existing_binding(stdout) is None

    def test_object(self) -> None:
        binding = parse_existing_binding(
            '{"id": "rel-1", "type": "github", "file": "release.yml",'
            ' "repository": "acme/ntrust"}'
        )
        assert binding is not None
        assert binding.id == "rel-1"
        assert binding.kind == "github"
        assert binding.pipeline_file == "release.yml"
        assert binding.repository == "acme/ntrust"

    def test_array_takes_first(self) -> None:
        binding = parse_existing_binding('[{"id": "a"}, {"id": "b"}]')
        assert binding is not None
        assert binding.id == "a"

    def test_numeric_id_becomes_string(self) -> None:
        binding = parse_existing_binding('{"id": 42}')
        assert binding is not None
        assert binding.id == "42"

    def test_invalid_json(self) -> None:
        with pytest.raises(RegistryResponseError, match="Cannot parse"):
            parse_existing_binding("npm notice something")

    def test_missing_id(self) -> None:
        with pytest.raises(RegistryResponseError, match="Unexpected"):
            parse_existing_binding('{"repository": "acme/ntrust"}')


# ===========================================================================
# Command construction
# ===========================================================================


class TestCommandConstruction:
    def test_plain_npm(self) -> None:
        assert NpmTrustClient().command(["trust", "list"]) == ["npm", "trust", "list"]

    def test_mise_prefix(self) -> None:
        assert NpmTrustClient(mise=True).command(["--version"]) == [
            "mise", "exec", "npm@^11.10.0", "--", "npm", "--version",
        ]

    def test_list_args(self) -> None:
        assert NpmTrustClient().list_args("pkg-a") == [
            "trust", "list", "--json", "pkg-a",
        ]

    def test_revoke_args(self) -> None:
        assert NpmTrustClient().revoke_args("rel-1", "pkg-a") == [
            "trust", "revoke", "--id", "rel-1", "pkg-a",
        ]

    def test_create_args_with_env_and_registry(self, desired: DesiredBinding) -> None:
        client = NpmTrustClient(registry="https://npm.example.com")
        assert client.create_args("@acme/pkg", desired, env="production") == [
            "trust", "github", "@acme/pkg",
            "--repo", "acme/ntrust",
            "--file", "release.yml",
            "--yes",
            "--env", "production",
            "--registry", "https://npm.example.com",
        ]

    def test_create_args_without_env(self, desired: DesiredBinding) -> None:
        args = NpmTrustClient().create_args("pkg-a", desired)
        assert "--env" not in args
        assert args[-1] == "--yes"


# ===========================================================================
# run
# ===========================================================================


class TestRun:
    def test_pipes_output_by_default(self, tmp_path: Path) -> None:
        client = NpmTrustClient(cwd=tmp_path, timeout=12)
        with patch(
            "aumai_pubtrust.registry.subprocess.run",
            return_value=_completed(stdout="ok"),
        ) as run:
            result = client.run(["trust", "list", "pkg-a"])

        run.assert_called_once_with(
            ["npm", "trust", "list", "pkg-a", "--loglevel=error"],
            cwd=tmp_path,
            capture_output=True,
            text=True,
            timeout=12,
        )
        assert result.command == ["npm", "trust", "list", "pkg-a"]
        assert result.stdout == "ok"
        assert result.exit_code == 0

    def test_inherited_output_is_not_captured(self) -> None:
        with patch(
            "aumai_pubtrust.registry.subprocess.run",
            return_value=_completed(stdout=None, stderr=None),
        ) as run:
            result = NpmTrustClient().run(["publish"], OutputMode.inherited)

        assert run.call_args.kwargs["capture_output"] is False
        assert result.stdout == ""
        assert result.stderr == ""

    def test_non_zero_exit_raises_with_stderr(self) -> None:
        with patch(
            "aumai_pubtrust.registry.subprocess.run",
            return_value=_completed(1, stdout="", stderr="npm error code EOTP\n"),
        ):
            with pytest.raises(RegistryCommandFailed) as excinfo:
                NpmTrustClient().run(["trust", "list", "pkg-a"])

        assert excinfo.value.exit_code == 1
        assert excinfo.value.detail == "npm error code EOTP"
        assert str(excinfo.value).startswith(
            'Failed to run command "npm trust list pkg-a" (exit=1)'
        )

    def test_non_zero_exit_without_output(self) -> None:
        with patch(
            "aumai_pubtrust.registry.subprocess.run",
            return_value=_completed(2, stdout=None, stderr=None),
        ):
            with pytest.raises(RegistryCommandFailed, match="Unknown npm error"):
                NpmTrustClient().run(["trust"], OutputMode.inherited)

    def test_missing_executable(self) -> None:
        with patch(
            "aumai_pubtrust.registry.subprocess.run",
            side_effect=FileNotFoundError("npm"),
        ):
            with pytest.raises(RegistryCommandFailed, match="exit=unknown"):
                NpmTrustClient().run(["--version"])

    def test_timeout(self) -> None:
        with patch(
            "aumai_pubtrust.registry.subprocess.run",
            side_effect=subprocess.TimeoutExpired(["npm"], 5),
        ):
            with pytest.raises(RegistryTimeoutError) as excinfo:
                NpmTrustClient(timeout=5).run(["trust", "list", "pkg-a"])

        assert isinstance(excinfo.value, RegistryCommandFailed)
        assert excinfo.value.timeout == 5


# ===========================================================================
# check_minimum_version
# ===========================================================================


class TestCheckMinimumVersion:
    def test_recent_npm(self) -> None:
        with patch(
            "aumai_pubtrust.registry.subprocess.run",
            return_value=_completed(stdout="11.12.1\n"),
        ):
            assert NpmTrustClient().check_minimum_version() == "11.12.1"

    def test_old_npm(self) -> None:
        with patch(
            "aumai_pubtrust.registry.subprocess.run",
            return_value=_completed(stdout="10.9.2\n"),
        ):
            with pytest.raises(VersionBelowMinimumError) as excinfo:
                NpmTrustClient().check_minimum_version()

        assert excinfo.value.found == "10.9.2"
        assert "11.10.0 or newer is required" in str(excinfo.value)

    def test_uses_mise_when_configured(self) -> None:
        with patch(
            "aumai_pubtrust.registry.subprocess.run",
            return_value=_completed(stdout="11.10.0"),
        ) as run:
            NpmTrustClient(mise=True).check_minimum_version()

        assert run.call_args.args[0][:2] == ["mise", "exec"]
