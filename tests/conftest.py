"""Shared test fixtures for aumai-pubtrust."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from aumai_pubtrust.errors import InferenceError, VersionBelowMinimumError
from aumai_pubtrust.log import PACKAGE_LOGGER
from aumai_pubtrust.models import DesiredBinding, OutputMode, Provider, RegistryResult
from aumai_pubtrust.registry import MIN_NPM_VERSION, NpmTrustClient, compare_versions

# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeTrustClient(NpmTrustClient):
    """NpmTrustClient that never spawns npm.

    Each ``run`` pops the next scripted response: a string becomes stdout,
    an exception is raised. Once the script is exhausted stdout is empty.
    """

    def __init__(
        self,
        responses: list[str | Exception] | None = None,
        version: str = MIN_NPM_VERSION,
        **kwargs: object,
    ) -> None:
        super().__init__(**kwargs)  # type: ignore[arg-type]
        self.responses = list(responses or [])
        self.version = version
        self.version_checks = 0
        self.calls: list[tuple[list[str], OutputMode]] = []

    def check_minimum_version(self) -> str:
        self.version_checks += 1
        if compare_versions(self.version, MIN_NPM_VERSION) < 0:
            raise VersionBelowMinimumError(self.version, MIN_NPM_VERSION)
        return self.version

    def run(
        self, args: list[str], output: OutputMode = OutputMode.piped
    ) -> RegistryResult:
        self.calls.append((list(args), output))
        response = self.responses.pop(0) if self.responses else ""
        if isinstance(response, Exception):
            raise response
        return RegistryResult(command=self.command(args), stdout=response)

    @property
    def argv(self) -> list[list[str]]:
        return [args for args, _ in self.calls]


class FakeGitRepository:
    """Stands in for GitRepository; ``remote=None`` means no origin."""

    def __init__(self, root: Path | None = None, remote: str | None = None) -> None:
        self.root = root
        self.remote = remote
        self.remote_lookups = 0

    def resolve_repo_root(self, cwd: Path) -> Path:
        return self.root or cwd

    def get_default_remote_url(self, repo_root: Path) -> str:
        self.remote_lookups += 1
        if self.remote is None:
            raise InferenceError("no origin remote")
        return self.remote


class RecordingConfirm:
    """Confirmation gate that records prompts and always approves."""

    def __init__(self) -> None:
        self.prompts: list[str] = []

    def __call__(
        self, prompt: str, *, auto_accept: bool = False, dry_run: bool = False
    ) -> None:
        self.prompts.append(prompt)


def binding_json(
    binding_id: str = "rel-1",
    repository: str = "acme/ntrust",
    file: str = "release.yml",
    kind: str = "github",
) -> str:
    """``npm trust list --json`` output for one binding."""
    return json.dumps(
        {"id": binding_id, "type": kind, "file": file, "repository": repository}
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def desired() -> DesiredBinding:
    return DesiredBinding(
        provider=Provider.github, repository="acme/ntrust", pipeline_file="release.yml"
    )


@pytest.fixture()
def confirm_gate() -> RecordingConfirm:
    return RecordingConfirm()


@pytest.fixture()
def workflows(tmp_path: Path):
    """Factory writing ``.github/workflows/<name>`` files under tmp_path."""

    directory = tmp_path / ".github" / "workflows"

    def write(name: str, *lines: str) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        path.write_text("\n".join(lines), encoding="utf-8")
        return path

    return write


@pytest.fixture()
def write_package(tmp_path: Path):
    """Factory writing a package.json into tmp_path/<rel>."""

    def write(rel: str, name: str | None, private: bool = False, **extra: object) -> Path:
        directory = tmp_path / rel
        directory.mkdir(parents=True, exist_ok=True)
        data: dict[str, object] = dict(extra)
        if name is not None:
            data["name"] = name
        if private:
            data["private"] = True
        path = directory / "package.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return write


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers the CLI installs so they do not outlive CliRunner streams."""
    yield
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
