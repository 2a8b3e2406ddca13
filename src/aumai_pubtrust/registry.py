"""npm registry client adapter for aumai-pubtrust."""

from __future__ import annotations

import json
import logging
import re
import subprocess
from pathlib import Path

from pydantic import ValidationError

from aumai_pubtrust.errors import (
    RegistryCommandFailed,
    RegistryResponseError,
    RegistryTimeoutError,
    VersionBelowMinimumError,
)
from aumai_pubtrust.models import (
    DesiredBinding,
    ExistingBinding,
    OutputMode,
    RegistryResult,
)

logger = logging.getLogger(__name__)

MIN_NPM_VERSION = "11.10.0"
DEFAULT_TIMEOUT = 600.0

_VERSION = re.compile(r"^(\d+)\.(\d+)\.(\d+)")

# ---------------------------------------------------------------------------
# Version helpers
# ---------------------------------------------------------------------------


def parse_version(version: str) -> tuple[int, int, int] | None:
    match = _VERSION.match(version.strip())
    if not match:
        return None
    return int(match.group(1)), int(match.group(2)), int(match.group(3))


def compare_versions(left: str, right: str) -> int:
    """Return -1, 0 or 1 comparing two ``major.minor.patch`` strings.

    Raises:
        RegistryResponseError: if either side is not a semantic version.
    """
    parsed_left = parse_version(left)
    parsed_right = parse_version(right)
    if parsed_left is None or parsed_right is None:
        raise RegistryResponseError(
            f'Invalid semantic version comparison: "{left}" vs "{right}"'
        )
    return (parsed_left > parsed_right) - (parsed_left < parsed_right)


def parse_existing_binding(stdout: str) -> ExistingBinding | None:
    """Interpret ``npm trust list --json`` output for one package.

    Empty output, ``null`` and ``[]`` mean the package has no binding. An
    array yields its first entry.
    """
    text = stdout.strip()
    if not text:
        return None
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise RegistryResponseError(
            f"Cannot parse trust list output as JSON: {exc}\n{text}"
        ) from exc

    if isinstance(data, list):
        data = data[0] if data else None
    if data is None:
        return None
    try:
        return ExistingBinding.model_validate(data)
    except ValidationError as exc:
        raise RegistryResponseError(
            f"Unexpected trust list output: {exc}\n{text}"
        ) from exc


# ---------------------------------------------------------------------------
# NpmTrustClient
# ---------------------------------------------------------------------------


class NpmTrustClient:
    """Run ``npm trust`` sub-commands and return structured results.

    Args:
        cwd: Working directory for npm; ``None`` uses the current one.
        mise: Run npm through ``mise exec`` to pin a recent npm.
        registry: Registry URL passed to every trust sub-command.
        timeout: Seconds before an npm invocation is abandoned.
    """

    def __init__(
        self,
        cwd: Path | str | None = None,
        mise: bool = False,
        registry: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.cwd = Path(cwd) if cwd is not None else None
        self.mise = mise
        self.registry = registry
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Command construction
    # ------------------------------------------------------------------

    def command(self, args: list[str]) -> list[str]:
        """Full argv for *args*, as recorded in the audit trail."""
        if self.mise:
            return ["mise", "exec", f"npm@^{MIN_NPM_VERSION}", "--", "npm", *args]
        return ["npm", *args]

    def _with_registry(self, args: list[str]) -> list[str]:
        if self.registry:
            return [*args, "--registry", self.registry]
        return args

    def list_args(self, package: str) -> list[str]:
        return self._with_registry(["trust", "list", "--json", package])

    def revoke_args(self, binding_id: str, package: str) -> list[str]:
        return self._with_registry(["trust", "revoke", "--id", binding_id, package])

    def create_args(
        self,
        package: str,
        desired: DesiredBinding,
        env: str | None = None,
    ) -> list[str]:
        args = [
            "trust",
            desired.provider.value,
            package,
            "--repo",
            desired.repository,
            "--file",
            desired.pipeline_file,
            "--yes",
        ]
        if env:
            args += ["--env", env]
        return self._with_registry(args)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def run(
        self, args: list[str], output: OutputMode = OutputMode.piped
    ) -> RegistryResult:
        """Run npm with *args*.

        With :attr:`OutputMode.inherited` npm talks to the terminal directly
        (one-time password prompts, web login) and ``stdout``/``stderr`` of
        the result are empty.

        Raises:
            RegistryCommandFailed: on a non-zero exit or if npm cannot start.
            RegistryTimeoutError: if npm runs longer than :attr:`timeout`.
        """
        command = self.command(args)
        capture = output is OutputMode.piped
        logger.debug("running %s (%s)", " ".join(command), output.value)
        try:
            completed = subprocess.run(
                [*command, "--loglevel=error"],
                cwd=self.cwd,
                capture_output=capture,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise RegistryTimeoutError(command, self.timeout) from exc
        except OSError as exc:
            raise RegistryCommandFailed(command, None, str(exc)) from exc

        stdout = completed.stdout or ""
        stderr = completed.stderr or ""
        if completed.returncode != 0:
            detail = stderr.strip() or stdout.strip() or "Unknown npm error"
            raise RegistryCommandFailed(command, completed.returncode, detail)

        return RegistryResult(
            command=command,
            stdout=stdout,
            stderr=stderr,
            exit_code=completed.returncode,
        )

    def check_minimum_version(self) -> str:
        """Return the npm version, enforcing :data:`MIN_NPM_VERSION`.

        Raises:
            VersionBelowMinimumError: if npm is older than required.
        """
        version = self.run(["--version"]).stdout.strip()
        logger.debug("detected npm %s", version)
        if compare_versions(version, MIN_NPM_VERSION) < 0:
            raise VersionBelowMinimumError(version, MIN_NPM_VERSION)
        return version


__all__ = [
    "DEFAULT_TIMEOUT",
    "MIN_NPM_VERSION",
    "NpmTrustClient",
    "compare_versions",
    "parse_existing_binding",
    "parse_version",
]
