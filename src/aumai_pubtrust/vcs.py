"""Git metadata lookups used by target inference."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from aumai_pubtrust.errors import InferenceError

logger = logging.getLogger(__name__)


class GitRepository:
    """Read-only access to the local git checkout.

    Args:
        git: Name or path of the git executable.
        timeout: Seconds before a git invocation is abandoned.
    """

    def __init__(self, git: str = "git", timeout: float = 30.0) -> None:
        self._git = git
        self._timeout = timeout

    def _run(self, args: list[str], cwd: Path) -> str:
        command = [self._git, *args]
        logger.debug("running %s in %s", " ".join(command), cwd)
        result = subprocess.run(
            command,
            cwd=cwd,
            capture_output=True,
            text=True,
            check=True,
            timeout=self._timeout,
        )
        return result.stdout.strip()

    def resolve_repo_root(self, cwd: Path) -> Path:
        """Return the top-level directory of the checkout containing *cwd*.

        Falls back to *cwd* itself when *cwd* is not inside a git checkout
        or git is unavailable.
        """
        try:
            root = self._run(["rev-parse", "--show-toplevel"], cwd)
        except (OSError, subprocess.SubprocessError) as exc:
            logger.debug("cannot resolve repository root from %s: %s", cwd, exc)
            return cwd
        return Path(root) if root else cwd

    def get_default_remote_url(self, repo_root: Path) -> str:
        """Return the URL of the ``origin`` remote."""
        try:
            return self._run(["remote", "get-url", "origin"], repo_root)
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or "").strip()
            raise InferenceError(
                f"Unable to read git remote \"origin\" in {repo_root}. "
                "Please specify --provider and --repo manually."
                + (f"\n{detail}" if detail else "")
            ) from exc
        except (OSError, subprocess.SubprocessError) as exc:
            raise InferenceError(
                f"Unable to run git in {repo_root}: {exc}. "
                "Please specify --provider and --repo manually."
            ) from exc


__all__ = ["GitRepository"]
