"""Scan CI pipeline definitions for package publish steps."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import yaml

from aumai_pubtrust.errors import InferenceError, ProviderNotImplementedError
from aumai_pubtrust.models import PackageManager, Provider, PublishStepMatch

logger = logging.getLogger(__name__)

_RUN_SEPARATORS = re.compile(r"\r?\n|&&|\|\||;")

# ---------------------------------------------------------------------------
# Command matching
# ---------------------------------------------------------------------------


def split_run_command(run: str) -> list[str]:
    """Split a step's shell body into individual command elements."""
    return [part.strip() for part in _RUN_SEPARATORS.split(run) if part.strip()]


def is_direct_publish_command(command: str) -> bool:
    """Return True if *command* is ``<npm|pnpm|yarn> [flags...] publish ...``.

    Flag tokens (starting with ``-``) before the sub-command are skipped, so
    ``pnpm -r publish --provenance`` qualifies while ``npm run publish`` and
    ``npx publish`` do not.
    """
    tokens = command.split()
    if len(tokens) < 2:
        return False
    try:
        PackageManager(tokens[0])
    except ValueError:
        return False

    sub_command = next((t for t in tokens[1:] if not t.startswith("-")), "")
    return sub_command == "publish"


def format_publish_candidates(matches: list[PublishStepMatch]) -> str:
    return "\n".join(f"- {match.describe()}" for match in matches)


# ---------------------------------------------------------------------------
# Scanners
# ---------------------------------------------------------------------------


class PipelineScanner:
    """Lists publish steps found in one provider's pipeline definitions."""

    provider: Provider

    def list_candidate_publish_steps(self, repo_root: Path) -> list[PublishStepMatch]:
        raise NotImplementedError


class GitHubWorkflowScanner(PipelineScanner):
    """Walks ``.github/workflows`` for ``jobs.<job>.steps[].run`` publish steps."""

    provider = Provider.github
    workflow_dir = Path(".github") / "workflows"
    suffixes = (".yml", ".yaml")

    def list_candidate_publish_steps(self, repo_root: Path) -> list[PublishStepMatch]:
        directory = repo_root / self.workflow_dir
        if not directory.is_dir():
            raise InferenceError(
                f'Cannot find workflow directory "{directory}". '
                "Please specify --file manually."
            )

        workflow_files = sorted(
            p for p in directory.iterdir() if p.is_file() and p.suffix in self.suffixes
        )
        matches: list[PublishStepMatch] = []
        for workflow_path in workflow_files:
            matches.extend(self._scan_workflow(workflow_path))
        return matches

    def _scan_workflow(self, workflow_path: Path) -> list[PublishStepMatch]:
        try:
            workflow = yaml.safe_load(workflow_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
            raise InferenceError(
                f'Cannot parse workflow "{workflow_path}": {exc}. '
                "Please specify --file manually."
            ) from exc

        jobs: Any = workflow.get("jobs") if isinstance(workflow, dict) else None
        if not isinstance(jobs, dict):
            logger.debug("ignoring %s: no jobs mapping", workflow_path.name)
            return []

        matches: list[PublishStepMatch] = []
        for job_name, job in jobs.items():
            steps = job.get("steps") if isinstance(job, dict) else None
            if not isinstance(steps, list):
                continue
            for index, step in enumerate(steps, start=1):
                run = step.get("run") if isinstance(step, dict) else None
                if not isinstance(run, str):
                    continue
                for command in split_run_command(run):
                    if is_direct_publish_command(command):
                        matches.append(
                            PublishStepMatch(
                                file=workflow_path.name,
                                job=str(job_name),
                                step=index,
                                command=command,
                            )
                        )
        return matches


SCANNERS: dict[Provider, PipelineScanner] = {
    Provider.github: GitHubWorkflowScanner(),
}


def scanner_for(
    provider: Provider,
    scanners: dict[Provider, PipelineScanner] | None = None,
) -> PipelineScanner:
    """Return the pipeline scanner registered for *provider*."""
    registry = SCANNERS if scanners is None else scanners
    try:
        return registry[provider]
    except KeyError:
        raise ProviderNotImplementedError(
            f"Scanning {provider.value} pipelines is not implemented yet. "
            "Please specify --file manually."
        ) from None


__all__ = [
    "GitHubWorkflowScanner",
    "PipelineScanner",
    "SCANNERS",
    "format_publish_candidates",
    "is_direct_publish_command",
    "scanner_for",
    "split_run_command",
]
