"""Infer the trusted publisher target from the local checkout.

The target is the triple ``(provider, repository, pipeline file)``:

* provider and repository come from the ``origin`` remote unless both are
  given explicitly;
* the pipeline file is the single workflow containing a direct
  ``npm``/``pnpm``/``yarn`` ``publish`` step, unless given explicitly.

Ambiguity is never resolved by guessing: several publish steps is an error
listing every candidate.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from aumai_pubtrust.errors import InferenceError, ProviderNotImplementedError
from aumai_pubtrust.models import DesiredBinding, InferenceOptions, Provider
from aumai_pubtrust.pipelines import (
    PipelineScanner,
    format_publish_candidates,
    scanner_for,
)
from aumai_pubtrust.vcs import GitRepository

logger = logging.getLogger(__name__)

_SSH_REMOTE = re.compile(r"^[^@]+@[^:]+:(.+?)(?:\.git)?$")
_URL_REMOTE = re.compile(r"^[a-z]+://[^/]+/(.+?)(?:\.git)?$", re.IGNORECASE)


def normalize_repository(value: str) -> str:
    """Strip surrounding whitespace, leading slashes and a ``.git`` suffix."""
    value = value.strip().lstrip("/")
    if value.endswith(".git"):
        value = value[: -len(".git")]
    return value.strip()


def parse_repository_from_remote(remote: str) -> str:
    """Extract ``owner/name`` from an SSH-style or URL-style git remote."""
    remote = remote.strip()
    for pattern in (_SSH_REMOTE, _URL_REMOTE):
        match = pattern.match(remote)
        if match:
            return normalize_repository(match.group(1))
    raise InferenceError(f"Unable to parse repository from git remote: {remote}")


def infer_provider_from_remote(remote: str) -> Provider:
    if "github.com" in remote:
        return Provider.github
    if "gitlab" in remote:
        return Provider.gitlab
    raise InferenceError(f"Unable to infer provider from remote URL: {remote}")


def infer_target(
    options: InferenceOptions,
    *,
    vcs: GitRepository | None = None,
    scanners: dict[Provider, PipelineScanner] | None = None,
) -> DesiredBinding:
    """Resolve the :class:`DesiredBinding` for this invocation.

    Args:
        options: Explicit overrides; ``None`` fields are inferred.
        vcs: Git access, replaceable for tests.
        scanners: Provider to pipeline scanner mapping; defaults to the
            built-in registry.

    Raises:
        InferenceError: if any part of the target is missing or ambiguous.
        ProviderNotImplementedError: for GitLab.
    """
    vcs = vcs or GitRepository()
    cwd = (options.cwd or Path.cwd()).resolve()
    repo_root = vcs.resolve_repo_root(cwd)

    remote: str | None = None
    if options.provider is None or options.repository is None:
        remote = vcs.get_default_remote_url(repo_root)
        logger.debug("origin remote of %s is %s", repo_root, remote)

    if options.repository is not None:
        repository = normalize_repository(options.repository)
    else:
        repository = parse_repository_from_remote(remote or "")

    provider = options.provider or infer_provider_from_remote(remote or "")
    if provider is Provider.gitlab:
        raise ProviderNotImplementedError("GitLab provider is not implemented yet.")

    segments = [segment for segment in repository.split("/") if segment]
    if len(segments) != 2:
        raise InferenceError(
            f'Expected GitHub repository to be "owner/name", but got "{repository}".'
        )

    pipeline_file = options.pipeline_file
    if not pipeline_file:
        pipeline_file = _infer_pipeline_file(repo_root, provider, scanners)

    return DesiredBinding(
        provider=provider, repository=repository, pipeline_file=pipeline_file
    )


def _infer_pipeline_file(
    repo_root: Path,
    provider: Provider,
    scanners: dict[Provider, PipelineScanner] | None,
) -> str:
    matches = scanner_for(provider, scanners).list_candidate_publish_steps(repo_root)
    if len(matches) > 1:
        raise InferenceError(
            "Found multiple publish workflow commands in GitHub actions. "
            "Please specify --file manually.\n" + format_publish_candidates(matches)
        )
    if not matches:
        raise InferenceError(
            "Unable to find any workflow. Please specify --file manually."
        )
    logger.debug("inferred pipeline file %s", matches[0].describe())
    return matches[0].file


__all__ = [
    "infer_provider_from_remote",
    "infer_target",
    "normalize_repository",
    "parse_repository_from_remote",
]
