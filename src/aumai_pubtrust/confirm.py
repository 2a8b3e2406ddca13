"""Confirmation gate for destructive batch actions."""

from __future__ import annotations

import re

import click

from aumai_pubtrust.errors import CancelledError, NonInteractiveError

_APPROVE = re.compile(r"^(y|yes)?$", re.IGNORECASE)


def _stdin_is_tty() -> bool:
    return click.get_text_stream("stdin").isatty()


def confirm(prompt: str, *, auto_accept: bool = False, dry_run: bool = False) -> None:
    """Ask the operator to approve *prompt*; return normally on approval.

    Skipped entirely under *auto_accept* or *dry_run*. An empty answer,
    ``y`` or ``yes`` (any case) approves.

    Raises:
        NonInteractiveError: if approval is needed but stdin is not a terminal.
        CancelledError: on any other answer.
    """
    if auto_accept or dry_run:
        return
    if not _stdin_is_tty():
        raise NonInteractiveError()

    answer = click.prompt(f"{prompt} [Y/n]", default="", show_default=False)
    if not _APPROVE.match(answer.strip()):
        raise CancelledError()


__all__ = ["confirm"]
