"""aumai-pubtrust quickstart: working demonstrations of the main features.

Run this file directly to see inference and reconciliation in action:

    python examples/quickstart.py

No npm is needed: the registry is simulated by an in-memory client, and
every demo works inside a temporary directory.
"""

from __future__ import annotations

import json
import tempfile
from pathlib import Path

from aumai_pubtrust import (
    ConsoleObserver,
    DesiredBinding,
    InferenceError,
    InferenceOptions,
    NpmTrustClient,
    Provider,
    ReconcileOptions,
    TrustReconciler,
    infer_target,
)
from aumai_pubtrust.models import OutputMode, RegistryResult


class InMemoryTrustClient(NpmTrustClient):
    """Answers ``npm trust`` commands from a dict of package -> binding."""

    def __init__(self, bindings: dict[str, dict[str, str]]) -> None:
        super().__init__()
        self.bindings = bindings

    def check_minimum_version(self) -> str:
        return "11.10.0"

    def run(
        self, args: list[str], output: OutputMode = OutputMode.piped
    ) -> RegistryResult:
        stdout = ""
        if args[:3] == ["trust", "list", "--json"]:
            binding = self.bindings.get(args[3])
            stdout = json.dumps(binding) if binding else ""
        return RegistryResult(command=self.command(args), stdout=stdout)


# ---------------------------------------------------------------------------
# Demo 1: infer the workflow file from .github/workflows
# ---------------------------------------------------------------------------


def demo_infer_workflow() -> None:
    print("\n=== Demo 1: Workflow inference ===")

    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        workflows = root / ".github" / "workflows"
        workflows.mkdir(parents=True)
        (workflows / "ci.yml").write_text(
            "jobs:\n  test:\n    steps:\n      - run: pnpm test\n", encoding="utf-8"
        )
        (workflows / "release.yml").write_text(
            "jobs:\n  release:\n    steps:\n"
            "      - run: pnpm build && pnpm -r publish --provenance\n",
            encoding="utf-8",
        )

        # Provider and repository are explicit, so no git remote is read.
        target = infer_target(
            InferenceOptions(
                cwd=root, provider=Provider.github, repository="acme/ntrust"
            )
        )
        print(f"  Inferred: {target.provider.value} {target.repository} "
              f"{target.pipeline_file}")

        (workflows / "nightly.yml").write_text(
            "jobs:\n  nightly:\n    steps:\n      - run: npm publish --tag next\n",
            encoding="utf-8",
        )
        try:
            infer_target(
                InferenceOptions(
                    cwd=root, provider=Provider.github, repository="acme/ntrust"
                )
            )
        except InferenceError as exc:
            print(f"  Ambiguous, as expected:\n{exc}")


# ---------------------------------------------------------------------------
# Demo 2: dry-run reconciliation
# ---------------------------------------------------------------------------


def demo_dry_run() -> None:
    print("\n=== Demo 2: Dry-run reconciliation ===")

    desired = DesiredBinding(
        provider=Provider.github, repository="acme/ntrust", pipeline_file="release.yml"
    )
    client = InMemoryTrustClient(
        {
            "@acme/core": {
                "id": "rel-1",
                "type": "github",
                "file": "release.yml",
                "repository": "acme/ntrust",
            },
            "@acme/cli": {
                "id": "rel-2",
                "type": "github",
                "file": "legacy.yml",
                "repository": "acme/legacy",
            },
        }
    )
    reconciler = TrustReconciler(client, observer=ConsoleObserver())
    records = reconciler.apply(
        ["@acme/core", "@acme/cli", "@acme/utils"],
        desired,
        ReconcileOptions(dry_run=True),
    )
    print(f"  Audit trail: {len(records)} record(s)")
    for record in records:
        print(f"    [{record.status.value}] {' '.join(record.command)}")


if __name__ == "__main__":
    demo_infer_workflow()
    demo_dry_run()
