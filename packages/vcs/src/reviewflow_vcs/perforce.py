"""PerforceRepo: centralized backend driven through the p4 CLI.

Identity comes from the client view: a workspace mapping
``//depot/acme/widgets/... //ws/...`` reviews as owner ``acme``, name
``widgets``. The review mirror is a depot named after the project.

All queries use ``p4 -ztag`` so output is parsed from tagged records rather
than from human-readable text.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from reviewflow_vcs.base import Repository, RepoError, RepoErrorKind, VcsType

logger = logging.getLogger(__name__)


def parse_ztag(output: str) -> list[dict[str, str]]:
    """Parse ``p4 -ztag`` output into one dict per record."""
    records: list[dict[str, str]] = []
    current: dict[str, str] = {}
    for line in output.splitlines():
        if not line.strip():
            if current:
                records.append(current)
                current = {}
            continue
        if line.startswith("... "):
            key, _, value = line[4:].partition(" ")
            current[key] = value
    if current:
        records.append(current)
    return records


def split_depot_diff(diff: str) -> list[str]:
    """Split ``p4 diff -du`` output into one fragment per depot file."""
    fragments: list[str] = []
    current: list[str] = []
    for line in diff.splitlines(keepends=True):
        if line.startswith("--- //") and current:
            fragments.append("".join(current))
            current = []
        current.append(line)
    if current:
        fragments.append("".join(current))
    return fragments


class PerforceRepo(Repository):
    """A Perforce client workspace rooted at ``path``."""

    vcs_type = VcsType.PERFORCE

    def __init__(self, path: str | Path = "."):
        self._path = Path(path).resolve()
        self._client: dict[str, str] | None = None

    def _p4(self, *args: str, stdin: str | None = None) -> str:
        try:
            result = subprocess.run(
                ["p4", *args],
                cwd=self._path,
                input=stdin,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as e:
            raise RepoError(RepoErrorKind.BACKEND, "p4 executable not found on PATH") from e
        if result.returncode != 0:
            raise RepoError(RepoErrorKind.BACKEND, f"p4 {' '.join(args)} failed: {result.stderr.strip()}")
        return result.stdout

    def _client_spec(self) -> dict[str, str]:
        # The client spec does not change during one run.
        if self._client is None:
            records = parse_ztag(self._p4("-ztag", "client", "-o"))
            if not records:
                raise RepoError(RepoErrorKind.BACKEND, "p4 client -o returned no client spec")
            self._client = records[0]
        return self._client

    def _depot_exists(self, name: str) -> bool:
        return bool(parse_ztag(self._p4("-ztag", "depots", "-e", name)))

    def sync(self) -> None:
        self._p4("sync", "-q")

    def current_commit_id(self) -> str:
        client = self._client_spec().get("Client", "")
        records = parse_ztag(self._p4("-ztag", "changes", "-m1", "-s", "submitted", f"//{client}/...#have"))
        if not records:
            raise RepoError(RepoErrorKind.NO_COMMIT, f"client {client!r} has no submitted changes")
        change = records[0].get("change")
        if not change:
            raise RepoError(RepoErrorKind.BACKEND, f"p4 changes returned no change number for client {client!r}")
        return change

    def patches(self) -> list[str]:
        return split_depot_diff(self._p4("diff", "-du"))

    def owner_and_name_from_remote(self) -> tuple[str, str]:
        view = self._client_spec().get("View0", "")
        depot_path = view.split(" ", 1)[0].lstrip('"-+')
        # //depot/owner/name/... → ["depot", "owner", "name"]
        parts = [p for p in depot_path.split("/") if p and p != "..."]
        if len(parts) < 3:
            raise RepoError(RepoErrorKind.NO_REMOTE, f"cannot read owner and name from client view {view!r}")
        return parts[1], parts[2]

    def working_dir(self) -> str:
        root = self._client_spec().get("Root")
        if not root:
            raise RepoError(RepoErrorKind.BACKEND, "client spec has no Root")
        return str(Path(root).resolve())

    def create_remote(self, name: str) -> None:
        if self._depot_exists(name):
            raise RepoError(RepoErrorKind.ALREADY_EXISTS, f"depot {name!r} already exists")
        spec = self._p4("depot", "-o", name)
        self._p4("depot", "-i", stdin=spec)
        logger.debug("Created depot %s", name)

    def assert_not_tracked(self) -> None:
        _, name = self.owner_and_name_from_remote()
        if self._depot_exists(name):
            raise RepoError(RepoErrorKind.ALREADY_EXISTS, f"{self._path} is already tracked (depot {name!r} exists)")
