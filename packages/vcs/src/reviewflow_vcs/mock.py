"""In-memory repository for unit tests.

Mirrors the behaviour of the real backends closely enough that the lifecycle
and review code can be exercised without a git or Perforce binary.
"""

from __future__ import annotations

from reviewflow_vcs.base import Repository, RepoError, RepoErrorKind, VcsType


class MockRepo(Repository):
    """Configurable stand-in for a checkout.

    A checkout with ``commit_id=None`` behaves like a freshly initialised
    repository: current_commit_id() raises NO_COMMIT.
    """

    def __init__(
        self,
        vcs_type: VcsType = VcsType.GIT,
        owner: str = "",
        name: str = "",
        commit_id: str | None = None,
        patches: list[str] | None = None,
        working_dir: str = "",
        existing_remotes: set[str] | None = None,
    ):
        self.vcs_type = vcs_type
        self.owner = owner
        self.name = name
        self.commit_id = commit_id
        self._patches = list(patches or [])
        self._working_dir = working_dir
        self.remotes: set[str] = set(existing_remotes or ())
        self.sync_count = 0

    def sync(self) -> None:
        self.sync_count += 1

    def current_commit_id(self) -> str:
        if self.commit_id is None:
            raise RepoError(RepoErrorKind.NO_COMMIT, "ambiguous argument 'HEAD': unknown revision")
        return self.commit_id

    def patches(self) -> list[str]:
        return list(self._patches)

    def owner_and_name_from_remote(self) -> tuple[str, str]:
        return self.owner, self.name

    def working_dir(self) -> str:
        return self._working_dir

    def create_remote(self, name: str) -> None:
        if name in self.remotes:
            raise RepoError(RepoErrorKind.ALREADY_EXISTS, f"remote {name!r} already exists")
        self.remotes.add(name)

    def assert_not_tracked(self) -> None:
        if self.remotes:
            raise RepoError(RepoErrorKind.ALREADY_EXISTS, "repository is already tracked")
