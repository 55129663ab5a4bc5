"""Repository lifecycle: detect → initialize → sync → inspect.

Each step either succeeds or raises; the only backend error treated as
success is ALREADY_EXISTS during initialize(), because a checkout that was
reviewed before already has its mirror.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from reviewflow_core.errors import NoCommitError
from reviewflow_vcs.base import Repository, RepoError, RepoErrorKind
from reviewflow_vcs.detect import detect_repository

logger = logging.getLogger(__name__)

NO_COMMIT_MESSAGE = (
    "This looks like a new repository. Please make an initial commit before running "
    "`reviewflow review`. This is only required for the initial commit, subsequent "
    "changes to your repo will be picked up by reviewflow without committing."
)


@dataclass(frozen=True)
class RepoSnapshot:
    """Repository facts read once, after sync, for building the review request."""

    owner: str
    name: str
    sha: str
    working_dir: str
    patches: tuple[str, ...] = field(default_factory=tuple)


def open_repository(path: str | Path = ".", git_hosting=None, review_remote: str = "reviewflow") -> Repository:
    return detect_repository(path, git_hosting=git_hosting, review_remote=review_remote)


def initialize(repo: Repository) -> None:
    """Create the review mirror; an existing mirror counts as success."""
    _, name = repo.owner_and_name_from_remote()
    try:
        repo.create_remote(name)
    except RepoError as e:
        if e.kind is not RepoErrorKind.ALREADY_EXISTS:
            raise
        logger.debug("Review mirror %r already exists: %s", name, e)


def sync(repo: Repository) -> None:
    repo.sync()


def inspect(repo: Repository) -> RepoSnapshot:
    owner, name = repo.owner_and_name_from_remote()
    try:
        sha = repo.current_commit_id()
    except RepoError as e:
        if e.kind is RepoErrorKind.NO_COMMIT:
            raise NoCommitError(NO_COMMIT_MESSAGE) from e
        raise
    patches = tuple(repo.patches())
    working_dir = repo.working_dir()
    return RepoSnapshot(owner=owner, name=name, sha=sha, working_dir=working_dir, patches=patches)


def prepare(
    repo: Repository | None = None,
    path: str | Path = ".",
    git_hosting=None,
    review_remote: str = "reviewflow",
) -> tuple[Repository, RepoSnapshot]:
    """Run the whole lifecycle and return the bound repository with its snapshot."""
    if repo is None:
        repo = open_repository(path, git_hosting=git_hosting, review_remote=review_remote)
    logger.debug("Reviewing %s checkout", repo.vcs_type.value)
    initialize(repo)
    sync(repo)
    return repo, inspect(repo)
