"""Abstract repository interface.

Every supported version-control backend (git, Perforce) implements this
interface. The review engine depends on Repository, not on a concrete
backend, so it never needs to know whether it is looking at a distributed
or a centralized checkout.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum


class VcsType(Enum):
    GIT = "git"
    PERFORCE = "perforce"


class RepoErrorKind(Enum):
    ALREADY_EXISTS = "already_exists"
    NO_COMMIT = "no_commit"
    NO_REMOTE = "no_remote"
    NOT_INITIALIZED = "not_initialized"
    UNSUPPORTED_VCS = "unsupported_vcs"
    BACKEND = "backend"


class RepoError(Exception):
    """A backend operation failed.

    Callers decide what is recoverable by looking at ``kind``, never at the
    message text; backend messages differ between tool versions and locales.
    """

    def __init__(self, kind: RepoErrorKind, message: str):
        super().__init__(message)
        self.kind = kind


def vcs_type_to_string(vcs_type) -> str:
    """Return the wire name of a backend kind.

    Accepts a VcsType or its string value; anything else is unsupported.
    """
    try:
        return VcsType(vcs_type).value
    except ValueError:
        raise RepoError(RepoErrorKind.UNSUPPORTED_VCS, f"invalid VCS found: {vcs_type!r}") from None


class Repository(ABC):
    """One local checkout bound to a single backend for its whole lifetime.

    ``vcs_type`` is fixed by the subclass. All state changes go through the
    methods below; the review engine never edits the checkout itself.
    """

    vcs_type: VcsType

    @abstractmethod
    def sync(self) -> None:
        """Reconcile the local checkout with the backend. Safe to repeat."""

    @abstractmethod
    def current_commit_id(self) -> str:
        """Return the checked-out revision.

        Raises RepoError(NO_COMMIT) when the checkout has no history yet.
        """

    @abstractmethod
    def patches(self) -> list[str]:
        """Return uncommitted changes, one diff fragment per file."""

    @abstractmethod
    def owner_and_name_from_remote(self) -> tuple[str, str]:
        """Split the configured remote into (owner, name)."""

    @abstractmethod
    def working_dir(self) -> str:
        """Absolute path of the checkout root."""

    @abstractmethod
    def create_remote(self, name: str) -> None:
        """Create the review mirror for this checkout.

        Raises RepoError(ALREADY_EXISTS) when the mirror is already there.
        """

    @abstractmethod
    def assert_not_tracked(self) -> None:
        """Raise RepoError(ALREADY_EXISTS) if the checkout is already tracked."""
