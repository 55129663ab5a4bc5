"""Bind a checkout to its backend.

Selection happens once, by looking for backend metadata from ``path``
upwards: a ``.git`` entry means git, the P4CONFIG file means Perforce.
The nearest match wins, so a git checkout nested inside a Perforce
workspace is reviewed as git.
"""

from __future__ import annotations

import os
from pathlib import Path

from reviewflow_vcs.base import Repository, RepoError, RepoErrorKind


def detect_repository(path: str | Path = ".", git_hosting=None, review_remote: str = "reviewflow") -> Repository:
    start = Path(path).resolve()
    p4config = os.environ.get("P4CONFIG", ".p4config")

    for directory in (start, *start.parents):
        if (directory / ".git").exists():
            from reviewflow_vcs.git import GitRepo

            return GitRepo(directory, hosting=git_hosting, remote_name=review_remote)
        if (directory / p4config).is_file():
            from reviewflow_vcs.perforce import PerforceRepo

            return PerforceRepo(directory)

    raise RepoError(RepoErrorKind.UNSUPPORTED_VCS, f"no supported VCS found at or above {start}")
