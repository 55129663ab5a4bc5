"""GitRepo: distributed backend driven through the git CLI.

Review mirror: the platform runs a git server with a GitHub-compatible REST
API. create_remote() makes a private repository there (via PyGithub) and
registers it locally as the review remote; sync() force-pushes HEAD to it so
the analysis service can check out exactly the commit being reviewed.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from github import GithubException

from reviewflow_vcs.base import Repository, RepoError, RepoErrorKind, VcsType

logger = logging.getLogger(__name__)

SYNC_REF = "refs/heads/reviewflow-sync"


def parse_remote_url(url: str) -> tuple[str, str]:
    """Return (owner, name) from a git remote URL.

    Handles the three common shapes:
      https://host/owner/name.git
      ssh://git@host:22/owner/name.git
      git@host:owner/name.git
    """
    url = url.strip().removesuffix("/").removesuffix(".git")
    if "://" in url:
        rest = url.split("://", 1)[1]
        path = rest.split("/", 1)[1] if "/" in rest else ""
    elif ":" in url:
        path = url.split(":", 1)[1]
    else:
        path = url
    parts = [p for p in path.split("/") if p]
    if len(parts) < 2:
        raise RepoError(RepoErrorKind.NO_REMOTE, f"cannot read owner and name from remote {url!r}")
    return parts[-2], parts[-1]


def split_patches(diff: str) -> list[str]:
    """Split a multi-file unified diff into one fragment per file."""
    fragments: list[str] = []
    current: list[str] = []
    for line in diff.splitlines(keepends=True):
        if line.startswith("diff --git ") and current:
            fragments.append("".join(current))
            current = []
        current.append(line)
    if current:
        fragments.append("".join(current))
    return fragments


class GitRepo(Repository):
    """A git working tree.

    ``hosting`` is a PyGithub client pointed at the platform git server; it is
    only needed by create_remote(). ``remote_name`` is the local name of the
    review remote.
    """

    vcs_type = VcsType.GIT

    def __init__(self, path: str | Path = ".", hosting=None, remote_name: str = "reviewflow"):
        self._path = Path(path).resolve()
        self._hosting = hosting
        self.remote_name = remote_name

    def _git(self, *args: str, check: bool = True) -> subprocess.CompletedProcess[str]:
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=self._path,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as e:
            raise RepoError(RepoErrorKind.BACKEND, "git executable not found on PATH") from e
        if check and result.returncode != 0:
            raise RepoError(
                RepoErrorKind.BACKEND,
                f"git {' '.join(args)} failed: {result.stderr.strip()}",
            )
        return result

    def _head_exists(self) -> bool:
        # --verify -q exits 1 without output when HEAD does not resolve yet;
        # any other failure (not a repository, corrupt objects) is fatal.
        result = self._git("rev-parse", "--verify", "-q", "HEAD", check=False)
        if result.returncode == 0:
            return True
        if result.returncode == 1 and not result.stderr.strip():
            return False
        raise RepoError(RepoErrorKind.BACKEND, f"git rev-parse HEAD failed: {result.stderr.strip()}")

    def _has_review_remote(self) -> bool:
        return self._git("remote", "get-url", self.remote_name, check=False).returncode == 0

    def sync(self) -> None:
        if not self._has_review_remote():
            raise RepoError(
                RepoErrorKind.NOT_INITIALIZED,
                f"review remote {self.remote_name!r} is not configured",
            )
        if not self._head_exists():
            logger.debug("No commits yet in %s; nothing to push.", self._path)
            return
        self._git("push", "--force", "--quiet", self.remote_name, f"HEAD:{SYNC_REF}")

    def current_commit_id(self) -> str:
        if not self._head_exists():
            raise RepoError(
                RepoErrorKind.NO_COMMIT,
                "ambiguous argument 'HEAD': unknown revision or path not in the working tree",
            )
        return self._git("rev-parse", "HEAD").stdout.strip()

    def patches(self) -> list[str]:
        diff = self._git("diff", "--no-color", "--no-ext-diff", "HEAD").stdout
        return split_patches(diff)

    def owner_and_name_from_remote(self) -> tuple[str, str]:
        result = self._git("remote", "get-url", "origin", check=False)
        if result.returncode != 0:
            raise RepoError(RepoErrorKind.NO_REMOTE, "no 'origin' remote configured")
        return parse_remote_url(result.stdout)

    def working_dir(self) -> str:
        return self._git("rev-parse", "--show-toplevel").stdout.strip()

    def create_remote(self, name: str) -> None:
        if self._hosting is None:
            raise RepoError(RepoErrorKind.BACKEND, "no git hosting client configured (set git_api_url)")

        hosted_existed = False
        try:
            user = self._hosting.get_user()
            try:
                hosted = user.create_repo(name, private=True)
            except GithubException as e:
                # 422 Unprocessable Entity is how the API reports a name clash.
                if e.status != 422:
                    raise
                hosted_existed = True
                hosted = user.get_repo(name)
        except GithubException as e:
            raise RepoError(RepoErrorKind.BACKEND, f"could not create hosted repository {name!r}: {e}") from e

        # A clone on a second machine finds the hosted copy but not the local
        # remote, so register it before reporting the clash.
        local_added = False
        if not self._has_review_remote():
            self._git("remote", "add", self.remote_name, hosted.clone_url)
            local_added = True

        if hosted_existed or not local_added:
            raise RepoError(RepoErrorKind.ALREADY_EXISTS, f"remote {name!r} already exists")

    def assert_not_tracked(self) -> None:
        if self._has_review_remote():
            raise RepoError(
                RepoErrorKind.ALREADY_EXISTS,
                f"{self._path} is already tracked (remote {self.remote_name!r} exists)",
            )
