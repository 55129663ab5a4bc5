"""Tests for the repository lifecycle controller."""

from unittest.mock import MagicMock

import pytest

from reviewflow_core.errors import NoCommitError
from reviewflow_core.lifecycle import NO_COMMIT_MESSAGE, RepoSnapshot, initialize, inspect, prepare, sync
from reviewflow_vcs.base import Repository, RepoError, RepoErrorKind, VcsType
from reviewflow_vcs.mock import MockRepo


def _repo(**kwargs) -> MockRepo:
    defaults = dict(owner="acme", name="widgets", commit_id="a" * 40, working_dir="/src/widgets")
    defaults.update(kwargs)
    return MockRepo(**defaults)


class TestInitialize:
    def test_creates_remote_named_after_repo(self):
        repo = _repo()
        initialize(repo)
        assert repo.remotes == {"widgets"}

    def test_twice_in_a_row_succeeds(self):
        repo = _repo()
        initialize(repo)
        initialize(repo)
        assert repo.remotes == {"widgets"}

    def test_other_backend_errors_propagate(self):
        repo = MagicMock(spec=Repository)
        repo.owner_and_name_from_remote.return_value = ("acme", "widgets")
        repo.create_remote.side_effect = RepoError(RepoErrorKind.BACKEND, "permission denied: already exists?")

        with pytest.raises(RepoError) as exc:
            initialize(repo)
        assert exc.value.kind is RepoErrorKind.BACKEND

    def test_missing_remote_propagates(self):
        repo = MagicMock(spec=Repository)
        repo.owner_and_name_from_remote.side_effect = RepoError(RepoErrorKind.NO_REMOTE, "no origin")

        with pytest.raises(RepoError):
            initialize(repo)
        repo.create_remote.assert_not_called()


class TestSync:
    def test_delegates_to_repo(self):
        repo = _repo()
        sync(repo)
        assert repo.sync_count == 1

    def test_errors_are_fatal(self):
        repo = MagicMock(spec=Repository)
        repo.sync.side_effect = RepoError(RepoErrorKind.BACKEND, "network unreachable")
        with pytest.raises(RepoError):
            sync(repo)


class TestInspect:
    def test_snapshot(self):
        repo = _repo(patches=["diff --git a/a.py b/a.py\n"])
        assert inspect(repo) == RepoSnapshot(
            owner="acme",
            name="widgets",
            sha="a" * 40,
            working_dir="/src/widgets",
            patches=("diff --git a/a.py b/a.py\n",),
        )

    def test_no_commit_becomes_guidance(self):
        with pytest.raises(NoCommitError) as exc:
            inspect(_repo(commit_id=None))
        assert str(exc.value) == NO_COMMIT_MESSAGE
        assert exc.value.__cause__.kind is RepoErrorKind.NO_COMMIT

    def test_other_commit_errors_propagate(self):
        repo = MagicMock(spec=Repository)
        repo.owner_and_name_from_remote.return_value = ("acme", "widgets")
        repo.current_commit_id.side_effect = RepoError(RepoErrorKind.BACKEND, "corrupt object")
        with pytest.raises(RepoError) as exc:
            inspect(repo)
        assert exc.value.kind is RepoErrorKind.BACKEND


class TestPrepare:
    def test_runs_steps_in_order(self):
        repo = MagicMock(spec=Repository)
        repo.vcs_type = VcsType.GIT
        repo.owner_and_name_from_remote.return_value = ("acme", "widgets")
        repo.current_commit_id.return_value = "abc"
        repo.patches.return_value = []
        repo.working_dir.return_value = "/src"

        bound, snapshot = prepare(repo)

        assert bound is repo
        assert snapshot.sha == "abc"
        called = [c[0] for c in repo.method_calls]
        assert called.index("create_remote") < called.index("sync") < called.index("current_commit_id")

    def test_detects_repository_when_none_given(self, mocker):
        repo = _repo()
        detect = mocker.patch("reviewflow_core.lifecycle.detect_repository", return_value=repo)

        bound, _ = prepare(path="/src/widgets", review_remote="mirror")

        assert bound is repo
        detect.assert_called_once_with("/src/widgets", git_hosting=None, review_remote="mirror")

    def test_sync_failure_stops_before_inspect(self):
        repo = MagicMock(spec=Repository)
        repo.vcs_type = VcsType.GIT
        repo.owner_and_name_from_remote.return_value = ("acme", "widgets")
        repo.sync.side_effect = RepoError(RepoErrorKind.BACKEND, "push rejected")

        with pytest.raises(RepoError):
            prepare(repo)
        repo.current_commit_id.assert_not_called()
