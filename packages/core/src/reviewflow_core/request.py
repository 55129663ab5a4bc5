"""Review request assembly.

The analysis service addresses git projects by owner and Perforce projects
by depot, so the request carries a tagged union (Owner | Depot) whose tag
must agree with the ``vcs`` field.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from reviewflow_core.config import PlatformConfig
from reviewflow_core.lifecycle import RepoSnapshot
from reviewflow_vcs.base import VcsType, vcs_type_to_string


@dataclass(frozen=True)
class Owner:
    name: str


@dataclass(frozen=True)
class Depot:
    name: str


OwnerOrDepot = Union[Owner, Depot]

_TAG_FOR_VCS = {VcsType.GIT.value: Owner, VcsType.PERFORCE.value: Depot}


@dataclass(frozen=True)
class ReviewRequest:
    host: str
    hostname: str
    owner_or_depot: OwnerOrDepot
    repo: str
    sha: str
    vcs: str
    dir: str
    rules: str = ""
    patches: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        expected = _TAG_FOR_VCS.get(self.vcs)
        if expected is None or not isinstance(self.owner_or_depot, expected):
            raise ValueError(
                f"{type(self.owner_or_depot).__name__} identity does not match vcs {self.vcs!r}"
            )

    def to_dict(self) -> dict:
        key = "owner" if isinstance(self.owner_or_depot, Owner) else "depot"
        return {
            "host": self.host,
            "hostname": self.hostname,
            key: self.owner_or_depot.name,
            "repo": self.repo,
            "sha": self.sha,
            "patches": list(self.patches),
            "vcs": self.vcs,
            "dir": self.dir,
            "rules": self.rules,
        }


def build_request(vcs_type, snapshot: RepoSnapshot, platform: PlatformConfig, rules: str) -> ReviewRequest:
    """Turn repository facts and platform settings into a ReviewRequest.

    Perforce names are rewritten to ``owner/name`` so the service sees the
    same naming scheme for both backends.
    """
    # Raises RepoError(UNSUPPORTED_VCS) for anything but git and perforce.
    vcs = vcs_type_to_string(vcs_type)

    if vcs == VcsType.GIT.value:
        host = platform.git_server_addr()
        hostname = platform.git_remote_name()
        identity: OwnerOrDepot = Owner(snapshot.owner)
        name = snapshot.name
    else:
        host = platform.p4_server_addr()
        hostname = platform.p4_remote_name()
        identity = Depot(platform.p4_remote_depot_name())
        name = f"{snapshot.owner}/{snapshot.name}"

    return ReviewRequest(
        host=host,
        hostname=hostname,
        owner_or_depot=identity,
        repo=name,
        sha=snapshot.sha,
        patches=snapshot.patches,
        vcs=vcs,
        dir=snapshot.working_dir,
        rules=rules,
    )
