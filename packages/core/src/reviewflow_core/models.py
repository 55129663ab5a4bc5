"""Issue data model.

The engine never looks inside an Issue beyond moving it between the service,
the confirmation prompt and the report, so the fields mirror what the
analysis service sends.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field


@dataclass
class IssueRange:
    filename: str
    start_line: int
    end_line: int


@dataclass
class Issue:
    """A single finding reported by the analysis service."""

    name: str
    comment: str
    position: IssueRange
    line: str = ""
    ctx_before: str = ""
    ctx_after: str = ""
    discovered_by: str = ""
    metadata: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> Issue:
        pos = d.get("position") or {}
        return cls(
            name=d.get("name", ""),
            comment=d.get("comment", ""),
            position=IssueRange(
                filename=pos.get("filename", ""),
                start_line=pos.get("start_line", 0),
                end_line=pos.get("end_line", pos.get("start_line", 0)),
            ),
            line=d.get("line", ""),
            ctx_before=d.get("ctx_before", ""),
            ctx_after=d.get("ctx_after", ""),
            discovered_by=d.get("discovered_by", ""),
            metadata=dict(d.get("metadata") or {}),
        )
