from dataclasses import dataclass, asdict
from datetime import datetime


@dataclass(frozen=True)
class ChangeEvent:
    """A committed report mutation, as delivered to subscribers."""

    sequence: int
    report_id: int
    reporter_id: int
    kind: str
    change: str
    status: str
    version: int
    occurred_at: datetime

    @classmethod
    def from_record(cls, record) -> "ChangeEvent":
        return cls(
            sequence=record.id,
            report_id=record.report_id,
            reporter_id=record.reporter_id,
            kind=record.kind,
            change=record.change,
            status=record.status,
            version=record.version,
            occurred_at=record.created_at,
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["occurred_at"] = self.occurred_at.isoformat() if self.occurred_at else None
        return data
