from datetime import datetime

from civic_reports.extensions import db


class ReportEvent(db.Model):
    """Mutation log. Written in the same transaction as the change it records,
    so the primary key doubles as the commit sequence."""

    __tablename__ = "report_events"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)

    report_id = db.Column(
        db.Integer,
        db.ForeignKey("reports.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reporter_id = db.Column(db.Integer, nullable=False, index=True)

    kind = db.Column(db.String(20), nullable=False)  # created | updated
    change = db.Column(db.String(20), nullable=False)  # created | status | officer | resolution
    status = db.Column(db.String(20), nullable=False)
    version = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<ReportEvent id={self.id} report={self.report_id} change={self.change} v={self.version}>"
