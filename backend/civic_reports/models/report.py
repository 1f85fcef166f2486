from datetime import datetime

from civic_reports.extensions import db
from civic_reports.models.enums import STATUS_VALUES, TYPE_VALUES


class Report(db.Model):
    __tablename__ = "reports"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)

    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)

    # Fixed at submission
    type = db.Column(
        db.Enum(*TYPE_VALUES, name="report_type_enum"),
        nullable=False,
        index=True,
    )

    # pending -> in_progress -> resolved, never backwards
    status = db.Column(
        db.Enum(*STATUS_VALUES, name="report_status_enum"),
        nullable=False,
        default="pending",
        index=True,
    )

    category_id = db.Column(
        db.Integer,
        db.ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    subcategory_id = db.Column(
        db.Integer,
        db.ForeignKey("subcategories.id", ondelete="RESTRICT"),
        nullable=True,
    )

    location_address = db.Column(db.Text, nullable=True)
    location_lat = db.Column(db.Float, nullable=True)
    location_lng = db.Column(db.Float, nullable=True)

    assigned_officer_id = db.Column(
        db.Integer,
        db.ForeignKey("officers.id", ondelete="RESTRICT"),
        nullable=True,
    )
    resolution_details = db.Column(db.Text, nullable=True)

    reporter_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    # Compare-and-set token, bumped on every committed mutation
    version = db.Column(db.Integer, nullable=False, default=1)

    # Relationships
    category = db.relationship("Category", lazy="joined")
    subcategory = db.relationship("Subcategory", lazy="joined")
    assigned_officer = db.relationship("Officer", lazy="joined")
    reporter = db.relationship("User", back_populates="reports")
    images = db.relationship(
        "ReportImage",
        back_populates="report",
        order_by="ReportImage.position",
        cascade="all, delete-orphan",
    )

    @property
    def image_refs(self) -> list[str]:
        return [img.ref for img in self.images]

    @property
    def location(self) -> dict | None:
        """Address wins over coordinates for display."""
        if self.location_address:
            return {"address": self.location_address}
        if self.location_lat is not None and self.location_lng is not None:
            return {"lat": self.location_lat, "lng": self.location_lng}
        return None

    def __repr__(self) -> str:
        return f"<Report id={self.id} status={self.status} type={self.type} v={self.version}>"
