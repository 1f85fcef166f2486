from datetime import datetime

from civic_reports.extensions import db
from civic_reports.models.enums import ROLE_VALUES


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)

    role = db.Column(
        db.Enum(*ROLE_VALUES, name="user_role_enum"),
        nullable=False,
        default="citizen",
    )

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    reports = db.relationship("Report", back_populates="reporter")

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} role={self.role}>"
