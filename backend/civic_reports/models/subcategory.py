from civic_reports.extensions import db


class Subcategory(db.Model):
    __tablename__ = "subcategories"
    __table_args__ = (
        db.UniqueConstraint("category_id", "name", name="uq_subcategories_category_name"),
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)

    # Every subcategory hangs off an existing category
    category_id = db.Column(
        db.Integer,
        db.ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    category = db.relationship("Category", back_populates="subcategories")
