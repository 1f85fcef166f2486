from civic_reports.extensions import db
from civic_reports.models.enums import TYPE_VALUES


class Category(db.Model):
    __tablename__ = "categories"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), unique=True, nullable=False)
    type = db.Column(
        db.Enum(*TYPE_VALUES, name="category_type_enum"),
        nullable=False,
        index=True,
    )

    subcategories = db.relationship(
        "Subcategory",
        back_populates="category",
        order_by="Subcategory.name",
    )

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name} type={self.type}>"
