from civic_reports.extensions import db


class Officer(db.Model):
    __tablename__ = "officers"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(120), nullable=False)
    department = db.Column(db.String(120), nullable=False)
    contact = db.Column(db.String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<Officer id={self.id} name={self.name} department={self.department}>"
