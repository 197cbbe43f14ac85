from signa.extensions import db
from signa.models.mixins import RowMixin


class Tenant(RowMixin, db.Model):
    __tablename__ = "tenants"

    name = db.Column(db.String(200), nullable=False)
    slug = db.Column(db.String(100), unique=True, nullable=False)
    current_year = db.Column(db.Integer, nullable=True)
