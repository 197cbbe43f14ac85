from signa.extensions import db
from signa.models.mixins import RowMixin


class Member(RowMixin, db.Model):
    __tablename__ = "members"

    tenant_id = db.Column(db.String(36), db.ForeignKey("tenants.id"), nullable=False)
    full_name = db.Column(db.String(200), nullable=False)
    nickname = db.Column(db.String(100), nullable=True)
    email = db.Column(db.String(200), nullable=True)
    is_eligible = db.Column(db.Boolean, nullable=False, default=True)
