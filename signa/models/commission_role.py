from signa.extensions import db
from signa.models.mixins import RowMixin


class CommissionRole(RowMixin, db.Model):
    __tablename__ = "commission_roles"

    commission_id = db.Column(
        db.String(36), db.ForeignKey("commissions.id"), nullable=False
    )
    name = db.Column(db.String(200), nullable=False)
    max_selections = db.Column(db.Integer, nullable=False, default=1)
    display_order = db.Column(db.Integer, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
