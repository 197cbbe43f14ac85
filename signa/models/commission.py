from signa.extensions import db
from signa.models.mixins import RowMixin


class Commission(RowMixin, db.Model):
    __tablename__ = "commissions"

    tenant_id = db.Column(db.String(36), db.ForeignKey("tenants.id"), nullable=False)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    year = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(20), nullable=False, default="draft")
    anonymity_mode = db.Column(db.String(40), nullable=False, default="anonymous")
    link_code = db.Column(db.String(50), unique=True, nullable=False)
    survey_id = db.Column(db.String(36), db.ForeignKey("surveys.id"), nullable=True)
    finalization_key = db.Column(db.String(6), nullable=True)
    finalized_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_by = db.Column(db.String(36), nullable=True)
