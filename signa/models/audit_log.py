from signa.extensions import db
from signa.models.mixins import RowMixin


class AuditLog(RowMixin, db.Model):
    __tablename__ = "audit_logs"

    tenant_id = db.Column(db.String(36), db.ForeignKey("tenants.id"), nullable=True)
    entity_type = db.Column(db.String(50), nullable=False)
    entity_id = db.Column(db.String(36), nullable=False)
    action = db.Column(db.String(50), nullable=False)
    actor_id = db.Column(db.String(36), nullable=True)
    details = db.Column(db.JSON, nullable=True)
