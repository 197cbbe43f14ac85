from flask_login import UserMixin

from signa.extensions import db
from signa.models.mixins import RowMixin


class User(UserMixin, RowMixin, db.Model):
    __tablename__ = "users"

    username = db.Column(db.String(80), unique=True, nullable=False)
    email = db.Column(db.String(200), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    tenant_id = db.Column(db.String(36), db.ForeignKey("tenants.id"), nullable=True)
