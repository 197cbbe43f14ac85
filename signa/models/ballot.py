from signa.extensions import db
from signa.models.mixins import RowMixin


class Ballot(RowMixin, db.Model):
    __tablename__ = "ballots"

    commission_id = db.Column(
        db.String(36), db.ForeignKey("commissions.id"), nullable=False
    )
    role_id = db.Column(
        db.String(36), db.ForeignKey("commission_roles.id"), nullable=False
    )
    signature = db.Column(db.String(255), nullable=False)
    voter_id = db.Column(db.String(36), db.ForeignKey("members.id"), nullable=True)
