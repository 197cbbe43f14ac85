from signa.extensions import db
from signa.models.mixins import RowMixin


class Vote(RowMixin, db.Model):
    __tablename__ = "votes"

    ballot_id = db.Column(db.String(36), db.ForeignKey("ballots.id"), nullable=False)
    member_id = db.Column(db.String(36), db.ForeignKey("members.id"), nullable=False)
