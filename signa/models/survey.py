from signa.extensions import db
from signa.models.mixins import RowMixin


class Survey(RowMixin, db.Model):
    __tablename__ = "surveys"

    tenant_id = db.Column(db.String(36), db.ForeignKey("tenants.id"), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    year = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(20), nullable=False, default="open")
    link_code = db.Column(db.String(50), unique=True, nullable=False)


class SurveyItem(RowMixin, db.Model):
    __tablename__ = "survey_items"

    survey_id = db.Column(db.String(36), db.ForeignKey("surveys.id"), nullable=False)
    role_name = db.Column(db.String(200), nullable=False)
    max_suggestions = db.Column(db.Integer, nullable=False, default=1)
    display_order = db.Column(db.Integer, nullable=False)


class SurveyVote(RowMixin, db.Model):
    __tablename__ = "survey_votes"

    survey_id = db.Column(db.String(36), db.ForeignKey("surveys.id"), nullable=False)
    survey_item_id = db.Column(
        db.String(36), db.ForeignKey("survey_items.id"), nullable=True
    )
    role_name = db.Column(db.String(200), nullable=False)
    member_id = db.Column(db.String(36), db.ForeignKey("members.id"), nullable=True)
    vote_count = db.Column(db.Integer, nullable=False, default=1)
    # rows imported from the older array layout carry their member ids here
    suggestions = db.Column(db.JSON, nullable=True)
