import uuid
from datetime import datetime, timezone

from signa.extensions import db


def new_id():
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc)


class RowMixin:
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_row(self):
        return {column.name: getattr(self, column.name) for column in self.__table__.columns}
