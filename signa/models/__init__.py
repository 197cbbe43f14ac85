from signa.models.audit_log import AuditLog
from signa.models.ballot import Ballot
from signa.models.commission import Commission
from signa.models.commission_role import CommissionRole
from signa.models.member import Member
from signa.models.survey import Survey, SurveyItem, SurveyVote
from signa.models.tenant import Tenant
from signa.models.user import User
from signa.models.vote import Vote

# entity set name -> model, used by the SQL storage backend
MODELS_BY_ENTITY = {
    model.__tablename__: model
    for model in (
        Tenant,
        Member,
        Commission,
        CommissionRole,
        Ballot,
        Vote,
        Survey,
        SurveyItem,
        SurveyVote,
        AuditLog,
    )
}

__all__ = [
    "AuditLog",
    "Ballot",
    "Commission",
    "CommissionRole",
    "Member",
    "Survey",
    "SurveyItem",
    "SurveyVote",
    "Tenant",
    "User",
    "Vote",
    "MODELS_BY_ENTITY",
]
