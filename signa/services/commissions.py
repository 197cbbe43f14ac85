import logging

from signa.errors import CommitteeFinalized, NotFound, PreconditionFailed, ValidationError
from signa.services.audit import record_audit
from signa.services.members import MemberService
from signa.services.roles import RoleRegistry
from signa.services.security import generate_link_code
from signa.services.voting.ranking import rank_members
from signa.services.voting.submission import ANONYMITY_MODES, ensure_open
from signa.storage.base import Query, eq

logger = logging.getLogger(__name__)

STATUSES = ("draft", "open", "finalized")

# finalization has its own service; nothing moves backwards
TRANSITIONS = {"draft": ("open",), "open": (), "finalized": ()}

SETTINGS_FIELDS = ("name", "description", "year", "anonymity_mode", "survey_id")


def parse_year(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("Year must be a whole number.") from None


class CommissionService:
    def __init__(self, storage, default_anonymity_mode="anonymous"):
        self.storage = storage
        self.roles = RoleRegistry(storage)
        self.default_anonymity_mode = default_anonymity_mode

    def get(self, commission_id):
        commission = self.storage.get("commissions", commission_id)
        if commission is None:
            raise NotFound("Committee not found.", commission_id=commission_id)
        return commission

    def list_commissions(self, tenant_id):
        rows = self.storage.query(Query("commissions", (eq("tenant_id", tenant_id),)))
        return sorted(rows, key=lambda row: (-row["year"], row["name"].casefold()))

    def _unique_link_code(self):
        while True:
            code = generate_link_code()
            if not self.storage.find("commissions", link_code=code) and not self.storage.find(
                "surveys", link_code=code
            ):
                return code

    def _check_anonymity_mode(self, mode):
        if mode not in ANONYMITY_MODES:
            raise ValidationError(
                "Anonymity mode must be one of: " + ", ".join(ANONYMITY_MODES) + "."
            )
        return mode

    def _check_survey(self, tenant_id, survey_id):
        if not survey_id:
            return None
        survey = self.storage.get("surveys", survey_id)
        if survey is None or survey["tenant_id"] != tenant_id:
            raise NotFound("Linked survey not found.", survey_id=survey_id)
        return survey_id

    def create_commission(
        self,
        tenant_id,
        name,
        year,
        description=None,
        anonymity_mode=None,
        survey_id=None,
        created_by=None,
    ):
        name = (name or "").strip()
        if not name:
            raise ValidationError("Committee name is required.")
        mode = self._check_anonymity_mode(anonymity_mode or self.default_anonymity_mode)

        with self.storage.transaction():
            commission = self.storage.insert(
                "commissions",
                {
                    "tenant_id": tenant_id,
                    "name": name,
                    "description": (description or "").strip() or None,
                    "year": parse_year(year),
                    "status": "draft",
                    "anonymity_mode": mode,
                    "link_code": self._unique_link_code(),
                    "survey_id": self._check_survey(tenant_id, survey_id),
                    "created_by": created_by,
                },
            )
            record_audit(
                self.storage,
                "commissions",
                commission["id"],
                "created",
                tenant_id=tenant_id,
                actor_id=created_by,
            )
        logger.info("Committee %s created", commission["id"])
        return commission

    def transition(self, commission_id, target, actor_id=None):
        if target not in STATUSES:
            raise ValidationError(f"Unknown committee status: {target}.")
        commission = self.get(commission_id)
        current = commission["status"]
        if current == "finalized":
            raise CommitteeFinalized("This committee has been finalized.")
        if target not in TRANSITIONS.get(current, ()):
            raise PreconditionFailed(
                f"A committee cannot move from {current} to {target}.",
                status=current,
            )

        with self.storage.transaction():
            updated = self.storage.update(
                "commissions", {"id": commission_id, "status": current}, {"status": target}
            )
            if not updated:
                raise PreconditionFailed("The committee changed meanwhile; reload and retry.")
            record_audit(
                self.storage,
                "commissions",
                commission_id,
                f"status:{target}",
                tenant_id=commission["tenant_id"],
                actor_id=actor_id,
            )
        logger.info("Committee %s moved from %s to %s", commission_id, current, target)
        return updated[0]

    def open_commission(self, commission_id, actor_id=None):
        if not self.roles.list_roles(commission_id):
            raise PreconditionFailed("Add at least one role before opening the committee.")
        return self.transition(commission_id, "open", actor_id=actor_id)

    def update_settings(self, commission_id, changes, actor_id=None):
        commission = self.get(commission_id)
        unknown = sorted(set(changes) - set(SETTINGS_FIELDS))
        if unknown:
            raise ValidationError("Unsupported settings: " + ", ".join(unknown) + ".")

        patch = {}
        if "name" in changes:
            name = (changes["name"] or "").strip()
            if not name:
                raise ValidationError("Committee name is required.")
            patch["name"] = name
        if "description" in changes:
            patch["description"] = (changes["description"] or "").strip() or None
        if "year" in changes:
            patch["year"] = parse_year(changes["year"])
        if "anonymity_mode" in changes:
            patch["anonymity_mode"] = self._check_anonymity_mode(changes["anonymity_mode"])
        if "survey_id" in changes:
            patch["survey_id"] = self._check_survey(commission["tenant_id"], changes["survey_id"])
        if not patch:
            return commission

        with self.storage.transaction():
            (updated,) = self.storage.update("commissions", {"id": commission_id}, patch)
            record_audit(
                self.storage,
                "commissions",
                commission_id,
                "settings",
                tenant_id=commission["tenant_id"],
                actor_id=actor_id,
                details={"fields": sorted(patch)},
            )
        return updated

    def resolve_link_code(self, code):
        """Committee behind a public voting link; it must be open."""
        code = (code or "").strip().upper()
        rows = self.storage.find("commissions", link_code=code) if code else []
        if not rows:
            raise NotFound("No committee matches this voting code.")
        commission = rows[0]
        ensure_open(commission)
        return commission

    def candidates(self, commission):
        return MemberService(self.storage).list_members(commission["tenant_id"])

    def ranked_candidates(self, commission, roles=None):
        """Eligible members per role, pre-sorted by the linked survey's suggestions."""
        roles = roles if roles is not None else self.roles.list_roles(commission["id"])
        members = self.candidates(commission)
        survey_items, survey_votes = [], []
        if commission.get("survey_id"):
            survey_items = self.storage.find("survey_items", survey_id=commission["survey_id"])
            survey_votes = self.storage.find("survey_votes", survey_id=commission["survey_id"])
        return {
            role["id"]: rank_members(role["name"], survey_items, survey_votes, members)
            for role in roles
        }

    def voting_session_step(self, commission_id, index):
        """Role at ``index`` in display order with its ranked candidates."""
        commission = self.get(commission_id)
        ensure_open(commission)
        roles = self.roles.list_roles(commission_id)
        if index < 0 or index >= len(roles):
            raise NotFound("No role at this position.", index=index, role_count=len(roles))
        role = roles[index]
        ranked = self.ranked_candidates(commission, [role])
        return {
            "commission": commission,
            "role": role,
            "index": index,
            "role_count": len(roles),
            "has_previous": index > 0,
            "has_next": index + 1 < len(roles),
            "candidates": ranked[role["id"]],
        }
