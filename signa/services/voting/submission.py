"""Ballot and vote recording.

One submission produces one ballot per role that has at least one selected
member, followed by one vote row per selected member. The whole set is
written in a single storage transaction after every check has passed.
"""

import logging

from signa.errors import CommitteeFinalized, NotFound, PreconditionFailed, ValidationError
from signa.services.roles import RoleRegistry
from signa.services.security import generate_ballot_signature
from signa.storage.base import Query, eq, in_

logger = logging.getLogger(__name__)

ANONYMOUS = "anonymous"
OPTIONAL_IDENTIFICATION = "optional-identification"
REQUIRED_IDENTIFICATION = "required-identification"
ANONYMITY_MODES = (ANONYMOUS, OPTIONAL_IDENTIFICATION, REQUIRED_IDENTIFICATION)


def plural_people(count):
    return "person" if count == 1 else "people"


def clean_member_ids(member_ids, **details):
    """Member ids from a request payload: a list of non-empty strings.

    Blank entries are dropped. Anything else that is not a string is
    malformed input.
    """
    if isinstance(member_ids, (str, bytes)) or not isinstance(member_ids, (list, tuple)):
        raise ValidationError("Each entry must map to a list of member ids.", **details)
    cleaned = []
    for member_id in member_ids:
        if member_id is None or member_id == "":
            continue
        if not isinstance(member_id, str):
            raise ValidationError("Member ids must be strings.", **details)
        cleaned.append(member_id)
    return cleaned


class BallotDraft:
    """Selections being assembled for a set of roles.

    Mirrors the voting screen: a selection beyond a role's limit is refused
    when it is attempted, not when the draft is submitted. Submitted payloads
    are replayed through a draft, so the limit check is the same in both
    places.
    """

    def __init__(self, roles):
        self.roles = {role["id"]: role for role in roles}
        self.selections = {role["id"]: [] for role in roles}

    def _role(self, role_id):
        try:
            return self.roles[role_id]
        except KeyError:
            raise NotFound("Role is not part of this ballot.", role_id=role_id) from None

    def select(self, role_id, member_id):
        role = self._role(role_id)
        chosen = self.selections[role_id]
        if member_id in chosen:
            return chosen
        limit = role["max_selections"]
        if len(chosen) >= limit:
            raise ValidationError(
                f"You can select at most {limit} {plural_people(limit)} for {role['name']}.",
                role_id=role_id,
            )
        chosen.append(member_id)
        return chosen

    def deselect(self, role_id, member_id):
        self._role(role_id)
        chosen = self.selections[role_id]
        if member_id in chosen:
            chosen.remove(member_id)
        return chosen

    def toggle(self, role_id, member_id):
        if member_id in self.selections.get(role_id, ()):
            return self.deselect(role_id, member_id)
        return self.select(role_id, member_id)

    def clear(self, role_id=None):
        for key in [role_id] if role_id else list(self.selections):
            self.selections[key] = []

    def payload(self):
        return {role_id: list(members) for role_id, members in self.selections.items() if members}


def normalize_selections(selections, roles_by_id):
    """Validate a role id -> member ids mapping against the active roles.

    Returns ``[(role, member_ids)]`` in role display order for every role with
    a non-empty selection.
    """
    if not isinstance(selections, dict):
        raise ValidationError("Selections must map role ids to lists of member ids.")

    draft = BallotDraft(roles_by_id.values())
    for role_id, member_ids in selections.items():
        if member_ids is None:
            continue
        member_ids = clean_member_ids(member_ids, role_id=role_id)
        if not member_ids:
            continue

        role = roles_by_id.get(role_id)
        if role is None:
            raise NotFound("Role is not open for voting in this committee.", role_id=role_id)
        if len(set(member_ids)) != len(member_ids):
            raise ValidationError(
                f"The same person was selected twice for {role['name']}.", role_id=role_id
            )
        for member_id in member_ids:
            draft.select(role_id, member_id)

    plan = [(draft.roles[role_id], members) for role_id, members in draft.payload().items()]

    if not plan:
        raise ValidationError("Select at least one person for at least one role.")
    plan.sort(key=lambda item: (item[0]["display_order"], item[0]["id"]))
    return plan


def ensure_open(commission):
    status = commission["status"]
    if status == "finalized":
        raise CommitteeFinalized("Voting is closed: this committee has been finalized.")
    if status != "open":
        raise PreconditionFailed("This committee is not open for voting yet.")


class BallotService:
    def __init__(self, storage, secret_key=None):
        self.storage = storage
        self.roles = RoleRegistry(storage)
        self.secret_key = secret_key

    def load_commission(self, commission_id, for_update=False):
        commission = self.storage.get("commissions", commission_id, for_update=for_update)
        if commission is None:
            raise NotFound("Committee not found.", commission_id=commission_id)
        return commission

    def _check_members(self, commission, member_ids):
        members = self.storage.query(Query("members", (in_("id", member_ids),)))
        known = {
            member["id"]
            for member in members
            if member["tenant_id"] == commission["tenant_id"] and member["is_eligible"]
        }
        missing = sorted(set(member_ids) - known)
        if missing:
            raise NotFound("Some selected people are not eligible members.", member_ids=missing)

    def _resolve_voter(self, commission, voter_id, role_ids):
        mode = commission.get("anonymity_mode") or ANONYMOUS
        if mode == ANONYMOUS:
            return None
        if not voter_id:
            if mode == REQUIRED_IDENTIFICATION:
                raise ValidationError("This committee requires voters to identify themselves.")
            return None
        if not isinstance(voter_id, str):
            raise ValidationError("Voter id must be a string.")

        self._check_members(commission, [voter_id])
        if mode == REQUIRED_IDENTIFICATION:
            previous = self.storage.query(
                Query(
                    "ballots",
                    (
                        eq("commission_id", commission["id"]),
                        eq("voter_id", voter_id),
                        in_("role_id", role_ids),
                    ),
                )
            )
            if previous:
                raise PreconditionFailed(
                    "This voter has already cast a ballot for one of these roles.",
                    role_ids=sorted({ballot["role_id"] for ballot in previous}),
                )
        return voter_id

    def submit(self, commission_id, selections, voter_id=None, signature=None):
        commission = self.load_commission(commission_id)
        ensure_open(commission)

        roles_by_id = {role["id"]: role for role in self.roles.list_roles(commission_id)}
        plan = normalize_selections(selections, roles_by_id)
        self._check_members(
            commission, sorted({member_id for _, members in plan for member_id in members})
        )
        signature = signature or generate_ballot_signature(commission_id, self.secret_key)

        with self.storage.transaction():
            # status read again under lock so a concurrent finalization wins cleanly
            commission = self.load_commission(commission_id, for_update=True)
            ensure_open(commission)
            # role writes lock the same committee row, so limits can't move under us
            roles_by_id = {role["id"]: role for role in self.roles.list_roles(commission_id)}
            plan = normalize_selections(selections, roles_by_id)
            voter_id = self._resolve_voter(
                commission, voter_id, [role["id"] for role, _ in plan]
            )

            ballots = self.storage.insert(
                "ballots",
                [
                    {
                        "commission_id": commission_id,
                        "role_id": role["id"],
                        "signature": signature,
                        "voter_id": voter_id,
                    }
                    for role, _ in plan
                ],
            )
            members_by_role = {role["id"]: members for role, members in plan}
            votes = self.storage.insert(
                "votes",
                [
                    {"ballot_id": ballot["id"], "member_id": member_id}
                    for ballot in ballots
                    for member_id in members_by_role[ballot["role_id"]]
                ],
            )

        logger.info(
            "Recorded %d ballot(s) with %d vote(s) for committee %s",
            len(ballots),
            len(votes),
            commission_id,
        )
        return {
            "signature": signature,
            "ballot_ids": [ballot["id"] for ballot in ballots],
            "ballot_count": len(ballots),
            "vote_count": len(votes),
        }
