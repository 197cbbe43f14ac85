import logging
from collections import Counter

from signa.services.roles import RoleRegistry
from signa.storage.base import Query, eq, in_

logger = logging.getLogger(__name__)

UNKNOWN_MEMBER = "Unknown member"
UNKNOWN_ROLE = "Unknown role"


def member_sort_key(name, member_id):
    return (name.casefold(), name, str(member_id))


def rank_counts(counts, members_by_id):
    """Turn ``{member_id: count}`` into rows sorted by count, then by name."""
    rows = []
    for member_id, count in counts.items():
        member = members_by_id.get(member_id)
        name = member["full_name"] if member else UNKNOWN_MEMBER
        rows.append({"member_id": member_id, "member_name": name, "count": count})

    rows.sort(key=lambda row: (-row["count"], *member_sort_key(row["member_name"], row["member_id"])))
    return rows


def tally_ballots(ballots, votes, roles, members):
    """Aggregate committed votes into a ranked list per role.

    Pure function of its inputs: the order of ``ballots`` and ``votes`` does
    not affect the result. Roles without ballots are left out.
    """
    roles_by_id = {role["id"]: role for role in roles}
    members_by_id = {member["id"]: member for member in members}

    role_by_ballot = {ballot["id"]: ballot["role_id"] for ballot in ballots}
    ballot_counts = Counter(role_by_ballot.values())
    counts_by_role = {role_id: Counter() for role_id in ballot_counts}

    for vote in votes:
        role_id = role_by_ballot.get(vote["ballot_id"])
        if role_id is None:
            continue
        counts_by_role[role_id][vote["member_id"]] += 1

    results = []
    for role_id, counts in counts_by_role.items():
        role = roles_by_id.get(role_id)
        results.append(
            {
                "role_id": role_id,
                "role_name": role["name"] if role else UNKNOWN_ROLE,
                "display_order": role["display_order"] if role else None,
                "ballot_count": ballot_counts[role_id],
                "total_votes": sum(counts.values()),
                "votes": rank_counts(counts, members_by_id),
            }
        )

    results.sort(
        key=lambda row: (
            row["display_order"] is None,
            row["display_order"] or 0,
            str(row["role_id"]),
        )
    )
    return results


class TallyEngine:
    """Recomputes committee results from the stored ballots on every call."""

    def __init__(self, storage):
        self.storage = storage
        self.roles = RoleRegistry(storage)

    def tally(self, commission_id):
        ballots = self.storage.query(Query("ballots", (eq("commission_id", commission_id),)))
        if not ballots:
            return []

        votes = self.storage.query(
            Query("votes", (in_("ballot_id", [ballot["id"] for ballot in ballots]),))
        )
        member_ids = {vote["member_id"] for vote in votes}
        members = (
            self.storage.query(Query("members", (in_("id", member_ids),)))
            if member_ids
            else []
        )
        roles = self.roles.list_roles(commission_id, include_inactive=True)

        results = tally_ballots(ballots, votes, roles, members)
        logger.debug(
            "Tallied %d ballot(s) across %d role(s) for committee %s",
            len(ballots),
            len(results),
            commission_id,
        )
        return results

    def tally_role(self, commission_id, role_id):
        for row in self.tally(commission_id):
            if row["role_id"] == role_id:
                return row
        return None
