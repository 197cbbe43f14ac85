"""Pre-committee suggestion surveys.

Suggestions are stored one row per suggested member (``member_id`` with
``vote_count`` 1). They only ever feed the candidate ordering shown to
committee voters.
"""

import logging

from signa.errors import NotFound, PreconditionFailed, ValidationError
from signa.services.commissions import parse_year
from signa.services.security import generate_link_code
from signa.services.voting.ranking import count_suggestions
from signa.services.voting.submission import clean_member_ids
from signa.services.voting.tally import rank_counts
from signa.storage.base import Query, in_

logger = logging.getLogger(__name__)

SURVEY_STATUSES = ("open", "closed")


class SurveyService:
    def __init__(self, storage):
        self.storage = storage

    def get(self, survey_id):
        survey = self.storage.get("surveys", survey_id)
        if survey is None:
            raise NotFound("Survey not found.", survey_id=survey_id)
        return survey

    def list_surveys(self, tenant_id):
        rows = self.storage.find("surveys", tenant_id=tenant_id)
        return sorted(rows, key=lambda row: (-row["year"], row["title"].casefold()))

    def list_items(self, survey_id):
        rows = self.storage.find("survey_items", survey_id=survey_id)
        return sorted(rows, key=lambda row: (row["display_order"], row["id"]))

    def create_survey(self, tenant_id, title, year, description=None):
        title = (title or "").strip()
        if not title:
            raise ValidationError("Survey title is required.")
        code = generate_link_code()
        while self.storage.find("surveys", link_code=code) or self.storage.find(
            "commissions", link_code=code
        ):
            code = generate_link_code()
        return self.storage.insert(
            "surveys",
            {
                "tenant_id": tenant_id,
                "title": title,
                "description": (description or "").strip() or None,
                "year": parse_year(year),
                "status": "open",
                "link_code": code,
            },
        )

    def add_item(self, survey_id, role_name, max_suggestions=1):
        role_name = (role_name or "").strip()
        if not role_name:
            raise ValidationError("Role name is required.")
        try:
            max_suggestions = int(max_suggestions)
        except (TypeError, ValueError):
            raise ValidationError("Maximum suggestions must be a whole number.") from None
        if max_suggestions < 1:
            raise ValidationError("Maximum suggestions must be at least 1.")

        with self.storage.transaction():
            self.get(survey_id)
            items = self.list_items(survey_id)
            return self.storage.insert(
                "survey_items",
                {
                    "survey_id": survey_id,
                    "role_name": role_name,
                    "max_suggestions": max_suggestions,
                    "display_order": len(items) + 1,
                },
            )

    def set_status(self, survey_id, status):
        if status not in SURVEY_STATUSES:
            raise ValidationError("Survey status must be open or closed.")
        self.get(survey_id)
        (survey,) = self.storage.update("surveys", {"id": survey_id}, {"status": status})
        logger.info("Survey %s is now %s", survey_id, status)
        return survey

    def close_survey(self, survey_id):
        return self.set_status(survey_id, "closed")

    def reopen_survey(self, survey_id):
        return self.set_status(survey_id, "open")

    def resolve_link_code(self, code):
        code = (code or "").strip().upper()
        rows = self.storage.find("surveys", link_code=code) if code else []
        if not rows:
            raise NotFound("No survey matches this code.")
        survey = rows[0]
        if survey["status"] != "open":
            raise PreconditionFailed("This survey is no longer accepting suggestions.")
        return survey

    def submit_suggestions(self, survey_id, suggestions):
        """Record ``{item_id: [member_id, ...]}`` for an open survey."""
        survey = self.get(survey_id)
        if survey["status"] != "open":
            raise PreconditionFailed("This survey is no longer accepting suggestions.")
        if not isinstance(suggestions, dict):
            raise ValidationError("Suggestions must map survey items to lists of member ids.")

        items = {item["id"]: item for item in self.list_items(survey_id)}
        rows = []
        for item_id, member_ids in suggestions.items():
            chosen = []
            for member_id in clean_member_ids(member_ids, item_id=item_id):
                if member_id not in chosen:
                    chosen.append(member_id)
            if not chosen:
                continue
            item = items.get(item_id)
            if item is None:
                raise NotFound("Survey item not found.", item_id=item_id)
            if len(chosen) > item["max_suggestions"]:
                raise ValidationError(
                    f"At most {item['max_suggestions']} suggestion(s) for {item['role_name']}.",
                    item_id=item_id,
                )
            rows.extend(
                {
                    "survey_id": survey_id,
                    "survey_item_id": item_id,
                    "role_name": item["role_name"],
                    "member_id": member_id,
                    "vote_count": 1,
                }
                for member_id in chosen
            )

        if not rows:
            raise ValidationError("Make at least one valid suggestion.")

        member_ids = {row["member_id"] for row in rows}
        members = self.storage.query(Query("members", (in_("id", member_ids),)))
        valid = {
            member["id"]
            for member in members
            if member["tenant_id"] == survey["tenant_id"] and member["is_eligible"]
        }
        if member_ids - valid:
            raise NotFound(
                "Some suggested people are not eligible members.",
                member_ids=sorted(member_ids - valid),
            )

        with self.storage.transaction():
            inserted = self.storage.insert("survey_votes", rows)
        logger.info("Recorded %d suggestion(s) for survey %s", len(inserted), survey_id)
        return {"suggestion_count": len(inserted)}

    def results(self, survey_id):
        """Suggestion counts per role name, in item order."""
        self.get(survey_id)
        votes = self.storage.find("survey_votes", survey_id=survey_id)
        member_ids = set(count_suggestions(votes))
        members = (
            self.storage.query(Query("members", (in_("id", member_ids),))) if member_ids else []
        )
        members_by_id = {member["id"]: member for member in members}
        order = {item["role_name"]: item["display_order"] for item in self.list_items(survey_id)}

        by_role = {}
        for vote in votes:
            by_role.setdefault(vote["role_name"], []).append(vote)

        results = [
            {
                "role_name": role_name,
                "suggestions": rank_counts(count_suggestions(role_votes), members_by_id),
            }
            for role_name, role_votes in by_role.items()
        ]
        results.sort(key=lambda row: (order.get(row["role_name"], len(order) + 1), row["role_name"]))
        return results
