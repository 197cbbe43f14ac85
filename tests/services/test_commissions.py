import pytest

from signa.errors import CommitteeFinalized, NotFound, PreconditionFailed, ValidationError
from signa.services.audit import audit_trail
from signa.services.finalization import FinalizationService
from signa.services.surveys import SurveyService


def test_new_committee_starts_as_draft(storage, commissions, tenant):
    commission = commissions.create_commission(
        tenant["id"], " Nominating Committee ", "2026", created_by="admin"
    )

    assert commission["status"] == "draft"
    assert commission["name"] == "Nominating Committee"
    assert commission["year"] == 2026
    assert commission["anonymity_mode"] == "anonymous"
    assert len(commission["link_code"]) == 8
    assert [row["action"] for row in audit_trail(storage, commission["id"])] == ["created"]


def test_invalid_committee_input_is_rejected(commissions, tenant):
    with pytest.raises(ValidationError):
        commissions.create_commission(tenant["id"], "", 2026)
    with pytest.raises(ValidationError):
        commissions.create_commission(tenant["id"], "Board", "next year")
    with pytest.raises(ValidationError):
        commissions.create_commission(tenant["id"], "Board", 2026, anonymity_mode="secret")
    with pytest.raises(NotFound):
        commissions.create_commission(tenant["id"], "Board", 2026, survey_id="missing")


def test_opening_requires_a_role(commissions, commission):
    with pytest.raises(PreconditionFailed):
        commissions.open_commission(commission["id"])


def test_open_is_recorded_and_cannot_repeat(storage, commissions, open_commission):
    assert open_commission["status"] == "open"
    assert audit_trail(storage, open_commission["id"])[-1]["action"] == "status:open"

    with pytest.raises(PreconditionFailed):
        commissions.open_commission(open_commission["id"])


def test_settings_are_validated_and_audited(storage, commissions, commission):
    updated = commissions.update_settings(
        commission["id"],
        {"name": "Board 2027", "year": 2027, "anonymity_mode": "optional-identification"},
        actor_id="admin",
    )

    assert updated["name"] == "Board 2027"
    assert updated["year"] == 2027
    assert updated["anonymity_mode"] == "optional-identification"
    (entry,) = [row for row in audit_trail(storage, commission["id"]) if row["action"] == "settings"]
    assert entry["details"] == {"fields": ["anonymity_mode", "name", "year"]}

    with pytest.raises(ValidationError):
        commissions.update_settings(commission["id"], {"status": "finalized"})


def test_link_code_resolves_only_open_committees(commissions, commission, roles):
    with pytest.raises(NotFound):
        commissions.resolve_link_code("NOPE1234")
    with pytest.raises(PreconditionFailed):
        commissions.resolve_link_code(commission["link_code"])

    commissions.open_commission(commission["id"])

    resolved = commissions.resolve_link_code(commission["link_code"].lower())
    assert resolved["id"] == commission["id"]


def test_finalized_link_code_is_refused(storage, commissions, open_commission):
    service = FinalizationService(storage)
    key = service.issue_key(open_commission["id"])
    service.finalize(open_commission["id"], key, key, True)

    with pytest.raises(CommitteeFinalized):
        commissions.resolve_link_code(open_commission["link_code"])


def test_candidates_follow_the_linked_survey(storage, commissions, tenant, members, roles):
    surveys = SurveyService(storage)
    survey = surveys.create_survey(tenant["id"], "Suggestions 2026", 2026)
    item = surveys.add_item(survey["id"], "Treasurer", 2)
    surveys.submit_suggestions(survey["id"], {item["id"]: [members[3]["id"], members[1]["id"]]})
    surveys.submit_suggestions(survey["id"], {item["id"]: [members[3]["id"]]})
    commission = commissions.get(roles[0]["commission_id"])
    commissions.update_settings(commission["id"], {"survey_id": survey["id"]})

    ranked = commissions.ranked_candidates(commissions.get(commission["id"]))

    treasurer = [member["full_name"] for member in ranked[roles[1]["id"]]]
    elder = [member["full_name"] for member in ranked[roles[0]["id"]]]
    assert treasurer == ["Davi Rocha", "Bruno Lima", "Ana Souza", "Carla Dias"]
    assert elder == ["Ana Souza", "Bruno Lima", "Carla Dias", "Davi Rocha"]


def test_voting_session_walks_roles_in_order(commissions, open_commission, members):
    first = commissions.voting_session_step(open_commission["id"], 0)
    last = commissions.voting_session_step(open_commission["id"], 2)

    assert first["role"]["name"] == "Elder"
    assert first["has_previous"] is False
    assert first["has_next"] is True
    assert first["role_count"] == 3
    assert [member["id"] for member in first["candidates"]] == [member["id"] for member in members]
    assert last["role"]["name"] == "Clerk"
    assert last["has_next"] is False

    with pytest.raises(NotFound):
        commissions.voting_session_step(open_commission["id"], 3)


def test_committees_are_listed_per_tenant(commissions, commission, other_tenant):
    commissions.create_commission(other_tenant["id"], "Elsewhere", 2026)

    listed = commissions.list_commissions(commission["tenant_id"])

    assert [row["id"] for row in listed] == [commission["id"]]
