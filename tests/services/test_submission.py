import pytest

from signa.errors import CommitteeFinalized, NotFound, PreconditionFailed, StorageError, ValidationError
from signa.services.commissions import CommissionService
from signa.services.security import read_ballot_signature
from signa.services.voting import BallotDraft, BallotService, TallyEngine, normalize_selections
from signa.services.voting.submission import OPTIONAL_IDENTIFICATION, REQUIRED_IDENTIFICATION
from signa.storage import FinalizationGuard, MemoryBackend


def _counts(storage, commission_id):
    return (
        len(storage.find("ballots", commission_id=commission_id)),
        len(storage.find("votes")),
    )


def test_submission_writes_one_ballot_per_role_and_one_vote_per_member(
    storage, open_commission, roles, members
):
    receipt = BallotService(storage).submit(
        open_commission["id"],
        {
            roles[0]["id"]: [members[0]["id"], members[1]["id"]],
            roles[1]["id"]: [members[2]["id"]],
            roles[2]["id"]: [],
        },
    )

    assert receipt["ballot_count"] == 2
    assert receipt["vote_count"] == 3
    ballots = storage.find("ballots", commission_id=open_commission["id"])
    assert {ballot["role_id"] for ballot in ballots} == {roles[0]["id"], roles[1]["id"]}
    assert {ballot["signature"] for ballot in ballots} == {receipt["signature"]}
    assert all(ballot["voter_id"] is None for ballot in ballots)
    for ballot in ballots:
        assert storage.find("votes", ballot_id=ballot["id"])


def test_signature_carries_the_committee_and_nothing_about_the_voter(
    app, storage, open_commission, roles, members
):
    receipt = BallotService(storage).submit(
        open_commission["id"], {roles[1]["id"]: [members[0]["id"]]}
    )

    payload = read_ballot_signature(receipt["signature"], app.config["SECRET_KEY"])
    assert payload["c"] == open_commission["id"]
    assert set(payload) == {"c", "n"}


def test_one_selection_over_the_limit_is_rejected(storage, open_commission, roles, members):
    elder = roles[0]

    with pytest.raises(ValidationError):
        BallotService(storage).submit(
            open_commission["id"], {elder["id"]: [member["id"] for member in members[:3]]}
        )

    assert _counts(storage, open_commission["id"]) == (0, 0)


def test_treasurer_with_two_people_leaves_no_trace(storage, open_commission, roles, members):
    treasurer = roles[1]

    with pytest.raises(ValidationError):
        BallotService(storage).submit(
            open_commission["id"],
            {
                roles[0]["id"]: [members[3]["id"]],
                treasurer["id"]: [members[0]["id"], members[1]["id"]],
            },
        )

    assert storage.find("ballots", commission_id=open_commission["id"]) == []
    assert TallyEngine(storage).tally_role(open_commission["id"], treasurer["id"]) is None


def test_empty_submission_is_rejected(storage, open_commission, roles):
    with pytest.raises(ValidationError):
        BallotService(storage).submit(open_commission["id"], {roles[0]["id"]: []})

    with pytest.raises(ValidationError):
        BallotService(storage).submit(open_commission["id"], ["not", "a", "mapping"])


def test_duplicate_selection_is_rejected(storage, open_commission, roles, members):
    with pytest.raises(ValidationError):
        BallotService(storage).submit(
            open_commission["id"], {roles[0]["id"]: [members[0]["id"], members[0]["id"]]}
        )


def test_unknown_member_and_role_are_rejected(storage, open_commission, roles, members):
    service = BallotService(storage)

    with pytest.raises(NotFound):
        service.submit(open_commission["id"], {roles[0]["id"]: ["no-such-member"]})
    with pytest.raises(NotFound):
        service.submit(open_commission["id"], {"no-such-role": [members[0]["id"]]})

    assert _counts(storage, open_commission["id"]) == (0, 0)


def test_ineligible_member_cannot_be_selected(storage, open_commission, roles, members):
    storage.update("members", {"id": members[0]["id"]}, {"is_eligible": False})

    with pytest.raises(NotFound):
        BallotService(storage).submit(open_commission["id"], {roles[1]["id"]: [members[0]["id"]]})


def test_member_of_another_tenant_cannot_be_selected(
    storage, open_commission, roles, other_tenant
):
    outsider = storage.insert(
        "members", {"tenant_id": other_tenant["id"], "full_name": "Olga Reis", "is_eligible": True}
    )

    with pytest.raises(NotFound):
        BallotService(storage).submit(open_commission["id"], {roles[1]["id"]: [outsider["id"]]})


def test_draft_committee_rejects_votes(storage, commission, roles, members):
    with pytest.raises(PreconditionFailed) as excinfo:
        BallotService(storage).submit(commission["id"], {roles[1]["id"]: [members[0]["id"]]})

    assert not isinstance(excinfo.value, CommitteeFinalized)
    assert _counts(storage, commission["id"]) == (0, 0)


def test_finalized_committee_rejects_votes(storage, open_commission, roles, members):
    storage.update("commissions", {"id": open_commission["id"]}, {"status": "finalized"})

    with pytest.raises(CommitteeFinalized):
        BallotService(storage).submit(open_commission["id"], {roles[1]["id"]: [members[0]["id"]]})


def test_optional_identification_keeps_the_voter(storage, tenant, members):
    service = CommissionService(storage)
    commission = service.create_commission(
        tenant["id"], "Deacons", 2026, anonymity_mode=OPTIONAL_IDENTIFICATION
    )
    role = service.roles.add_role(commission["id"], "Deacon", 2)
    service.open_commission(commission["id"])
    ballots = BallotService(storage)

    ballots.submit(commission["id"], {role["id"]: [members[0]["id"]]}, voter_id=members[3]["id"])
    ballots.submit(commission["id"], {role["id"]: [members[1]["id"]]})

    voters = sorted(
        (ballot["voter_id"] or "") for ballot in storage.find("ballots", commission_id=commission["id"])
    )
    assert voters == ["", members[3]["id"]]


def test_anonymous_mode_discards_the_voter(storage, open_commission, roles, members):
    BallotService(storage).submit(
        open_commission["id"], {roles[1]["id"]: [members[0]["id"]]}, voter_id=members[1]["id"]
    )

    (ballot,) = storage.find("ballots", commission_id=open_commission["id"])
    assert ballot["voter_id"] is None


def test_required_identification_allows_one_ballot_per_role(storage, tenant, members):
    service = CommissionService(storage)
    commission = service.create_commission(
        tenant["id"], "Board", 2026, anonymity_mode=REQUIRED_IDENTIFICATION
    )
    role = service.roles.add_role(commission["id"], "Chair", 1)
    service.open_commission(commission["id"])
    ballots = BallotService(storage)

    with pytest.raises(ValidationError):
        ballots.submit(commission["id"], {role["id"]: [members[0]["id"]]})

    ballots.submit(commission["id"], {role["id"]: [members[0]["id"]]}, voter_id=members[2]["id"])
    with pytest.raises(PreconditionFailed):
        ballots.submit(commission["id"], {role["id"]: [members[1]["id"]]}, voter_id=members[2]["id"])

    assert len(storage.find("ballots", commission_id=commission["id"])) == 1


def test_normalize_selections_orders_roles_for_display():
    roles_by_id = {
        "late": {"id": "late", "name": "Clerk", "max_selections": 1, "display_order": 5},
        "early": {"id": "early", "name": "Elder", "max_selections": 2, "display_order": 1},
    }

    plan = normalize_selections({"late": ["m1"], "early": ["m2", "m3"]}, roles_by_id)

    assert [(role["id"], members) for role, members in plan] == [
        ("early", ["m2", "m3"]),
        ("late", ["m1"]),
    ]


def test_ballot_draft_refuses_selection_beyond_limit():
    draft = BallotDraft([{"id": "r1", "name": "Treasurer", "max_selections": 1, "display_order": 1}])

    draft.select("r1", "m1")
    with pytest.raises(ValidationError):
        draft.select("r1", "m2")

    draft.toggle("r1", "m1")
    draft.toggle("r1", "m2")
    assert draft.payload() == {"r1": ["m2"]}

    draft.clear()
    assert draft.payload() == {}


class FailingVotesBackend(MemoryBackend):
    def insert(self, entity, records):
        if entity == "votes":
            raise StorageError("Could not write votes.")
        return super().insert(entity, records)


def test_failed_vote_write_leaves_no_ballot(app):
    storage = FinalizationGuard(FailingVotesBackend())
    tenant = storage.insert("tenants", {"name": "T", "slug": "t"})
    member = storage.insert(
        "members", {"tenant_id": tenant["id"], "full_name": "Ana", "is_eligible": True}
    )
    service = CommissionService(storage)
    commission = service.create_commission(tenant["id"], "C", 2026)
    role = service.roles.add_role(commission["id"], "Elder", 1)
    service.open_commission(commission["id"])

    with pytest.raises(StorageError):
        BallotService(storage, secret_key="k").submit(commission["id"], {role["id"]: [member["id"]]})

    assert storage.find("ballots") == []


def test_non_string_member_ids_are_rejected(storage, open_commission, roles, members):
    service = BallotService(storage)

    with pytest.raises(ValidationError):
        service.submit(open_commission["id"], {roles[0]["id"]: [{"id": members[0]["id"]}]})
    with pytest.raises(ValidationError):
        service.submit(open_commission["id"], {roles[0]["id"]: [[members[0]["id"]]]})

    assert _counts(storage, open_commission["id"]) == (0, 0)


def test_non_string_voter_id_is_rejected(storage, tenant, members):
    service = CommissionService(storage)
    commission = service.create_commission(
        tenant["id"], "Deacons", 2026, anonymity_mode=OPTIONAL_IDENTIFICATION
    )
    role = service.roles.add_role(commission["id"], "Deacon", 1)
    service.open_commission(commission["id"])

    with pytest.raises(ValidationError):
        BallotService(storage).submit(
            commission["id"], {role["id"]: [members[0]["id"]]}, voter_id={"id": members[1]["id"]}
        )

    assert storage.find("ballots", commission_id=commission["id"]) == []


def test_limits_are_checked_again_when_the_ballot_is_written(
    storage, open_commission, roles, members
):
    elder = roles[0]
    service = BallotService(storage)
    list_roles = service.roles.list_roles
    calls = []

    def lowered_after_first_read(commission_id, include_inactive=False):
        result = list_roles(commission_id, include_inactive=include_inactive)
        if not calls:
            service.roles.update_max_selections(elder["id"], 1)
        calls.append(commission_id)
        return result

    service.roles.list_roles = lowered_after_first_read

    with pytest.raises(ValidationError):
        service.submit(open_commission["id"], {elder["id"]: [members[0]["id"], members[1]["id"]]})

    assert len(calls) == 2
    assert _counts(storage, open_commission["id"]) == (0, 0)
