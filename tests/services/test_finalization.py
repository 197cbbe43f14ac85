import pytest

from signa.errors import CommitteeFinalized, PreconditionFailed, ValidationError
from signa.services import finalization
from signa.services.audit import audit_trail
from signa.services.finalization import FinalizationService
from signa.services.voting import BallotService


def test_issued_key_is_six_digits(storage, open_commission):
    key = FinalizationService(storage).issue_key(open_commission["id"])

    assert len(key) == 6
    assert key.isdigit()
    assert 100000 <= int(key) <= 999999


def test_finalize_with_matching_key_and_acknowledgment(
    storage, commissions, open_commission, monkeypatch
):
    monkeypatch.setattr(finalization, "generate_finalization_key", lambda: "482913")
    service = FinalizationService(storage)
    key = service.issue_key(open_commission["id"])
    assert key == "482913"

    finalized = service.finalize(open_commission["id"], key, "482913", True, actor_id="admin")

    assert finalized["status"] == "finalized"
    assert finalized["finalized_at"] is not None
    assert finalized["finalization_key"] == "482913"
    assert [row["action"] for row in audit_trail(storage, open_commission["id"])][-1] == "finalized"

    with pytest.raises(CommitteeFinalized):
        commissions.roles.add_role(open_commission["id"], "Secretary", 1)


def test_unchecked_acknowledgment_changes_nothing(storage, commissions, open_commission):
    service = FinalizationService(storage)
    key = service.issue_key(open_commission["id"])

    with pytest.raises(ValidationError):
        service.finalize(open_commission["id"], key, key, False)

    assert commissions.get(open_commission["id"])["status"] == "open"


def test_wrong_key_changes_nothing(storage, commissions, open_commission):
    service = FinalizationService(storage)
    key = service.issue_key(open_commission["id"])
    wrong = "000000" if key != "000000" else "111111"

    with pytest.raises(ValidationError):
        service.finalize(open_commission["id"], key, wrong, True)
    with pytest.raises(ValidationError):
        service.finalize(open_commission["id"], None, key, True)

    assert commissions.get(open_commission["id"])["status"] == "open"


def test_finalization_is_one_way(storage, open_commission):
    service = FinalizationService(storage)
    key = service.issue_key(open_commission["id"])
    service.finalize(open_commission["id"], key, key, True)

    with pytest.raises(CommitteeFinalized):
        service.issue_key(open_commission["id"])
    with pytest.raises(CommitteeFinalized):
        service.finalize(open_commission["id"], "123456", "123456", True)


def test_draft_committee_cannot_be_finalized(storage, commission):
    with pytest.raises(PreconditionFailed):
        FinalizationService(storage).issue_key(commission["id"])
    with pytest.raises(PreconditionFailed):
        FinalizationService(storage).finalize(commission["id"], "123456", "123456", True)


def test_finalized_committee_refuses_every_mutation(
    storage, commissions, open_commission, roles, members
):
    BallotService(storage).submit(open_commission["id"], {roles[1]["id"]: [members[0]["id"]]})
    service = FinalizationService(storage)
    key = service.issue_key(open_commission["id"])
    service.finalize(open_commission["id"], key, key, True)
    (ballot,) = storage.find("ballots", commission_id=open_commission["id"])
    before = (
        commissions.roles.list_roles(open_commission["id"], include_inactive=True),
        storage.find("ballots"),
        storage.find("votes"),
    )

    attempts = [
        lambda: commissions.roles.rename_role(roles[0]["id"], "Elders"),
        lambda: commissions.roles.update_max_selections(roles[0]["id"], 3),
        lambda: commissions.roles.remove_role(roles[0]["id"]),
        lambda: commissions.roles.move_role(roles[1]["id"], "up"),
        lambda: commissions.roles.import_default_roles(open_commission["id"]),
        lambda: commissions.update_settings(open_commission["id"], {"name": "Renamed"}),
        lambda: storage.insert(
            "ballots",
            {
                "commission_id": open_commission["id"],
                "role_id": roles[0]["id"],
                "signature": "x",
            },
        ),
        lambda: storage.insert("votes", {"ballot_id": ballot["id"], "member_id": members[1]["id"]}),
        lambda: storage.update("votes", {"ballot_id": ballot["id"]}, {"member_id": members[2]["id"]}),
        lambda: storage.delete("ballots", {"id": ballot["id"]}),
    ]
    for attempt in attempts:
        with pytest.raises(CommitteeFinalized):
            attempt()

    after = (
        commissions.roles.list_roles(open_commission["id"], include_inactive=True),
        storage.find("ballots"),
        storage.find("votes"),
    )
    assert after == before
