"""Write barrier for finalized committees.

``FinalizationGuard`` wraps any backend. Before a write touches a committee,
its roles, its ballots or their votes, the owning committee rows are read
with ``for_update`` inside the same transaction as the write, and the write
is refused with ``CommitteeFinalized`` when any of them is finalized.
"""

import logging
from contextlib import contextmanager

from signa.errors import CommitteeFinalized, NotFound
from signa.storage.base import Query, StorageBackend, as_filters, in_

logger = logging.getLogger(__name__)

FINALIZED = "finalized"

# entity set -> column holding the owning committee id
COMMITTEE_SCOPED = {
    "commissions": "id",
    "commission_roles": "commission_id",
    "ballots": "commission_id",
}


class FinalizationGuard(StorageBackend):
    def __init__(self, inner):
        self.inner = inner

    @property
    def name(self):
        return self.inner.name

    def query(self, query):
        return self.inner.query(query)

    def insert(self, entity, records):
        batch = [records] if isinstance(records, dict) else list(records)
        with self.inner.transaction():
            if entity == "votes":
                self._check_committees(self._committees_for_ballots(
                    {record.get("ballot_id") for record in batch}
                ))
            elif entity in ("commission_roles", "ballots"):
                self._check_committees({record.get("commission_id") for record in batch})
            return self.inner.insert(entity, records if isinstance(records, dict) else batch)

    def update(self, entity, filters, patch):
        with self.inner.transaction():
            self._check_existing(entity, filters)
            return self.inner.update(entity, filters, patch)

    def delete(self, entity, filters):
        with self.inner.transaction():
            self._check_existing(entity, filters)
            self.inner.delete(entity, filters)

    @contextmanager
    def transaction(self):
        with self.inner.transaction():
            yield self

    def _check_existing(self, entity, filters):
        if entity == "votes":
            rows = self.inner.query(Query(entity, as_filters(filters)))
            ballot_ids = {row["ballot_id"] for row in rows}
            self._check_committees(self._committees_for_ballots(ballot_ids))
        elif entity in COMMITTEE_SCOPED:
            column = COMMITTEE_SCOPED[entity]
            rows = self.inner.query(Query(entity, as_filters(filters)))
            self._check_committees({row[column] for row in rows})

    def _committees_for_ballots(self, ballot_ids):
        ballot_ids = {ballot_id for ballot_id in ballot_ids if ballot_id}
        if not ballot_ids:
            return set()
        ballots = self.inner.query(Query("ballots", (in_("id", ballot_ids),)))
        missing = ballot_ids - {ballot["id"] for ballot in ballots}
        if missing:
            raise NotFound("A vote must reference an existing ballot.", ballot_ids=sorted(missing))
        return {ballot["commission_id"] for ballot in ballots}

    def _check_committees(self, commission_ids):
        commission_ids = {commission_id for commission_id in commission_ids if commission_id}
        if not commission_ids:
            return
        committees = self.inner.query(
            Query("commissions", (in_("id", commission_ids),), for_update=True)
        )
        for committee in committees:
            if committee.get("status") == FINALIZED:
                logger.warning("Write refused: committee %s is finalized", committee["id"])
                raise CommitteeFinalized(
                    f'Committee "{committee.get("name")}" is finalized and can no longer be changed.'
                )
