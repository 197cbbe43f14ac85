"""One-way finalization of a committee.

The operator is shown a freshly generated six digit key, types it back and
ticks an "I understand this is irreversible" box. All three must line up in
the same request or nothing is written. The status change itself is a
conditional update on ``status = open``, so it cannot race with another
finalization or slip past a concurrent write.
"""

import logging

from signa.errors import CommitteeFinalized, NotFound, PreconditionFailed, ValidationError
from signa.services.audit import record_audit
from signa.services.security import generate_finalization_key
from signa.storage.base import utcnow

logger = logging.getLogger(__name__)

KEY_LENGTH = 6


class FinalizationService:
    def __init__(self, storage):
        self.storage = storage

    def _load(self, commission_id):
        commission = self.storage.get("commissions", commission_id)
        if commission is None:
            raise NotFound("Committee not found.", commission_id=commission_id)
        return commission

    @staticmethod
    def _ensure_open(commission):
        if commission["status"] == "finalized":
            raise CommitteeFinalized("This committee has already been finalized.")
        if commission["status"] != "open":
            raise PreconditionFailed("Only an open committee can be finalized.")

    def issue_key(self, commission_id):
        """Key to display to the operator; only issued for open committees."""
        self._ensure_open(self._load(commission_id))
        return generate_finalization_key()

    def finalize(self, commission_id, issued_key, entered_key, acknowledged, actor_id=None):
        issued_key = (issued_key or "").strip()
        entered_key = (entered_key or "").strip()

        if len(issued_key) != KEY_LENGTH or not issued_key.isdigit():
            raise ValidationError("No finalization key was issued for this committee.")
        if entered_key != issued_key:
            raise ValidationError("The key entered does not match the key displayed.")
        if acknowledged is not True:
            raise ValidationError("Confirm that you understand finalization is irreversible.")

        commission = self._load(commission_id)
        self._ensure_open(commission)

        finalized_at = utcnow()
        with self.storage.transaction():
            updated = self.storage.update(
                "commissions",
                {"id": commission_id, "status": "open"},
                {
                    "status": "finalized",
                    "finalization_key": issued_key,
                    "finalized_at": finalized_at,
                },
            )
            if not updated:
                # lost the race: report whatever state won
                self._ensure_open(self._load(commission_id))
                raise PreconditionFailed("The committee changed while finalizing; try again.")
            record_audit(
                self.storage,
                "commissions",
                commission_id,
                "finalized",
                tenant_id=commission["tenant_id"],
                actor_id=actor_id,
                details={"finalized_at": finalized_at.isoformat()},
            )

        logger.info("Committee %s finalized", commission_id)
        return updated[0]
