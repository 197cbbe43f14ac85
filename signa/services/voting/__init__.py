from signa.services.voting.ranking import count_suggestions, rank_members
from signa.services.voting.submission import (
    ANONYMITY_MODES,
    BallotDraft,
    BallotService,
    normalize_selections,
)
from signa.services.voting.tally import TallyEngine, tally_ballots

__all__ = [
    "ANONYMITY_MODES",
    "BallotDraft",
    "BallotService",
    "TallyEngine",
    "count_suggestions",
    "normalize_selections",
    "rank_members",
    "tally_ballots",
]
