"""Bracket generation and advancement helpers."""

from __future__ import annotations

import logging
from typing import Optional

from rpx.errors import UnsupportedBracketType

from .models import BracketType, Match, MatchStatus

logger = logging.getLogger(__name__)


def position_label(round_number: int, match_number: int, bracket: str = "W") -> str:
    """Build a bracket position label such as ``WR2M1``."""
    return f"{bracket}R{round_number}M{match_number}"


def new_match(
    round_number: int,
    match_number: int,
    participant1_id: Optional[str] = None,
    participant2_id: Optional[str] = None,
    next_match_id: Optional[str] = None,
) -> Match:
    """Create an empty, scheduled match slot."""
    return {
        "roundNumber": round_number,
        "matchNumber": match_number,
        "bracketPosition": position_label(round_number, match_number),
        "participant1Id": participant1_id,
        "participant2Id": participant2_id,
        "winnerId": None,
        "loserId": None,
        "score1": None,
        "score2": None,
        "status": MatchStatus.SCHEDULED,
        "startTime": None,
        "endTime": None,
        "nextMatchId": next_match_id,
        "nextLoseMatchId": None,
        "roomId": None,
        "roomPassword": None,
    }


class BracketGenerator:
    """Utility class for generating tournament brackets."""

    MIN_PARTICIPANTS = 2

    @classmethod
    def generate(cls, bracket_type: str, participant_ids: list[str]) -> list[Match]:
        """Generate the match list for the given bracket type."""
        if bracket_type == BracketType.SINGLE_ELIMINATION:
            return cls.single_elimination(participant_ids)
        if bracket_type in (
            BracketType.DOUBLE_ELIMINATION,
            BracketType.ROUND_ROBIN,
            BracketType.SWISS,
        ):
            raise UnsupportedBracketType(
                f"Bracket type '{bracket_type}' is not supported yet."
            )
        raise UnsupportedBracketType(f"Unknown bracket type '{bracket_type}'.")

    @staticmethod
    def single_elimination(participant_ids: list[str]) -> list[Match]:
        """Build a single elimination tree.

        Round one pairs consecutive participants; a missing opponent leaves
        the slot empty. Every later round starts empty and is filled as
        results come in. Each non-final match points at the match its winner
        advances to through ``nextMatchId``.
        """
        num_participants = len(participant_ids)
        if num_participants < BracketGenerator.MIN_PARTICIPANTS:
            return []

        # ceil(log2(n)) without floating point
        num_rounds = (num_participants - 1).bit_length()
        first_round_matches = 2 ** (num_rounds - 1)

        matches: list[Match] = []
        for i in range(first_round_matches):
            p1_index = i * 2
            p2_index = i * 2 + 1
            next_match_id = (
                position_label(2, (i + 2) // 2) if num_rounds > 1 else None
            )
            matches.append(
                new_match(
                    1,
                    i + 1,
                    participant_ids[p1_index] if p1_index < num_participants else None,
                    participant_ids[p2_index] if p2_index < num_participants else None,
                    next_match_id,
                )
            )

        round_number = 2
        matches_in_round = first_round_matches // 2
        while matches_in_round >= 1:
            for j in range(1, matches_in_round + 1):
                next_match_id = (
                    position_label(round_number + 1, (j + 1) // 2)
                    if matches_in_round > 1
                    else None
                )
                matches.append(new_match(round_number, j, next_match_id=next_match_id))
            round_number += 1
            matches_in_round //= 2

        return matches


def index_matches(matches: list[Match]) -> dict[str, Match]:
    """Map bracket positions to their match dicts (same objects, not copies)."""
    return {m["bracketPosition"]: m for m in matches if m.get("bracketPosition")}


def filled_slots(match: Match) -> list[str]:
    """Return the participant ids currently seated in a match."""
    return [
        pid
        for pid in (match.get("participant1Id"), match.get("participant2Id"))
        if pid
    ]


def advance_participant(
    matches_by_position: dict[str, Match],
    source: Match,
    target_position: str,
    participant_id: str,
) -> Optional[Match]:
    """Seat a participant in the match a result feeds into.

    Odd-numbered source matches feed slot 1 and even-numbered ones slot 2.
    The target becomes ``scheduled`` once both slots are filled.
    """
    target = matches_by_position.get(target_position)
    if target is None:
        logger.warning(
            f"Match {source.get('bracketPosition')} points at missing match "
            f"{target_position}"
        )
        return None
    if target.get("status") in MatchStatus.TERMINAL:
        logger.warning(
            f"Not advancing {participant_id} into {target_position}: "
            f"match is {target.get('status')}"
        )
        return None

    if source.get("matchNumber", 1) % 2 == 1:
        target["participant1Id"] = participant_id
    else:
        target["participant2Id"] = participant_id

    if target.get("participant1Id") and target.get("participant2Id"):
        target["status"] = MatchStatus.SCHEDULED
    return target


def is_bracket_complete(matches: list[Match]) -> bool:
    """Return True when every match has reached a terminal status."""
    return bool(matches) and all(
        m.get("status") in MatchStatus.TERMINAL for m in matches
    )


def final_match(matches: list[Match]) -> Optional[Match]:
    """Return the match with no forward reference in the last round."""
    finals = [m for m in matches if not m.get("nextMatchId")]
    if not finals:
        return None
    return max(finals, key=lambda m: (m.get("roundNumber", 0), -m.get("matchNumber", 0)))
