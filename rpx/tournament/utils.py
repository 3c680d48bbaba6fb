"""Utility functions for tournament presentation."""

from __future__ import annotations

import copy
import datetime
from typing import Any, Optional

from .bracket import final_match
from .models import Match, MatchStatus, Prize, Tournament


def jsonable(value: Any) -> Any:
    """Convert Firestore values into JSON friendly ones."""
    if isinstance(value, datetime.datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: jsonable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [jsonable(v) for v in value]
    return value


def can_see_room(match: Match, viewer_id: Optional[str], is_admin: bool) -> bool:
    """Room credentials are only shown to admins and the two players."""
    if is_admin:
        return True
    return bool(viewer_id) and viewer_id in (
        match.get("participant1Id"),
        match.get("participant2Id"),
    )


def serialize_match(
    match: Match, viewer_id: Optional[str] = None, is_admin: bool = False
) -> dict[str, Any]:
    data = copy.deepcopy(dict(match))
    if not can_see_room(match, viewer_id, is_admin):
        data.pop("roomPassword", None)
    return jsonable(data)


def serialize_tournament(
    tournament: Tournament, viewer_id: Optional[str] = None, is_admin: bool = False
) -> dict[str, Any]:
    """Prepare a tournament document for a JSON response."""
    data = {k: v for k, v in tournament.items() if k != "matches"}
    data = jsonable(copy.deepcopy(data))
    data["matches"] = [
        serialize_match(m, viewer_id, is_admin) for m in tournament.get("matches", [])
    ]
    return data


def group_matches_by_round(
    matches: list[Match], viewer_id: Optional[str] = None, is_admin: bool = False
) -> dict[str, list[dict[str, Any]]]:
    """Group matches by round number, each round sorted by match number."""
    rounds: dict[int, list[Match]] = {}
    for match in matches:
        rounds.setdefault(match.get("roundNumber", 0), []).append(match)

    return {
        str(round_number): [
            serialize_match(m, viewer_id, is_admin)
            for m in sorted(rounds[round_number], key=lambda m: m.get("matchNumber", 0))
        ]
        for round_number in sorted(rounds)
    }


def get_final_standings(tournament: Tournament) -> list[dict[str, Any]]:
    """Champion and runner-up with the prizes for their positions."""
    final = final_match(tournament.get("matches", []))
    if not final or final.get("status") != MatchStatus.COMPLETED:
        return []

    prizes: dict[int, Prize] = {
        p["position"]: p for p in tournament.get("prizes", []) if "position" in p
    }
    standings = []
    for position, user_id in ((1, final.get("winnerId")), (2, final.get("loserId"))):
        if user_id:
            standings.append(
                {
                    "position": position,
                    "userId": user_id,
                    "prize": copy.deepcopy(prizes.get(position)),
                }
            )
    return standings
