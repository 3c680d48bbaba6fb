"""State transitions for the tournament aggregate.

Every function here works on a tournament dict as stored in Firestore,
mutates it in place and raises an ``AppError`` subclass when a rule is
broken. All checks run before the first mutation, so a failed call leaves
the document untouched. Loading and saving is done by
``TournamentService``.
"""

from __future__ import annotations

import datetime
from typing import Any, Optional

from rpx.errors import (
    DuplicateParticipant,
    InsufficientParticipants,
    InvalidStatusTransition,
    InvalidWinner,
    MatchAlreadyFinalized,
    MatchIncomplete,
    MatchNotFound,
    NotOpenForRegistration,
    ParticipantNotFound,
    RegistrationLocked,
    TournamentNotActive,
    Unauthorized,
    ValidationError,
)

from .bracket import (
    BracketGenerator,
    advance_participant,
    filled_slots,
    index_matches,
    is_bracket_complete,
)
from .models import (
    BracketType,
    Match,
    MatchStatus,
    Participant,
    ParticipantStatus,
    PaymentStatus,
    Tournament,
    TournamentStatus,
)

# Status changes an organizer may request directly. ``in_progress`` and
# ``completed`` are only reached through bracket generation and results.
MANUAL_TRANSITIONS: dict[str, tuple[str, ...]] = {
    TournamentStatus.DRAFT: (TournamentStatus.PUBLISHED, TournamentStatus.CANCELLED),
    TournamentStatus.PUBLISHED: (
        TournamentStatus.REGISTRATION,
        TournamentStatus.CANCELLED,
    ),
    TournamentStatus.REGISTRATION: (TournamentStatus.CANCELLED,),
    TournamentStatus.IN_PROGRESS: (TournamentStatus.CANCELLED,),
}


def _now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def sync_participants(tournament: Tournament) -> None:
    """Keep the derived participant fields consistent with the list."""
    participants = tournament.setdefault("participants", [])
    tournament["currentParticipants"] = len(participants)
    tournament["participant_ids"] = [p["userId"] for p in participants]


def find_participant(tournament: Tournament, user_id: str) -> Optional[Participant]:
    for participant in tournament.get("participants", []):
        if participant.get("userId") == user_id:
            return participant
    return None


def transition_status(tournament: Tournament, new_status: str) -> str:
    """Apply an organizer-requested status change."""
    current = tournament.get("status", TournamentStatus.DRAFT)
    if new_status not in MANUAL_TRANSITIONS.get(current, ()):
        raise InvalidStatusTransition(
            f"Cannot change tournament status from '{current}' to '{new_status}'."
        )

    if new_status == TournamentStatus.CANCELLED:
        now = _now()
        for match in tournament.get("matches", []):
            if match.get("status") in MatchStatus.OPEN:
                match["status"] = MatchStatus.CANCELLED
                match["endTime"] = now

    tournament["status"] = new_status
    return new_status


def enroll(
    tournament: Tournament,
    user_id: str,
    team_id: Optional[str] = None,
    now: Optional[datetime.datetime] = None,
) -> Participant:
    """Register a user in a tournament that is open for registration."""
    participants = tournament.setdefault("participants", [])
    if tournament.get("status") != TournamentStatus.REGISTRATION or len(
        participants
    ) >= tournament.get("maxParticipants", 0):
        raise NotOpenForRegistration()

    if find_participant(tournament, user_id) is not None:
        raise DuplicateParticipant()

    participant: Participant = {
        "userId": user_id,
        "teamId": team_id,
        "registeredAt": now or _now(),
        "status": ParticipantStatus.PENDING,
        "paymentStatus": (
            PaymentStatus.PENDING
            if tournament.get("entryFee", 0) > 0
            else PaymentStatus.COMPLETED
        ),
    }
    participants.append(participant)
    sync_participants(tournament)
    return participant


def withdraw(tournament: Tournament, user_id: str) -> None:
    """Remove a user's registration before the tournament starts."""
    if tournament.get("status") not in TournamentStatus.NOT_STARTED:
        raise RegistrationLocked()

    participant = find_participant(tournament, user_id)
    if participant is None:
        raise ParticipantNotFound()

    tournament["participants"].remove(participant)
    sync_participants(tournament)


def set_participant_status(
    tournament: Tournament,
    user_id: str,
    status: str,
    seed: Optional[int] = None,
) -> Participant:
    """Confirm, decline or reseed a participant before the bracket exists."""
    if tournament.get("status") not in TournamentStatus.NOT_STARTED:
        raise RegistrationLocked()
    if status not in ParticipantStatus.ASSIGNABLE:
        raise ValidationError(f"Invalid participant status '{status}'.")
    if seed is not None and seed < 1:
        raise ValidationError("Seed must be a positive number.")

    participant = find_participant(tournament, user_id)
    if participant is None:
        raise ParticipantNotFound()

    participant["status"] = status
    if seed is not None:
        participant["seed"] = seed
    return participant


def seeded_participants(tournament: Tournament) -> list[Participant]:
    """Confirmed participants, seeded ones first, then in registration order."""
    confirmed = [
        p
        for p in tournament.get("participants", [])
        if p.get("status") == ParticipantStatus.CONFIRMED
    ]
    return sorted(
        confirmed,
        key=lambda p: (p.get("seed") is None, p.get("seed") or 0),
    )


def generate_bracket(tournament: Tournament) -> list[Match]:
    """Close registration and lay out the bracket."""
    if tournament.get("status") != TournamentStatus.REGISTRATION:
        raise InsufficientParticipants(
            "The bracket can only be generated while registration is open."
        )

    confirmed = seeded_participants(tournament)
    minimum = max(
        tournament.get("minParticipants") or BracketGenerator.MIN_PARTICIPANTS,
        BracketGenerator.MIN_PARTICIPANTS,
    )
    if len(confirmed) < minimum:
        raise InsufficientParticipants(
            f"The tournament needs at least {minimum} confirmed participants."
        )

    matches = BracketGenerator.generate(
        tournament.get("bracketType", BracketType.SINGLE_ELIMINATION),
        [p["userId"] for p in confirmed],
    )
    tournament["matches"] = matches
    tournament["status"] = TournamentStatus.IN_PROGRESS
    return matches


def _refresh_completion(tournament: Tournament) -> str:
    if is_bracket_complete(tournament.get("matches", [])):
        tournament["status"] = TournamentStatus.COMPLETED
    return tournament["status"]


def _require_active_match(tournament: Tournament, match_id: str) -> Match:
    if tournament.get("status") != TournamentStatus.IN_PROGRESS:
        raise TournamentNotActive()
    match = index_matches(tournament.get("matches", [])).get(match_id)
    if match is None:
        raise MatchNotFound()
    if match.get("status") not in MatchStatus.OPEN:
        raise MatchAlreadyFinalized()
    return match


def _validate_score(value: Any, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"{label} must be a non-negative whole number.")
    return value


def is_match_participant(match: Optional[Match], user_id: Optional[str]) -> bool:
    return bool(match and user_id and user_id in filled_slots(match))


def report_result(
    tournament: Tournament,
    match_id: str,
    reporter_id: Optional[str],
    score1: int,
    score2: int,
    winner_id: str,
    is_admin: bool = False,
    now: Optional[datetime.datetime] = None,
) -> dict[str, Any]:
    """Record a match result and push the winner (and loser) forward."""
    if tournament.get("status") != TournamentStatus.IN_PROGRESS:
        raise TournamentNotActive()

    matches = tournament.get("matches", [])
    by_position = index_matches(matches)
    match = by_position.get(match_id)

    if not is_admin and not is_match_participant(match, reporter_id):
        raise Unauthorized("You are not allowed to report the result of this match.")
    if match is None:
        raise MatchNotFound()
    if match.get("status") not in MatchStatus.OPEN:
        raise MatchAlreadyFinalized()

    p1_id = match.get("participant1Id")
    p2_id = match.get("participant2Id")
    if not p1_id or not p2_id:
        raise MatchIncomplete()
    if winner_id not in (p1_id, p2_id):
        raise InvalidWinner()

    score1 = _validate_score(score1, "score1")
    score2 = _validate_score(score2, "score2")
    loser_id = p2_id if winner_id == p1_id else p1_id

    match.update(
        {
            "score1": score1,
            "score2": score2,
            "winnerId": winner_id,
            "loserId": loser_id,
            "status": MatchStatus.COMPLETED,
            "endTime": now or _now(),
        }
    )

    if match.get("nextMatchId"):
        advance_participant(by_position, match, match["nextMatchId"], winner_id)

    if match.get("nextLoseMatchId"):
        advance_participant(by_position, match, match["nextLoseMatchId"], loser_id)
    else:
        loser = find_participant(tournament, loser_id)
        if loser is not None:
            loser["status"] = ParticipantStatus.ELIMINATED

    return {
        "match": match,
        "matchStatus": match["status"],
        "tournamentStatus": _refresh_completion(tournament),
    }


def start_match(
    tournament: Tournament,
    match_id: str,
    room_id: Optional[str] = None,
    room_password: Optional[str] = None,
    now: Optional[datetime.datetime] = None,
) -> Match:
    """Move a seated match from ``scheduled`` to ``in_progress``."""
    match = _require_active_match(tournament, match_id)
    if match.get("status") == MatchStatus.IN_PROGRESS:
        raise ValidationError("This match has already started.")
    if len(filled_slots(match)) < 2:
        raise MatchIncomplete()

    match["status"] = MatchStatus.IN_PROGRESS
    match["startTime"] = now or _now()
    if room_id is not None:
        match["roomId"] = room_id
    if room_password is not None:
        match["roomPassword"] = room_password
    return match


def cancel_match(
    tournament: Tournament,
    match_id: str,
    now: Optional[datetime.datetime] = None,
) -> dict[str, Any]:
    """Cancel an open match without a result."""
    match = _require_active_match(tournament, match_id)
    match["status"] = MatchStatus.CANCELLED
    match["endTime"] = now or _now()
    return {
        "match": match,
        "matchStatus": match["status"],
        "tournamentStatus": _refresh_completion(tournament),
    }


def resolve_bye(
    tournament: Tournament,
    match_id: str,
    now: Optional[datetime.datetime] = None,
) -> dict[str, Any]:
    """Advance the only participant of a match and close it.

    The match is closed as ``cancelled`` since it has no result; the lone
    participant moves on along ``nextMatchId``.
    """
    match = _require_active_match(tournament, match_id)
    seated = filled_slots(match)
    if len(seated) != 1:
        raise ValidationError(
            "Only a match with exactly one participant can be resolved as a bye."
        )

    if match.get("nextMatchId"):
        advance_participant(
            index_matches(tournament["matches"]), match, match["nextMatchId"], seated[0]
        )
    match["status"] = MatchStatus.CANCELLED
    match["endTime"] = now or _now()
    return {
        "match": match,
        "matchStatus": match["status"],
        "tournamentStatus": _refresh_completion(tournament),
    }
