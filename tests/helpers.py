"""Builders for tournament documents used across the tests."""

from __future__ import annotations

import datetime
from typing import Any, Optional

from rpx.tournament.models import ParticipantStatus, TournamentStatus

START = datetime.datetime(2026, 11, 1, 18, 0, tzinfo=datetime.timezone.utc)


def make_participant(
    user_id: str,
    status: str = ParticipantStatus.CONFIRMED,
    seed: Optional[int] = None,
) -> dict[str, Any]:
    participant: dict[str, Any] = {
        "userId": user_id,
        "teamId": None,
        "registeredAt": START - datetime.timedelta(days=3),
        "status": status,
        "paymentStatus": "completed",
    }
    if seed is not None:
        participant["seed"] = seed
    return participant


def make_tournament(
    status: str = TournamentStatus.REGISTRATION,
    participants: Optional[list[str]] = None,
    **overrides: Any,
) -> dict[str, Any]:
    """Return a tournament document as it would be stored in Firestore."""
    people = [make_participant(uid) for uid in participants or []]
    tournament: dict[str, Any] = {
        "name": "Friday Night Clash",
        "description": "Weekly community tournament",
        "startDate": START,
        "endDate": START + datetime.timedelta(hours=4),
        "registrationStartDate": START - datetime.timedelta(days=7),
        "registrationEndDate": START - datetime.timedelta(hours=1),
        "format": "Solo",
        "bracketType": "single_elimination",
        "status": status,
        "gameRules": "Best of one, classic mode",
        "entryFee": 0,
        "prizePool": 0,
        "minParticipants": 2,
        "maxParticipants": 16,
        "currentParticipants": len(people),
        "image": "https://cdn.example.com/clash.png",
        "featured": False,
        "isPublic": True,
        "createdBy": "admin1",
        "participants": people,
        "participant_ids": [p["userId"] for p in people],
        "matches": [],
        "prizes": [],
        "version": 0,
    }
    tournament.update(overrides)
    return tournament


def creation_data(**overrides: Any) -> dict[str, Any]:
    """Return validated form data for ``TournamentService.create_tournament``."""
    data: dict[str, Any] = {
        "name": "Friday Night Clash",
        "description": "Weekly community tournament",
        "start_date": datetime.datetime(2026, 11, 1, 18, 0),
        "end_date": datetime.datetime(2026, 11, 1, 22, 0),
        "registration_start_date": datetime.datetime(2026, 10, 25, 9, 0),
        "registration_end_date": datetime.datetime(2026, 11, 1, 17, 0),
        "format": "Solo",
        "bracket_type": "single_elimination",
        "status": "draft",
        "game_rules": "Best of one, classic mode",
        "entry_fee": 0,
        "prize_pool": 500,
        "min_participants": 2,
        "max_participants": 16,
        "image": "https://cdn.example.com/clash.png",
    }
    data.update(overrides)
    return data
