"""Data models for the tournament blueprint."""

from __future__ import annotations

from typing import Any, Optional, TypedDict

from rpx.core.types import FirestoreDocument


class TournamentStatus:
    """Lifecycle states of a tournament document."""

    DRAFT = "draft"
    PUBLISHED = "published"
    REGISTRATION = "registration"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    ALL = (DRAFT, PUBLISHED, REGISTRATION, IN_PROGRESS, COMPLETED, CANCELLED)
    LISTED = (PUBLISHED, REGISTRATION, IN_PROGRESS)
    NOT_STARTED = (DRAFT, PUBLISHED, REGISTRATION)
    TERMINAL = (COMPLETED, CANCELLED)


class TournamentFormat:
    SOLO = "Solo"
    DUO = "Duo"
    SQUAD = "Squad"
    CUSTOM = "Custom"

    ALL = (SOLO, DUO, SQUAD, CUSTOM)


class BracketType:
    SINGLE_ELIMINATION = "single_elimination"
    DOUBLE_ELIMINATION = "double_elimination"
    ROUND_ROBIN = "round_robin"
    SWISS = "swiss"

    ALL = (SINGLE_ELIMINATION, DOUBLE_ELIMINATION, ROUND_ROBIN, SWISS)


class ParticipantStatus:
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DECLINED = "declined"
    ELIMINATED = "eliminated"

    # Values an organizer may set by hand; elimination follows results.
    ASSIGNABLE = (PENDING, CONFIRMED, DECLINED)


class PaymentStatus:
    PENDING = "pending"
    COMPLETED = "completed"
    REFUNDED = "refunded"


class MatchStatus:
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    OPEN = (SCHEDULED, IN_PROGRESS)
    TERMINAL = (COMPLETED, CANCELLED)


class Participant(TypedDict, total=False):
    """Represents a tournament participant."""

    userId: str
    teamId: Optional[str]
    registeredAt: Any
    status: str
    paymentStatus: str
    seed: Optional[int]


class Match(TypedDict, total=False):
    """A bracket slot, keyed by its bracket position (e.g. ``WR1M1``)."""

    roundNumber: int
    matchNumber: int
    bracketPosition: str
    participant1Id: Optional[str]
    participant2Id: Optional[str]
    winnerId: Optional[str]
    loserId: Optional[str]
    score1: Optional[int]
    score2: Optional[int]
    status: str
    startTime: Any
    endTime: Any
    nextMatchId: Optional[str]
    nextLoseMatchId: Optional[str]
    roomId: Optional[str]
    roomPassword: Optional[str]


class PrizeItem(TypedDict):
    """An in-platform item awarded with a prize."""

    itemId: str
    itemName: str
    itemQuantity: int


class Prize(TypedDict, total=False):
    """A prize for a finishing position."""

    position: int
    description: str
    cashAmount: Optional[float]
    coins: Optional[int]
    items: list[PrizeItem]


class Tournament(FirestoreDocument, total=False):
    """A tournament document in Firestore."""

    name: str
    description: str
    startDate: Any
    endDate: Any
    registrationStartDate: Any
    registrationEndDate: Any
    format: str
    bracketType: str
    status: str
    gameRules: str
    entryFee: float
    prizePool: float
    minParticipants: int
    maxParticipants: int
    currentParticipants: int
    image: str
    bannerImage: Optional[str]
    featured: bool
    isPublic: bool
    color: Optional[str]
    streamUrl: Optional[str]
    discordUrl: Optional[str]
    createdBy: str
    participants: list[Participant]
    participant_ids: list[str]
    matches: list[Match]
    prizes: list[Prize]
