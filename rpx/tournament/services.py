"""Service layer for tournament business logic."""

from __future__ import annotations

import datetime
import logging
from typing import TYPE_CHECKING, Any, Callable, Optional, cast

from firebase_admin import firestore

from rpx.core.constants import DEFAULT_PAGE_SIZE, TOURNAMENTS_COLLECTION
from rpx.errors import TournamentNotFound, ValidationError

from . import lifecycle
from .models import (
    BracketType,
    Prize,
    PrizeItem,
    Tournament,
    TournamentFormat,
    TournamentStatus,
)

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.transaction import Transaction

REQUIRED_FIELDS = (
    "name",
    "description",
    "start_date",
    "end_date",
    "registration_start_date",
    "registration_end_date",
    "format",
    "game_rules",
    "max_participants",
    "image",
)

# Statuses an organizer may create a tournament in.
INITIAL_STATUSES = (
    TournamentStatus.DRAFT,
    TournamentStatus.PUBLISHED,
    TournamentStatus.REGISTRATION,
)


def _as_utc(value: Any) -> Any:
    if not isinstance(value, datetime.datetime):
        return value
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value.astimezone(datetime.timezone.utc)


def normalize_prizes(raw_prizes: Any) -> list[Prize]:
    """Validate a prize table coming from a request body."""
    if raw_prizes is None:
        return []
    if not isinstance(raw_prizes, list):
        raise ValidationError("Prizes must be a list.")

    prizes: list[Prize] = []
    for raw in raw_prizes:
        if not isinstance(raw, dict):
            raise ValidationError("Each prize must be an object.")
        position = raw.get("position")
        if not isinstance(position, int) or isinstance(position, bool) or position < 1:
            raise ValidationError("Prize position must be a positive number.")
        if not raw.get("description"):
            raise ValidationError("Prize description is required.")

        prize: Prize = {"position": position, "description": str(raw["description"])}
        for key in ("cashAmount", "coins"):
            amount = raw.get(key)
            if amount is None:
                continue
            if not isinstance(amount, (int, float)) or amount < 0:
                raise ValidationError(f"Prize {key} must be a non-negative number.")
            prize[key] = amount  # type: ignore[literal-required]

        items: list[PrizeItem] = []
        for item in raw.get("items") or []:
            if not isinstance(item, dict):
                raise ValidationError("Each prize item must be an object.")
            quantity = item.get("itemQuantity", 1)
            if not item.get("itemName"):
                raise ValidationError("Prize item name is required.")
            if not isinstance(quantity, int) or quantity < 1:
                raise ValidationError("Prize item quantity must be at least 1.")
            items.append(
                {
                    "itemId": str(item.get("itemId", "")),
                    "itemName": str(item["itemName"]),
                    "itemQuantity": quantity,
                }
            )
        if items:
            prize["items"] = items
        prizes.append(prize)

    positions = [p["position"] for p in prizes]
    if len(positions) != len(set(positions)):
        raise ValidationError("Each prize position may only appear once.")
    return sorted(prizes, key=lambda p: p["position"])


class TournamentService:
    """Handles business logic and data access for tournaments."""

    @staticmethod
    def _validate_new_tournament(data: dict[str, Any]) -> None:
        missing = [f for f in REQUIRED_FIELDS if data.get(f) in (None, "")]
        if missing:
            raise ValidationError(f"Missing required field: {missing[0]}")

        if data["format"] not in TournamentFormat.ALL:
            raise ValidationError(f"Invalid format '{data['format']}'.")
        bracket_type = data.get("bracket_type") or BracketType.SINGLE_ELIMINATION
        if bracket_type not in BracketType.ALL:
            raise ValidationError(f"Invalid bracket type '{bracket_type}'.")
        status = data.get("status") or TournamentStatus.DRAFT
        if status not in INITIAL_STATUSES:
            raise ValidationError(f"A tournament cannot be created as '{status}'.")

        min_participants = data.get("min_participants") or 2
        if min_participants < 2:
            raise ValidationError("A tournament needs at least 2 participants.")
        if data["max_participants"] < min_participants:
            raise ValidationError(
                "Maximum participants must not be lower than minimum participants."
            )
        if (data.get("entry_fee") or 0) < 0 or (data.get("prize_pool") or 0) < 0:
            raise ValidationError("Entry fee and prize pool must not be negative.")
        if _as_utc(data["end_date"]) < _as_utc(data["start_date"]):
            raise ValidationError("The tournament cannot end before it starts.")
        if _as_utc(data["registration_end_date"]) < _as_utc(
            data["registration_start_date"]
        ):
            raise ValidationError("Registration cannot close before it opens.")

    @staticmethod
    def create_tournament(
        data: dict[str, Any], user_uid: str, db: Client | None = None
    ) -> str:
        """Create a tournament and return its ID."""
        if db is None:
            db = firestore.client()
        TournamentService._validate_new_tournament(data)

        tournament_payload = {
            "name": data["name"],
            "description": data["description"],
            "startDate": _as_utc(data["start_date"]),
            "endDate": _as_utc(data["end_date"]),
            "registrationStartDate": _as_utc(data["registration_start_date"]),
            "registrationEndDate": _as_utc(data["registration_end_date"]),
            "format": data["format"],
            "bracketType": data.get("bracket_type") or BracketType.SINGLE_ELIMINATION,
            "status": data.get("status") or TournamentStatus.DRAFT,
            "gameRules": data["game_rules"],
            "entryFee": data.get("entry_fee") or 0,
            "prizePool": data.get("prize_pool") or 0,
            "minParticipants": data.get("min_participants") or 2,
            "maxParticipants": data["max_participants"],
            "currentParticipants": 0,
            "image": data["image"],
            "bannerImage": data.get("banner_image"),
            "featured": bool(data.get("featured", False)),
            "isPublic": bool(data.get("is_public", True)),
            "color": data.get("color"),
            "streamUrl": data.get("stream_url"),
            "discordUrl": data.get("discord_url"),
            "createdBy": user_uid,
            "participants": [],
            "participant_ids": [],
            "matches": [],
            "prizes": normalize_prizes(data.get("prizes")),
            "version": 0,
            "createdAt": firestore.SERVER_TIMESTAMP,
        }
        _, ref = db.collection(TOURNAMENTS_COLLECTION).add(tournament_payload)
        logging.info(f"Tournament {ref.id} created by {user_uid}")
        return str(ref.id)

    @staticmethod
    def get_tournament(tournament_id: str, db: Client | None = None) -> Tournament:
        """Fetch a tournament document by id."""
        if db is None:
            db = firestore.client()
        doc = cast(
            "DocumentSnapshot",
            db.collection(TOURNAMENTS_COLLECTION).document(tournament_id).get(),
        )
        data = doc.to_dict() if doc.exists else None
        if not data:
            raise TournamentNotFound()
        data["id"] = doc.id
        return cast(Tournament, data)

    @staticmethod
    def list_tournaments(
        status: str | None = None,
        tournament_format: str | None = None,
        featured: bool = False,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        include_private: bool = False,
        db: Client | None = None,
    ) -> tuple[list[Tournament], dict[str, int]]:
        """List tournaments sorted by start date, one page at a time."""
        if db is None:
            db = firestore.client()
        page = max(page, 1)
        limit = max(limit, 1)

        query: Any = db.collection(TOURNAMENTS_COLLECTION)
        if status:
            query = query.where(filter=firestore.FieldFilter("status", "==", status))
        else:
            query = query.where(
                filter=firestore.FieldFilter(
                    "status", "in", list(TournamentStatus.LISTED)
                )
            )
        if tournament_format:
            query = query.where(
                filter=firestore.FieldFilter("format", "==", tournament_format)
            )
        if featured:
            query = query.where(filter=firestore.FieldFilter("featured", "==", True))

        tournaments = []
        for doc in query.stream():
            data = doc.to_dict()
            if not data:
                continue
            if not include_private and not data.get("isPublic", True):
                continue
            data["id"] = doc.id
            tournaments.append(data)

        # Sorted here rather than with order_by to avoid composite indexes.
        tournaments.sort(
            key=lambda t: (t.get("startDate") is None, t.get("startDate") or 0)
        )

        total = len(tournaments)
        start = (page - 1) * limit
        pagination = {
            "total": total,
            "page": page,
            "limit": limit,
            "pages": (total + limit - 1) // limit,
        }
        return tournaments[start : start + limit], pagination

    @staticmethod
    def delete_tournament(tournament_id: str, db: Client | None = None) -> None:
        """Delete a tournament document."""
        if db is None:
            db = firestore.client()
        ref = db.collection(TOURNAMENTS_COLLECTION).document(tournament_id)
        if not ref.get().exists:
            raise TournamentNotFound()
        ref.delete()
        logging.info(f"Tournament {tournament_id} deleted")

    @staticmethod
    def _apply(
        tournament_id: str,
        operation: Callable[[Tournament], Any],
        db: Client | None = None,
    ) -> tuple[Any, Tournament]:
        """Run a lifecycle operation against the stored tournament.

        The read, the rule checks and the write share one Firestore
        transaction, so two requests racing on the same document cannot both
        apply: the loser is retried on fresh data and fails the rule checks.
        """
        if db is None:
            db = firestore.client()
        ref = db.collection(TOURNAMENTS_COLLECTION).document(tournament_id)
        transaction = db.transaction()

        @firestore.transactional
        def _run(transaction: Transaction) -> tuple[Any, Tournament]:
            snapshot = ref.get(transaction=transaction)
            data = snapshot.to_dict() if snapshot.exists else None
            if not data:
                raise TournamentNotFound()

            tournament = cast(Tournament, data)
            result = operation(tournament)
            tournament["version"] = tournament.get("version", 0) + 1
            transaction.set(
                ref, {**tournament, "updatedAt": firestore.SERVER_TIMESTAMP}
            )
            tournament["id"] = tournament_id
            return result, tournament

        return _run(transaction)

    @staticmethod
    def transition_status(
        tournament_id: str, new_status: str, db: Client | None = None
    ) -> Tournament:
        """Change the status of a tournament on an organizer's request."""
        _, tournament = TournamentService._apply(
            tournament_id, lambda t: lifecycle.transition_status(t, new_status), db
        )
        logging.info(f"Tournament {tournament_id} moved to {new_status}")
        return tournament

    @staticmethod
    def enroll(
        tournament_id: str,
        user_uid: str,
        team_id: Optional[str] = None,
        db: Client | None = None,
    ) -> dict[str, Any]:
        """Register a user in a tournament."""
        participant, tournament = TournamentService._apply(
            tournament_id, lambda t: lifecycle.enroll(t, user_uid, team_id), db
        )
        logging.info(f"User {user_uid} registered in tournament {tournament_id}")
        return {
            "tournamentId": tournament_id,
            "tournamentName": tournament.get("name"),
            "registeredAt": participant["registeredAt"],
            "entryFee": tournament.get("entryFee", 0),
            "paymentStatus": participant["paymentStatus"],
        }

    @staticmethod
    def withdraw(tournament_id: str, user_uid: str, db: Client | None = None) -> None:
        """Cancel a user's registration."""
        TournamentService._apply(
            tournament_id, lambda t: lifecycle.withdraw(t, user_uid), db
        )
        logging.info(f"User {user_uid} withdrew from tournament {tournament_id}")

    @staticmethod
    def set_participant_status(
        tournament_id: str,
        user_uid: str,
        status: str,
        seed: Optional[int] = None,
        db: Client | None = None,
    ) -> dict[str, Any]:
        """Confirm, decline or seed a participant."""
        participant, _ = TournamentService._apply(
            tournament_id,
            lambda t: lifecycle.set_participant_status(t, user_uid, status, seed),
            db,
        )
        return dict(participant)

    @staticmethod
    def generate_bracket(tournament_id: str, db: Client | None = None) -> Tournament:
        """Generate the bracket and start the tournament."""
        matches, tournament = TournamentService._apply(
            tournament_id, lifecycle.generate_bracket, db
        )
        logging.info(
            f"Bracket generated for tournament {tournament_id} "
            f"with {len(matches)} matches"
        )
        return tournament

    @staticmethod
    def report_result(  # noqa: PLR0913
        tournament_id: str,
        match_id: str,
        reporter_id: str,
        score1: int,
        score2: int,
        winner_id: str,
        is_admin: bool = False,
        db: Client | None = None,
    ) -> dict[str, Any]:
        """Record the result of a match."""
        outcome, _ = TournamentService._apply(
            tournament_id,
            lambda t: lifecycle.report_result(
                t, match_id, reporter_id, score1, score2, winner_id, is_admin
            ),
            db,
        )
        logging.info(
            f"Result for {match_id} in tournament {tournament_id} reported by "
            f"{reporter_id}: winner {winner_id}"
        )
        if outcome["tournamentStatus"] == TournamentStatus.COMPLETED:
            logging.info(f"Tournament {tournament_id} completed")
        return outcome

    @staticmethod
    def start_match(
        tournament_id: str,
        match_id: str,
        room_id: Optional[str] = None,
        room_password: Optional[str] = None,
        db: Client | None = None,
    ) -> dict[str, Any]:
        """Start a match, optionally publishing the room credentials."""
        match, _ = TournamentService._apply(
            tournament_id,
            lambda t: lifecycle.start_match(t, match_id, room_id, room_password),
            db,
        )
        return dict(match)

    @staticmethod
    def cancel_match(
        tournament_id: str, match_id: str, db: Client | None = None
    ) -> dict[str, Any]:
        """Cancel an open match."""
        outcome, _ = TournamentService._apply(
            tournament_id, lambda t: lifecycle.cancel_match(t, match_id), db
        )
        logging.info(f"Match {match_id} in tournament {tournament_id} cancelled")
        return outcome

    @staticmethod
    def resolve_bye(
        tournament_id: str, match_id: str, db: Client | None = None
    ) -> dict[str, Any]:
        """Advance the lone participant of a bye match."""
        outcome, _ = TournamentService._apply(
            tournament_id, lambda t: lifecycle.resolve_bye(t, match_id), db
        )
        return outcome
