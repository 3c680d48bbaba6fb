"""Routes for the tournament blueprint."""

from __future__ import annotations

from typing import Any

from flask import current_app, jsonify, request

from rpx.auth import current_user_id, current_user_is_admin, login_required
from rpx.core.types import APIResponse
from rpx.errors import ValidationError

from . import bp
from .forms import (
    MatchResultForm,
    ParticipantStatusForm,
    RegistrationForm,
    StartMatchForm,
    StatusForm,
    TournamentForm,
)
from .services import TournamentService
from .utils import (
    get_final_standings,
    group_matches_by_round,
    jsonable,
    serialize_match,
    serialize_tournament,
)


def _success(data: Any = None, message: str | None = None, status_code: int = 200) -> Any:
    body: APIResponse = {"status": "success"}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return jsonify(body), status_code


def _validate(form: Any) -> None:
    """Raise the first form error as a ValidationError."""
    if not form.validate_on_submit():
        field, errors = next(iter(form.errors.items()))
        raise ValidationError(f"{field}: {errors[0]}")


def _viewer() -> tuple[str | None, bool]:
    return current_user_id(), current_user_is_admin()


@bp.route("/", methods=["GET"], strict_slashes=False)
def list_tournaments() -> Any:
    """List tournaments, by default those that are published or running."""
    config = current_app.config
    limit = request.args.get("limit", default=config["RPX_DEFAULT_PAGE_SIZE"], type=int)
    limit = min(max(limit, 1), config["RPX_MAX_PAGE_SIZE"])
    page = request.args.get("page", default=1, type=int)
    viewer_id, is_admin = _viewer()

    tournaments, pagination = TournamentService.list_tournaments(
        status=request.args.get("status"),
        tournament_format=request.args.get("format"),
        featured=request.args.get("featured") == "true",
        page=page,
        limit=limit,
        include_private=is_admin,
    )
    return _success(
        {
            "tournaments": [
                serialize_tournament(t, viewer_id, is_admin) for t in tournaments
            ],
            "pagination": pagination,
        }
    )


@bp.route("/", methods=["POST"], strict_slashes=False)
@login_required(admin_required=True)
def create_tournament() -> Any:
    """Create a new tournament."""
    form = TournamentForm()
    _validate(form)
    raw = request.get_json(silent=True) or {}
    tournament_id = TournamentService.create_tournament(
        form.to_payload(raw), current_user_id()
    )
    tournament = TournamentService.get_tournament(tournament_id)
    return _success(
        {"tournament": serialize_tournament(tournament, *_viewer())},
        "Tournament created successfully.",
        201,
    )


@bp.route("/<string:tournament_id>", methods=["GET"])
def view_tournament(tournament_id: str) -> Any:
    """View a single tournament."""
    tournament = TournamentService.get_tournament(tournament_id)
    return _success({"tournament": serialize_tournament(tournament, *_viewer())})


@bp.route("/<string:tournament_id>", methods=["DELETE"])
@login_required(admin_required=True)
def delete_tournament(tournament_id: str) -> Any:
    """Delete a tournament."""
    TournamentService.delete_tournament(tournament_id)
    return _success(message="Tournament deleted successfully.")


@bp.route("/<string:tournament_id>/status", methods=["POST"])
@login_required(admin_required=True)
def change_status(tournament_id: str) -> Any:
    """Publish, open registration for, or cancel a tournament."""
    form = StatusForm()
    _validate(form)
    tournament = TournamentService.transition_status(tournament_id, form.status.data)
    return _success({"tournamentId": tournament_id, "status": tournament["status"]})


@bp.route("/<string:tournament_id>/register", methods=["POST"])
@login_required
def register(tournament_id: str) -> Any:
    """Register the current user in a tournament."""
    form = RegistrationForm()
    _validate(form)
    registration = TournamentService.enroll(
        tournament_id, current_user_id(), form.team_id.data or None
    )
    return _success(jsonable(registration), "Registration successful.")


@bp.route("/<string:tournament_id>/register", methods=["DELETE"])
@login_required
def withdraw(tournament_id: str) -> Any:
    """Cancel the current user's registration."""
    TournamentService.withdraw(tournament_id, current_user_id())
    return _success(message="Registration cancelled successfully.")


@bp.route("/<string:tournament_id>/participants/<string:user_id>", methods=["POST"])
@login_required(admin_required=True)
def update_participant(tournament_id: str, user_id: str) -> Any:
    """Confirm, decline or seed a participant."""
    form = ParticipantStatusForm()
    _validate(form)
    participant = TournamentService.set_participant_status(
        tournament_id, user_id, form.status.data, form.seed.data
    )
    return _success({"participant": jsonable(participant)})


@bp.route("/<string:tournament_id>/matches", methods=["GET"])
def list_matches(tournament_id: str) -> Any:
    """Return the bracket grouped by round."""
    tournament = TournamentService.get_tournament(tournament_id)
    viewer_id, is_admin = _viewer()
    return _success(
        {
            "tournamentName": tournament.get("name"),
            "bracketType": tournament.get("bracketType"),
            "status": tournament.get("status"),
            "matches": group_matches_by_round(
                tournament.get("matches", []), viewer_id, is_admin
            ),
        }
    )


@bp.route("/<string:tournament_id>/matches", methods=["POST"])
@login_required(admin_required=True)
def generate_bracket(tournament_id: str) -> Any:
    """Generate the bracket and start the tournament."""
    tournament = TournamentService.generate_bracket(tournament_id)
    return _success(
        {
            "tournamentId": tournament_id,
            "status": tournament["status"],
            "matchCount": len(tournament.get("matches", [])),
        },
        "Bracket generated successfully.",
    )


@bp.route("/<string:tournament_id>/matches/<string:match_id>/result", methods=["POST"])
@login_required
def report_result(tournament_id: str, match_id: str) -> Any:
    """Report the result of a match."""
    form = MatchResultForm()
    _validate(form)
    viewer_id, is_admin = _viewer()
    outcome = TournamentService.report_result(
        tournament_id,
        match_id,
        viewer_id,
        form.score1.data,
        form.score2.data,
        form.winner_id.data,
        is_admin=is_admin,
    )
    return _success(
        {
            "status": outcome["matchStatus"],
            "tournamentStatus": outcome["tournamentStatus"],
            "match": serialize_match(outcome["match"], viewer_id, is_admin),
        },
        "Result reported successfully.",
    )


@bp.route("/<string:tournament_id>/matches/<string:match_id>/start", methods=["POST"])
@login_required(admin_required=True)
def start_match(tournament_id: str, match_id: str) -> Any:
    """Start a match and share its room credentials."""
    form = StartMatchForm()
    _validate(form)
    match = TournamentService.start_match(
        tournament_id,
        match_id,
        form.room_id.data or None,
        form.room_password.data or None,
    )
    return _success({"match": serialize_match(match, *_viewer())})


@bp.route("/<string:tournament_id>/matches/<string:match_id>/cancel", methods=["POST"])
@login_required(admin_required=True)
def cancel_match(tournament_id: str, match_id: str) -> Any:
    """Cancel an open match."""
    outcome = TournamentService.cancel_match(tournament_id, match_id)
    return _success(
        {
            "status": outcome["matchStatus"],
            "tournamentStatus": outcome["tournamentStatus"],
        }
    )


@bp.route("/<string:tournament_id>/matches/<string:match_id>/bye", methods=["POST"])
@login_required(admin_required=True)
def resolve_bye(tournament_id: str, match_id: str) -> Any:
    """Advance the only participant of a match."""
    outcome = TournamentService.resolve_bye(tournament_id, match_id)
    return _success(
        {
            "status": outcome["matchStatus"],
            "tournamentStatus": outcome["tournamentStatus"],
        }
    )


@bp.route("/<string:tournament_id>/standings", methods=["GET"])
def standings(tournament_id: str) -> Any:
    """Final placings and the prizes they earn."""
    tournament = TournamentService.get_tournament(tournament_id)
    return _success(
        {
            "status": tournament.get("status"),
            "standings": jsonable(get_final_standings(tournament)),
            "prizes": jsonable(tournament.get("prizes", [])),
        }
    )
