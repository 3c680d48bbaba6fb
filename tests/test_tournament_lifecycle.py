"""Tests for the tournament state transitions."""

from __future__ import annotations

import copy
import datetime
import unittest

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
    UnsupportedBracketType,
    ValidationError,
)
from rpx.tournament import lifecycle
from rpx.tournament.bracket import index_matches
from rpx.tournament.models import (
    MatchStatus,
    ParticipantStatus,
    PaymentStatus,
    TournamentStatus,
)
from tests.helpers import make_participant, make_tournament

NOW = datetime.datetime(2026, 11, 1, 19, 0, tzinfo=datetime.timezone.utc)


def started(participants: list[str]) -> dict:
    """Return an in-progress tournament with a generated bracket."""
    tournament = make_tournament(participants=participants)
    lifecycle.generate_bracket(tournament)
    return tournament


class EnrollmentTestCase(unittest.TestCase):
    def test_enroll_adds_pending_participant(self) -> None:
        tournament = make_tournament()

        participant = lifecycle.enroll(tournament, "user1", "team9", now=NOW)

        self.assertEqual(participant["status"], ParticipantStatus.PENDING)
        self.assertEqual(participant["registeredAt"], NOW)
        self.assertEqual(participant["teamId"], "team9")
        self.assertEqual(participant["paymentStatus"], PaymentStatus.COMPLETED)
        self.assertEqual(tournament["currentParticipants"], 1)
        self.assertEqual(tournament["participant_ids"], ["user1"])

    def test_paid_tournament_leaves_payment_pending(self) -> None:
        tournament = make_tournament(entryFee=5.0)
        participant = lifecycle.enroll(tournament, "user1")
        self.assertEqual(participant["paymentStatus"], PaymentStatus.PENDING)

    def test_count_tracks_participants(self) -> None:
        tournament = make_tournament()
        for uid in ("a", "b", "c"):
            lifecycle.enroll(tournament, uid)
        lifecycle.withdraw(tournament, "b")

        self.assertEqual(tournament["currentParticipants"], 2)
        self.assertEqual(
            tournament["currentParticipants"], len(tournament["participants"])
        )
        self.assertEqual(tournament["participant_ids"], ["a", "c"])

    def test_duplicate_registration(self) -> None:
        tournament = make_tournament(participants=["user1"])
        with self.assertRaises(DuplicateParticipant):
            lifecycle.enroll(tournament, "user1")
        self.assertEqual(tournament["currentParticipants"], 1)

    def test_full_tournament(self) -> None:
        tournament = make_tournament(participants=["a", "b"], maxParticipants=2)
        with self.assertRaises(NotOpenForRegistration):
            lifecycle.enroll(tournament, "c")
        self.assertEqual(len(tournament["participants"]), 2)

    def test_registration_not_open(self) -> None:
        for status in (
            TournamentStatus.DRAFT,
            TournamentStatus.PUBLISHED,
            TournamentStatus.IN_PROGRESS,
            TournamentStatus.COMPLETED,
            TournamentStatus.CANCELLED,
        ):
            with self.subTest(status=status):
                with self.assertRaises(NotOpenForRegistration):
                    lifecycle.enroll(make_tournament(status=status), "user1")

    def test_withdraw_unknown_user(self) -> None:
        with self.assertRaises(ParticipantNotFound):
            lifecycle.withdraw(make_tournament(participants=["a"]), "b")

    def test_withdraw_after_start(self) -> None:
        tournament = started(["a", "b"])
        with self.assertRaises(RegistrationLocked):
            lifecycle.withdraw(tournament, "a")
        self.assertEqual(tournament["currentParticipants"], 2)

    def test_set_participant_status(self) -> None:
        tournament = make_tournament()
        lifecycle.enroll(tournament, "a")

        participant = lifecycle.set_participant_status(
            tournament, "a", ParticipantStatus.CONFIRMED, seed=1
        )

        self.assertEqual(participant["status"], ParticipantStatus.CONFIRMED)
        self.assertEqual(participant["seed"], 1)

    def test_set_participant_status_rejects_elimination(self) -> None:
        tournament = make_tournament(participants=["a"])
        with self.assertRaises(ValidationError):
            lifecycle.set_participant_status(
                tournament, "a", ParticipantStatus.ELIMINATED
            )

    def test_set_participant_status_unknown_user(self) -> None:
        with self.assertRaises(ParticipantNotFound):
            lifecycle.set_participant_status(
                make_tournament(), "ghost", ParticipantStatus.CONFIRMED
            )


class GenerateBracketTestCase(unittest.TestCase):
    def test_generates_and_starts(self) -> None:
        tournament = make_tournament(participants=["a", "b", "c", "d"])

        matches = lifecycle.generate_bracket(tournament)

        self.assertEqual(len(matches), 3)
        self.assertEqual(tournament["status"], TournamentStatus.IN_PROGRESS)
        self.assertIs(tournament["matches"], matches)

    def test_only_confirmed_are_placed(self) -> None:
        tournament = make_tournament(participants=["a", "b"])
        tournament["participants"].append(
            make_participant("pending1", status=ParticipantStatus.PENDING)
        )
        tournament["participants"].append(
            make_participant("declined1", status=ParticipantStatus.DECLINED)
        )

        matches = lifecycle.generate_bracket(tournament)

        self.assertEqual(len(matches), 1)
        self.assertEqual(
            {matches[0]["participant1Id"], matches[0]["participant2Id"]}, {"a", "b"}
        )

    def test_seeded_players_come_first(self) -> None:
        tournament = make_tournament(participants=["a", "b", "c"])
        tournament["participants"].append(make_participant("d", seed=2))
        tournament["participants"].append(make_participant("e", seed=1))

        lifecycle.generate_bracket(tournament)
        by_position = index_matches(tournament["matches"])

        self.assertEqual(by_position["WR1M1"]["participant1Id"], "e")
        self.assertEqual(by_position["WR1M1"]["participant2Id"], "d")
        self.assertEqual(by_position["WR1M2"]["participant1Id"], "a")

    def test_not_enough_confirmed(self) -> None:
        tournament = make_tournament(participants=["a"])
        tournament["participants"].append(
            make_participant("b", status=ParticipantStatus.PENDING)
        )
        with self.assertRaises(InsufficientParticipants):
            lifecycle.generate_bracket(tournament)
        self.assertEqual(tournament["status"], TournamentStatus.REGISTRATION)
        self.assertEqual(tournament["matches"], [])

    def test_minimum_participants_setting(self) -> None:
        tournament = make_tournament(participants=["a", "b", "c"], minParticipants=4)
        with self.assertRaises(InsufficientParticipants) as ctx:
            lifecycle.generate_bracket(tournament)
        self.assertIn("4", ctx.exception.message)

    def test_wrong_status(self) -> None:
        tournament = make_tournament(
            status=TournamentStatus.PUBLISHED, participants=["a", "b"]
        )
        with self.assertRaises(InsufficientParticipants) as ctx:
            lifecycle.generate_bracket(tournament)
        self.assertIn("registration", ctx.exception.message)

    def test_unsupported_bracket_type(self) -> None:
        tournament = make_tournament(
            participants=["a", "b"], bracketType="round_robin"
        )
        with self.assertRaises(UnsupportedBracketType):
            lifecycle.generate_bracket(tournament)
        self.assertEqual(tournament["status"], TournamentStatus.REGISTRATION)


class ReportResultTestCase(unittest.TestCase):
    def test_four_player_bracket_runs_to_completion(self) -> None:
        tournament = started(["A", "B", "C", "D"])
        by_position = index_matches(tournament["matches"])

        outcome = lifecycle.report_result(tournament, "WR1M1", "A", 3, 1, "A", now=NOW)
        self.assertEqual(outcome["matchStatus"], MatchStatus.COMPLETED)
        self.assertEqual(outcome["tournamentStatus"], TournamentStatus.IN_PROGRESS)
        self.assertEqual(by_position["WR1M1"]["loserId"], "B")
        self.assertEqual(by_position["WR1M1"]["endTime"], NOW)
        self.assertEqual(by_position["WR2M1"]["participant1Id"], "A")
        self.assertIsNone(by_position["WR2M1"]["participant2Id"])

        lifecycle.report_result(tournament, "WR1M2", "C", 0, 2, "D")
        self.assertEqual(by_position["WR2M1"]["participant2Id"], "D")
        self.assertEqual(by_position["WR2M1"]["status"], MatchStatus.SCHEDULED)

        outcome = lifecycle.report_result(tournament, "WR2M1", "D", 2, 1, "A")
        self.assertEqual(outcome["tournamentStatus"], TournamentStatus.COMPLETED)
        self.assertEqual(tournament["status"], TournamentStatus.COMPLETED)
        self.assertEqual(by_position["WR2M1"]["winnerId"], "A")

        eliminated = {
            p["userId"]
            for p in tournament["participants"]
            if p["status"] == ParticipantStatus.ELIMINATED
        }
        self.assertEqual(eliminated, {"B", "C", "D"})

    def test_two_player_final_completes_tournament(self) -> None:
        tournament = started(["X", "Y"])

        outcome = lifecycle.report_result(tournament, "WR1M1", "Y", 2, 0, "X")

        self.assertEqual(outcome["tournamentStatus"], TournamentStatus.COMPLETED)
        self.assertEqual(tournament["matches"][0]["winnerId"], "X")

    def test_score_zero_is_accepted(self) -> None:
        tournament = started(["X", "Y"])
        lifecycle.report_result(tournament, "WR1M1", "X", 0, 0, "Y")
        self.assertEqual(tournament["matches"][0]["score1"], 0)

    def test_second_report_is_rejected(self) -> None:
        tournament = started(["X", "Y", "Z", "W"])
        lifecycle.report_result(tournament, "WR1M1", "X", 1, 0, "X")
        with self.assertRaises(MatchAlreadyFinalized):
            lifecycle.report_result(tournament, "WR1M1", "Y", 0, 1, "Y")
        self.assertEqual(index_matches(tournament["matches"])["WR1M1"]["winnerId"], "X")

    def test_invalid_winner_leaves_tournament_untouched(self) -> None:
        tournament = started(["A", "B", "C", "D"])
        before = copy.deepcopy(tournament)

        with self.assertRaises(InvalidWinner):
            lifecycle.report_result(tournament, "WR1M1", "A", 3, 1, "C")

        self.assertEqual(tournament, before)

    def test_outsider_cannot_report(self) -> None:
        tournament = started(["A", "B", "C", "D"])
        with self.assertRaises(Unauthorized):
            lifecycle.report_result(tournament, "WR1M1", "C", 3, 1, "A")

    def test_admin_can_report_any_match(self) -> None:
        tournament = started(["A", "B", "C", "D"])
        outcome = lifecycle.report_result(
            tournament, "WR1M1", "admin1", 3, 1, "B", is_admin=True
        )
        self.assertEqual(outcome["match"]["winnerId"], "B")

    def test_unknown_match(self) -> None:
        tournament = started(["A", "B"])
        with self.assertRaises(Unauthorized):
            lifecycle.report_result(tournament, "WR9M9", "A", 1, 0, "A")
        with self.assertRaises(MatchNotFound):
            lifecycle.report_result(
                tournament, "WR9M9", "admin1", 1, 0, "A", is_admin=True
            )

    def test_tournament_not_active(self) -> None:
        tournament = make_tournament(participants=["A", "B"])
        with self.assertRaises(TournamentNotActive):
            lifecycle.report_result(tournament, "WR1M1", "A", 1, 0, "A")

    def test_incomplete_match(self) -> None:
        tournament = started(["A", "B", "C"])
        with self.assertRaises(MatchIncomplete):
            lifecycle.report_result(tournament, "WR1M2", "C", 1, 0, "C")

    def test_negative_score(self) -> None:
        tournament = started(["A", "B"])
        before = copy.deepcopy(tournament)
        with self.assertRaises(ValidationError):
            lifecycle.report_result(tournament, "WR1M1", "A", -1, 0, "A")
        self.assertEqual(tournament, before)


class MatchAdministrationTestCase(unittest.TestCase):
    def test_start_match_sets_room(self) -> None:
        tournament = started(["A", "B"])

        match = lifecycle.start_match(tournament, "WR1M1", "room-7", "hunter2", now=NOW)

        self.assertEqual(match["status"], MatchStatus.IN_PROGRESS)
        self.assertEqual(match["startTime"], NOW)
        self.assertEqual(match["roomId"], "room-7")
        self.assertEqual(match["roomPassword"], "hunter2")

    def test_started_match_can_be_reported(self) -> None:
        tournament = started(["A", "B"])
        lifecycle.start_match(tournament, "WR1M1")
        outcome = lifecycle.report_result(tournament, "WR1M1", "A", 1, 0, "A")
        self.assertEqual(outcome["tournamentStatus"], TournamentStatus.COMPLETED)

    def test_start_match_twice(self) -> None:
        tournament = started(["A", "B"])
        lifecycle.start_match(tournament, "WR1M1")
        with self.assertRaises(ValidationError):
            lifecycle.start_match(tournament, "WR1M1")

    def test_start_incomplete_match(self) -> None:
        tournament = started(["A", "B", "C", "D"])
        with self.assertRaises(MatchIncomplete):
            lifecycle.start_match(tournament, "WR2M1")

    def test_cancel_match(self) -> None:
        tournament = started(["A", "B", "C", "D"])

        outcome = lifecycle.cancel_match(tournament, "WR1M2", now=NOW)

        self.assertEqual(outcome["matchStatus"], MatchStatus.CANCELLED)
        self.assertEqual(outcome["tournamentStatus"], TournamentStatus.IN_PROGRESS)
        with self.assertRaises(MatchAlreadyFinalized):
            lifecycle.cancel_match(tournament, "WR1M2")

    def test_resolve_bye_advances_lone_player(self) -> None:
        tournament = started(["A", "B", "C"])
        by_position = index_matches(tournament["matches"])

        outcome = lifecycle.resolve_bye(tournament, "WR1M2")

        self.assertEqual(outcome["matchStatus"], MatchStatus.CANCELLED)
        self.assertEqual(by_position["WR2M1"]["participant2Id"], "C")

        lifecycle.report_result(tournament, "WR1M1", "A", 1, 0, "B")
        outcome = lifecycle.report_result(tournament, "WR2M1", "C", 1, 0, "C")
        self.assertEqual(outcome["tournamentStatus"], TournamentStatus.COMPLETED)

    def test_resolve_bye_needs_single_player(self) -> None:
        tournament = started(["A", "B", "C"])
        with self.assertRaises(ValidationError):
            lifecycle.resolve_bye(tournament, "WR1M1")
        with self.assertRaises(ValidationError):
            lifecycle.resolve_bye(tournament, "WR2M1")


class StatusTransitionTestCase(unittest.TestCase):
    def test_publish_then_open_registration(self) -> None:
        tournament = make_tournament(status=TournamentStatus.DRAFT)
        lifecycle.transition_status(tournament, TournamentStatus.PUBLISHED)
        lifecycle.transition_status(tournament, TournamentStatus.REGISTRATION)
        self.assertEqual(tournament["status"], TournamentStatus.REGISTRATION)

    def test_rejected_transitions(self) -> None:
        cases = [
            (TournamentStatus.DRAFT, TournamentStatus.REGISTRATION),
            (TournamentStatus.REGISTRATION, TournamentStatus.IN_PROGRESS),
            (TournamentStatus.REGISTRATION, TournamentStatus.PUBLISHED),
            (TournamentStatus.COMPLETED, TournamentStatus.CANCELLED),
            (TournamentStatus.CANCELLED, TournamentStatus.DRAFT),
        ]
        for current, requested in cases:
            with self.subTest(current=current, requested=requested):
                tournament = make_tournament(status=current)
                with self.assertRaises(InvalidStatusTransition):
                    lifecycle.transition_status(tournament, requested)
                self.assertEqual(tournament["status"], current)

    def test_cancelling_closes_open_matches(self) -> None:
        tournament = started(["A", "B", "C", "D"])
        lifecycle.report_result(tournament, "WR1M1", "A", 1, 0, "A")

        lifecycle.transition_status(tournament, TournamentStatus.CANCELLED)

        statuses = {m["bracketPosition"]: m["status"] for m in tournament["matches"]}
        self.assertEqual(statuses["WR1M1"], MatchStatus.COMPLETED)
        self.assertEqual(statuses["WR1M2"], MatchStatus.CANCELLED)
        self.assertEqual(statuses["WR2M1"], MatchStatus.CANCELLED)
        with self.assertRaises(TournamentNotActive):
            lifecycle.report_result(tournament, "WR1M2", "C", 1, 0, "C")


if __name__ == "__main__":
    unittest.main()
