"""Tests for match validation and match-level rating."""

from dataclasses import replace
from datetime import UTC, datetime

import pytest

from badminton_elo.core.config import RatingSystemConfig, builtin_rating_systems
from badminton_elo.core.errors import ValidationError
from badminton_elo.models import (
    MatchImportance,
    MatchOutcome,
    Participant,
    ParticipantKind,
)
from badminton_elo.ranking.engine import ParticipantRatingEngine
from badminton_elo.ranking.processor import MatchRatingProcessor, validate_match
from badminton_elo.ranking.tiers import SkillClassifier

SYSTEMS = {config.name: config for config in builtin_rating_systems()}


def player(pid, rating=1500, games=50, **kwargs):
    return Participant(id=pid, rating=rating, games_played=games, **kwargs)


def team(pid, rating=1500, games=20):
    return Participant(id=pid, rating=rating, games_played=games, kind=ParticipantKind.TEAM)


def singles(score_a, score_b, **kwargs):
    return MatchOutcome(
        side_a_score=score_a,
        side_b_score=score_b,
        side_a=(player("a"),),
        side_b=(player("b"),),
        **kwargs,
    )


@pytest.fixture
def standard():
    return MatchRatingProcessor(SYSTEMS["standard"])


@pytest.fixture
def fifa():
    return MatchRatingProcessor(SYSTEMS["fifa"])


class TestValidateMatch:
    """Tests for match validation."""

    @pytest.mark.parametrize(
        ("score_a", "score_b"),
        [(21, 19), (19, 21), (30, 28), (30, 29), (22, 20), (21, 0), (29, 27)],
    )
    def test_valid_scores(self, score_a, score_b):
        """Test legal badminton game scores are accepted."""
        validate_match(singles(score_a, score_b))

    @pytest.mark.parametrize(
        ("score_a", "score_b"),
        [(21, 21), (20, 15), (21, 20), (31, 29), (-1, 21), (0, 0)],
    )
    def test_invalid_scores(self, score_a, score_b):
        """Test impossible scores are rejected."""
        with pytest.raises(ValidationError):
            validate_match(singles(score_a, score_b))

    @pytest.mark.parametrize("bad", [21.0, "21", True, None])
    def test_non_integer_score(self, bad):
        """Test scores must be plain integers."""
        with pytest.raises(ValidationError, match="side_a_score"):
            validate_match(singles(bad, 10))

    def test_empty_side(self):
        """Test each side needs a participant."""
        match = MatchOutcome(21, 10, side_a=(), side_b=(player("b"),))
        with pytest.raises(ValidationError, match="side_a"):
            validate_match(match)

    def test_side_size(self):
        """Test an explicit side size is enforced."""
        match = MatchOutcome(21, 10, side_a=(player("a"),), side_b=(player("b"), player("c")))
        validate_match(match)
        with pytest.raises(ValidationError, match="expected 2"):
            validate_match(match, side_size=2)

    def test_duplicate_on_one_side(self):
        """Test the same participant cannot fill two slots on a side."""
        match = MatchOutcome(
            21, 10, side_a=(player("a"), player("a")), side_b=(player("b"), player("c"))
        )
        with pytest.raises(ValidationError, match="duplicate"):
            validate_match(match)

    def test_participant_on_both_sides(self):
        """Test a participant cannot play against itself."""
        match = MatchOutcome(21, 10, side_a=(player("a"),), side_b=(player("a"),))
        with pytest.raises(ValidationError, match="both sides"):
            validate_match(match)

    def test_single_team_rejected(self):
        """Test team snapshots come in pairs."""
        match = singles(21, 10, side_a_team=Participant(id="t1", kind=ParticipantKind.TEAM))
        with pytest.raises(ValidationError, match="team"):
            validate_match(match)

    def test_team_plays_itself(self):
        """Test a team cannot be on both sides."""
        same = team("t1")
        with pytest.raises(ValidationError, match="itself"):
            validate_match(singles(21, 10, side_a_team=same, side_b_team=same))


class TestProcess:
    """Tests for rating a full match."""

    def test_even_match_standard(self, standard):
        """Test an even 21-19 match moves both players by 16."""
        batch = standard.process(singles(21, 19))
        winner = batch.update_for("a", ParticipantKind.PLAYER)
        loser = batch.update_for("b", ParticipantKind.PLAYER)
        assert winner.expected_score == pytest.approx(0.5)
        assert winner.margin_multiplier == 1.0
        assert (winner.rating_change, loser.rating_change) == (16, -16)
        assert batch.system == "standard"
        assert batch.errors == ()

    def test_rout_fifa(self, standard, fifa):
        """Test a 21-5 rout scales only the winner's K."""
        batch = fifa.process(singles(21, 5))
        winner = batch.update_for("a", ParticipantKind.PLAYER)
        loser = batch.update_for("b", ParticipantKind.PLAYER)
        assert winner.margin_multiplier == pytest.approx(1.406, abs=0.001)
        assert winner.effective_k_factor == pytest.approx(32 * 1.40621, abs=0.01)
        assert winner.rating_change == 22
        assert loser.margin_multiplier == 1.0
        assert loser.rating_change == -16
        plain = standard.process(singles(21, 19)).update_for("a", ParticipantKind.PLAYER)
        assert winner.rating_change > plain.rating_change

    def test_side_b_wins(self, standard):
        """Test the winner is read from the scores, not the side."""
        batch = standard.process(singles(19, 21))
        assert batch.update_for("a", ParticipantKind.PLAYER).rating_change == -16
        assert batch.update_for("b", ParticipantKind.PLAYER).won is True

    def test_deuce_finish_accepted(self, standard):
        """Test a 30-28 game is rated."""
        batch = standard.process(singles(30, 28))
        assert len(batch.participant_updates) == 2

    @pytest.mark.parametrize(("score_a", "score_b"), [(21, 21), (20, 15)])
    def test_invalid_match_produces_nothing(self, standard, score_a, score_b):
        """Test invalid matches raise before any rating is computed."""
        with pytest.raises(ValidationError):
            standard.process(singles(score_a, score_b))

    def test_doubles_use_side_average(self, standard):
        """Test each player is rated against the opposing side's mean."""
        match = MatchOutcome(
            21,
            15,
            side_a=(player("a1", 1400), player("a2", 1600)),
            side_b=(player("b1", 1450), player("b2", 1551)),
        )
        batch = standard.process(match)
        assert len(batch.participant_updates) == 4
        for pid in ("a1", "a2"):
            assert batch.update_for(pid, ParticipantKind.PLAYER).opponent_average_rating == 1501
        for pid in ("b1", "b2"):
            assert batch.update_for(pid, ParticipantKind.PLAYER).opponent_average_rating == 1500

    def test_team_updates(self, standard):
        """Test team entities are rated on their own scale."""
        match = singles(21, 10, side_a_team=team("t1"), side_b_team=team("t2"))
        batch = standard.process(match)
        assert len(batch.team_updates) == 2
        update = batch.update_for("t1", ParticipantKind.TEAM)
        assert update.kind == ParticipantKind.TEAM
        assert update.rating_change == 12
        assert batch.update_for("t2", ParticipantKind.TEAM).rating_change == -12

    @pytest.mark.parametrize(
        ("importance", "change"),
        [
            (MatchImportance.PRACTICE, 13),
            (MatchImportance.LEAGUE, 16),
            (MatchImportance.TOURNAMENT, 19),
            (MatchImportance.CHAMPIONSHIP, 22),
        ],
    )
    def test_importance(self, standard, importance, change):
        """Test importance classes scale the effective K."""
        batch = standard.process(singles(21, 19, importance=importance))
        assert batch.update_for("a", ParticipantKind.PLAYER).rating_change == change

    def test_score_weighted(self):
        """Test the score-weighted model scales the result with the margin."""
        processor = MatchRatingProcessor(SYSTEMS["score_weighted"])
        batch = processor.process(singles(21, 19))
        winner = batch.update_for("a", ParticipantKind.PLAYER)
        loser = batch.update_for("b", ParticipantKind.PLAYER)
        assert winner.actual_score + loser.actual_score == pytest.approx(1.0)
        assert (winner.rating_change, loser.rating_change) == (3, -3)
        rout = processor.process(singles(21, 8))
        assert rout.update_for("a", ParticipantKind.PLAYER).rating_change == 20
        assert rout.update_for("b", ParticipantKind.PLAYER).rating_change == -20
        shutout = processor.process(singles(21, 0))
        assert shutout.update_for("a", ParticipantKind.PLAYER).rating_change == 32

    def test_updates_tagged_with_match(self, standard):
        """Test updates carry the match id and timestamp."""
        played_at = datetime(2024, 3, 1, 19, 30, tzinfo=UTC)
        batch = standard.process(singles(21, 19, match_id="m7", played_at=played_at))
        assert {u.match_id for u in batch.all_updates} == {"m7"}
        assert {u.played_at for u in batch.all_updates} == {played_at}

    def test_inputs_not_mutated(self, standard):
        """Test processing leaves the input snapshots untouched."""
        match = singles(21, 5)
        before = replace(match)
        standard.process(match)
        assert match == before
        assert match.side_a[0].rating == 1500

    def test_missing_rating_uses_default(self, standard):
        """Test a participant without a rating is treated as 1500."""
        match = MatchOutcome(21, 19, side_a=(Participant(id="new"),), side_b=(player("b"),))
        update = standard.process(match).update_for("new", ParticipantKind.PLAYER)
        assert update.old_rating == 1500
        assert update.effective_k_factor == 64


class TestAggregateRating:
    """Tests for side aggregation."""

    def test_rounded_mean(self, standard):
        """Test the mean rounds half away from zero."""
        assert standard.aggregate_rating([player("a", 1500), player("b", 1501)]) == 1501

    def test_missing_counts_as_default(self, standard):
        """Test missing ratings count as the default."""
        assert standard.aggregate_rating([Participant(id="a"), player("b", 1600)]) == 1550


class ExplodingClassifier(SkillClassifier):
    """Classifier that fails for ratings above 1510."""

    def classify(self, rating):
        if rating is not None and rating > 1510:
            raise ValueError("tier lookup failed")
        return super().classify(rating)


class TestPartialFailure:
    """Tests for per-participant error isolation."""

    @pytest.fixture
    def processor(self):
        config = RatingSystemConfig(name="standard")
        engine = ParticipantRatingEngine(config, classifier=ExplodingClassifier())
        return MatchRatingProcessor(config, player_engine=engine)

    def test_failed_participant_gets_zero_change(self, processor):
        """Test one failing participant does not abort the match."""
        match = MatchOutcome(
            21,
            19,
            side_a=(player("a", tier="Intermediate"),),
            side_b=(player("b", tier="Intermediate"),),
        )
        batch = processor.process(match)

        winner = batch.update_for("a", ParticipantKind.PLAYER)
        assert winner.rating_change == 0
        assert winner.new_rating == 1500
        assert winner.games_played == 50
        assert "tier lookup failed" in winner.error

        loser = batch.update_for("b", ParticipantKind.PLAYER)
        assert loser.rating_change == -16
        assert loser.error is None

        assert len(batch.errors) == 1
        assert batch.errors[0].subject == "a"
