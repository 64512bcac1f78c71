"""Unit tests for the FPL scoring rule table."""

import pytest

from fpllive.constants import DEFENDER, FORWARD, KEEPER, MIDFIELDER
from fpllive.scoring import pick_points, score_player_events


class TestMinutesPlayed:
    """Tests for appearance points."""

    def test_sixty_minutes_scores_two(self):
        """Test 60+ minutes: 2 pts."""
        assert score_player_events({'minutes': 60}, MIDFIELDER) == [('minutesPlayed', 2)]

    def test_fifty_nine_minutes_scores_one(self):
        """Test 59 minutes is still a short appearance (1 pt)."""
        assert score_player_events({'minutes': 59}, MIDFIELDER) == [('minutesPlayed', 1)]

    def test_one_minute_scores_one(self):
        """Test any appearance scores 1 pt."""
        assert score_player_events({'minutes': 1}, FORWARD) == [('minutesPlayed', 1)]

    def test_no_minutes_no_event(self):
        """Test unused player produces nothing."""
        assert score_player_events({'minutes': 0}, FORWARD) == []


class TestGoalsAndAssists:
    """Tests for attacking returns."""

    @pytest.mark.parametrize('position,expected', [
        (KEEPER, 10),
        (DEFENDER, 6),
        (MIDFIELDER, 5),
        (FORWARD, 4),
    ])
    def test_goal_points_by_position(self, position, expected):
        """Test goal value depends on position."""
        assert ('goal', expected) in score_player_events({'goals_scored': 1}, position)

    def test_unknown_position_scores_as_forward(self):
        """Test an unmapped position falls back to 4 pts per goal."""
        assert ('goal', 8) in score_player_events({'goals_scored': 2}, 9)

    def test_multiple_goals(self):
        """Test a hat-trick is one event worth three goals."""
        events = score_player_events({'goals_scored': 3}, FORWARD)
        assert events == [('goal', 12)]

    def test_assists(self):
        """Test assists: 3 pts each."""
        assert score_player_events({'assists': 2}, DEFENDER) == [('assist', 6)]

    def test_midfielder_example(self):
        """Test a full midfielder stat line, in rule order."""
        stats = {'goals_scored': 1, 'assists': 1, 'bonus': 2, 'minutes': 90}
        events = score_player_events(stats, MIDFIELDER)
        assert events == [
            ('minutesPlayed', 2),
            ('goal', 5),
            ('assist', 3),
            ('bonus', 2),
        ]
        assert sum(points for _, points in events) == 12


class TestDefensiveReturns:
    """Tests for clean sheets, goals conceded and saves."""

    def test_clean_sheet_keeper_and_defender(self):
        """Test clean sheet: 4 pts for GKP and DEF."""
        assert ('cleanSheet', 4) in score_player_events({'clean_sheets': 1}, KEEPER)
        assert ('cleanSheet', 4) in score_player_events({'clean_sheets': 1}, DEFENDER)

    def test_clean_sheet_midfielder(self):
        """Test clean sheet: 1 pt for MID."""
        assert score_player_events({'clean_sheets': 1}, MIDFIELDER) == [('cleanSheet', 1)]

    def test_clean_sheet_never_for_forward(self):
        """Test forwards get nothing for a clean sheet."""
        assert score_player_events({'clean_sheets': 1, 'minutes': 90}, FORWARD) == [('minutesPlayed', 2)]

    def test_goals_conceded_rounds_down(self):
        """Test -1 per 2 conceded (3 conceded = -1)."""
        assert score_player_events({'goals_conceded': 3}, DEFENDER) == [('goalsConceded', -1)]
        assert score_player_events({'goals_conceded': 4}, KEEPER) == [('goalsConceded', -2)]

    def test_one_goal_conceded_no_event(self):
        """Test a single goal conceded costs nothing."""
        assert score_player_events({'goals_conceded': 1}, DEFENDER) == []

    @pytest.mark.parametrize('position', [MIDFIELDER, FORWARD])
    def test_goals_conceded_only_for_keepers_and_defenders(self, position):
        """Test outfield attackers are never penalised for goals conceded."""
        assert score_player_events({'goals_conceded': 6}, position) == []

    def test_saves_per_three(self):
        """Test keeper saves: 1 pt per 3."""
        assert score_player_events({'saves': 3}, KEEPER) == [('save', 1)]
        assert score_player_events({'saves': 7}, KEEPER) == [('save', 2)]

    def test_two_saves_no_event(self):
        """Test fewer than 3 saves scores nothing."""
        assert score_player_events({'saves': 2}, KEEPER) == []

    def test_saves_only_for_keepers(self):
        """Test a defender's saves do not score."""
        assert score_player_events({'saves': 3}, DEFENDER) == []


class TestPenaltiesCardsAndBonus:
    """Tests for the remaining rules."""

    def test_penalty_save(self):
        assert score_player_events({'penalties_saved': 1}, KEEPER) == [('penaltySave', 5)]

    def test_penalty_miss(self):
        assert score_player_events({'penalties_missed': 2}, FORWARD) == [('penaltyMiss', -4)]

    def test_own_goal(self):
        assert score_player_events({'own_goals': 1}, DEFENDER) == [('ownGoal', -2)]

    def test_cards(self):
        """Test yellow (-1) and red (-3) cards both apply."""
        events = score_player_events({'yellow_cards': 1, 'red_cards': 1}, MIDFIELDER)
        assert events == [('yellowCard', -1), ('redCard', -3)]

    def test_bonus(self):
        assert score_player_events({'bonus': 3}, FORWARD) == [('bonus', 3)]

    def test_none_values_treated_as_zero(self):
        """Test missing or null stats are treated as zero."""
        assert score_player_events({'minutes': None, 'bonus': None}, FORWARD) == []

    def test_empty_stats(self):
        assert score_player_events({}, KEEPER) == []


class TestRuleTableProperties:
    """Properties that hold for every stat line."""

    def test_pure_function(self):
        """Test identical input yields identical output."""
        stats = {'minutes': 90, 'goals_scored': 1, 'saves': 6, 'goals_conceded': 2, 'bonus': 1}
        assert score_player_events(dict(stats), KEEPER) == score_player_events(dict(stats), KEEPER)

    def test_input_not_mutated(self):
        stats = {'minutes': 90, 'goals_scored': 1}
        score_player_events(stats, FORWARD)
        assert stats == {'minutes': 90, 'goals_scored': 1}

    @pytest.mark.parametrize('position', [KEEPER, DEFENDER, MIDFIELDER, FORWARD])
    def test_goals_conceded_never_positive(self, position):
        for conceded in range(0, 9):
            for kind, points in score_player_events({'goals_conceded': conceded}, position):
                if kind == 'goalsConceded':
                    assert position in (KEEPER, DEFENDER)
                    assert points <= 0


class TestPickPoints:
    """Tests for live score contribution."""

    def test_multiplier_applies(self):
        assert pick_points({'total_points': 12}, 2) == 24

    def test_benched_player(self):
        """Test a zero multiplier contributes nothing."""
        assert pick_points({'total_points': 12}, 0) == 0
