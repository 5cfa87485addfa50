"""
Tests for the score system.

Tests:
- Base points and the damage formula
- Multipliers (permanent and timed)
- Same-suit combo windows
- Breakdown, rating and persistence
"""

import pytest

from ..scoring import ScoreSystem


@pytest.fixture
def score(clock):
    return ScoreSystem(clock=clock)


class TestBasePoints:
    """Tests for plain scoring events."""

    def test_damage_scales_with_amount(self, score):
        events = score.score_eco_damage(5)
        assert events[0].points == 50
        assert score.total_score == 50

    def test_critical_hit_adds_bonus(self, score):
        events = score.score_eco_damage(2, critical=True)
        assert [e.type for e in events] == ["damage_dealt", "critical_hit"]
        assert score.total_score == 20 + 50

    def test_no_points_for_zero(self, score):
        assert score.score_eco_damage(0) == []
        assert score.score_heal(0) is None
        assert score.score_difficulty_bonus("normal") is None

    def test_difficulty_bonus(self, score):
        assert score.score_difficulty_bonus("hard").points == 100
        assert score.score_difficulty_bonus("nightmare").points == 200

    def test_time_bonus_only_under_par(self, score):
        assert score.score_time_bonus(elapsed=120, par=60) is None
        assert score.score_time_bonus(elapsed=30, par=60).points == 100

    def test_perfect_turn(self, score):
        events = score.score_turn_survival(damage_taken=0)
        assert [e.type for e in events] == ["turn_survived", "perfect_turn"]
        assert len(score.score_turn_survival(damage_taken=3)) == 1


class TestMultipliers:
    """Tests for multiplier stacking and expiry."""

    def test_permanent_multiplier(self, score):
        score.add_multiplier("chapter", 2.0)
        assert score.score_eco_damage(5)[0].points == 100

    def test_multipliers_stack(self, score):
        score.add_multiplier("chapter", 2.0)
        score.add_multiplier("rage", 1.5)
        assert score.add_score("eco_killed").points == 1500

    def test_same_id_replaces(self, score):
        score.add_multiplier("chapter", 2.0)
        score.add_multiplier("chapter", 3.0)
        assert len(score.active_multipliers()) == 1
        assert score.add_score("turn_survived").points == 60

    def test_timed_multiplier_expires(self, score, clock):
        score.add_multiplier("rush", 2.0, duration=5)
        clock.tick(6)
        assert score.add_score("turn_survived").points == 20
        assert score.active_multipliers() == []

    def test_remove(self, score):
        score.add_multiplier("chapter", 2.0)
        assert score.remove_multiplier("chapter")
        assert not score.remove_multiplier("chapter")


class TestCombos:
    """Tests for the same-suit combo window."""

    def test_same_suit_chain(self, score, clock):
        score.score_card_play("2S", "spades")
        clock.tick(2)
        second = score.score_card_play("3S", "spades")

        assert second.points == 18
        assert score.history()[-1].type == "combo_played"
        assert score.history()[-1].points == 30
        assert score.max_combos()["same_suit"] == 2

    def test_suit_change_breaks_chain(self, score, clock):
        score.score_card_play("2S", "spades")
        clock.tick(2)
        event = score.score_card_play("3H", "hearts")
        assert event.points == 15
        assert all(e.type != "combo_played" for e in score.history())

    def test_window_expiry_breaks_chain(self, score, clock):
        score.score_card_play("2S", "spades")
        clock.tick(11)
        assert score.score_card_play("3S", "spades").points == 15


class TestAnalytics:
    """Tests for breakdown, rating and persistence."""

    def test_breakdown_by_category(self, score):
        score.score_eco_damage(3)
        score.score_card_play("3S", "spades")
        score.score_node_action("repair", "pump")
        assert score.breakdown() == {"combat": 30, "strategy": 15, "defense": 100}

    def test_rating(self, score):
        score.score_turn_survival()
        metrics = score.performance_metrics()
        assert metrics.average_per_turn == 120
        assert metrics.rating == "Good"

    def test_empty_rating(self, score):
        assert score.performance_metrics().rating == "Poor"

    def test_export_and_import(self, score, clock):
        score.score_eco_damage(4)
        score.add_multiplier("chapter", 1.5)
        restored = ScoreSystem(clock=clock)
        assert restored.import_data(score.export())
        assert restored.total_score == 40
        assert len(restored.history()) == 1
        assert len(restored.active_multipliers()) == 1

    def test_import_rejects_bad_data(self, score):
        score.score_eco_damage(1)
        assert not score.import_data({"events": [{"bogus": True}]})
        assert score.total_score == 10

    def test_subscribers_see_running_total(self, score):
        seen = []
        unsubscribe = score.subscribe(lambda event, total: seen.append((event.type, total)))
        score.score_eco_damage(1)
        unsubscribe()
        score.score_eco_damage(1)
        assert seen == [("damage_dealt", 10)]

    def test_subscriber_can_unsubscribe_itself(self, score):
        first, second = [], []
        handles = {}

        def once(event, total):
            first.append(total)
            handles["once"]()

        handles["once"] = score.subscribe(once)
        score.subscribe(lambda event, total: second.append(total))
        score.score_eco_damage(1)
        score.score_eco_damage(1)
        assert first == [10]
        assert len(second) == 2

    def test_reset(self, score):
        score.score_eco_damage(1)
        score.reset()
        assert score.total_score == 0
        assert score.history() == []
