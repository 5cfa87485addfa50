"""
Tests for the turn phase machine.

Tests:
- Phase order and scheduled continuations
- Command gating (phase, AP, hand, status)
- Game over handling
- Restarting a run drops stale continuations
"""

from ..engine_core.action import Command, CommandType, RejectionCode
from ..engine_core.state import CANNOT_PLAY_SPADES, EndCause, GamePhase
from ..rules import Ruleset


class TestPhaseFlow:
    """Tests for the scheduled phase sequence."""

    def test_full_turn_with_delays(self, timed_loop, set_hand):
        """Play a spade, end the turn and let each phase fire on time."""
        loop = timed_loop
        loop.start()
        assert loop.store.phase == GamePhase.EVENT

        loop.advance(0.5)
        assert loop.store.phase == GamePhase.PLAYER_ACTION
        set_hand(loop.store, "5S")

        result = loop.execute(Command.play("5S"))
        assert result.success
        assert loop.store.eco_hp == 45
        assert any(e.type == "damage_dealt" and e.points == 50 for e in loop.score.history())

        assert loop.execute(Command.end_turn()).success
        assert loop.store.phase == GamePhase.ECO_ATTACK
        assert loop.store.state.eco_revealed_card is not None

        loop.advance(1.0)
        assert loop.store.phase == GamePhase.MAINTENANCE
        assert loop.store.state.corruption_level == 1
        assert loop.store.turn == 2

        loop.advance(0.5)
        assert loop.store.phase == GamePhase.EVENT

    def test_zero_delays_return_to_player(self, loop):
        loop.start()
        assert loop.store.phase == GamePhase.PLAYER_ACTION
        loop.execute(Command.end_turn())
        assert loop.store.phase == GamePhase.PLAYER_ACTION
        assert loop.store.turn == 2

    def test_action_points_restored_each_turn(self, loop, set_hand):
        loop.start()
        set_hand(loop.store, "2S", "3S")
        loop.execute(Command.play("2S"))
        assert loop.store.action_points == 1
        loop.execute(Command.end_turn())
        assert loop.store.action_points == 2

    def test_turn_statuses_cleared_on_end_turn(self, loop):
        loop.start()
        loop.store.add_player_status(CANNOT_PLAY_SPADES)
        result = loop.execute(Command.end_turn())
        assert f"Cleared {CANNOT_PLAY_SPADES}" in result.state_changes
        assert not loop.store.state.has_status(CANNOT_PLAY_SPADES)

    def test_restart_drops_stale_continuations(self, timed_loop):
        timed_loop.start()
        generation = timed_loop.scheduler.generation
        timed_loop.start()
        assert timed_loop.scheduler.generation > generation
        assert timed_loop.scheduler.pending == 1
        assert timed_loop.store.turn == 1


class TestRejections:
    """Tests for commands the phase or resources do not allow."""

    def test_not_started(self, loop):
        result = loop.execute(Command.draw())
        assert result.error_code == RejectionCode.NOT_STARTED

    def test_wrong_phase(self, timed_loop):
        timed_loop.start()
        result = timed_loop.execute(Command.draw())
        assert not result.success
        assert result.error_code == RejectionCode.WRONG_PHASE
        assert timed_loop.turns.available_commands() == []

    def test_card_not_in_hand(self, loop, set_hand):
        loop.start()
        set_hand(loop.store, "5S")
        result = loop.execute(Command.play("AS"))
        assert result.error_code == RejectionCode.CARD_NOT_IN_HAND
        assert loop.store.action_points == 2

    def test_insufficient_action_points(self, loop, set_hand):
        loop.start()
        set_hand(loop.store, "KS")
        loop.store.spend_action_points(1)
        result = loop.execute(Command.play("KS"))
        assert result.error_code == RejectionCode.INSUFFICIENT_AP
        assert loop.store.hand[0].id == "KS"

    def test_spades_blocked(self, loop, set_hand):
        loop.start()
        set_hand(loop.store, "5S", "4H")
        loop.store.add_player_status(CANNOT_PLAY_SPADES)
        result = loop.execute(Command.play("5S"))
        assert result.error_code == RejectionCode.SPADES_BLOCKED
        assert CommandType.PLAY_CARD in loop.turns.available_commands()

    def test_unknown_target_node(self, loop, set_hand):
        loop.start()
        set_hand(loop.store, "8C")
        result = loop.execute(Command.play("8C", node_id="reactor"))
        assert result.error_code == RejectionCode.INVALID_TARGET

    def test_draw_with_full_hand(self, loop, set_hand):
        loop.start()
        set_hand(loop.store, "2S", "3S", "4S", "5S", "6S")
        result = loop.execute(Command.draw())
        assert result.error_code == RejectionCode.HAND_FULL
        assert CommandType.DRAW_CARD not in loop.turns.available_commands()


class TestCommands:
    """Tests for accepted commands."""

    def test_draw(self, loop, set_hand):
        loop.start()
        set_hand(loop.store, "2S", "3S")
        assert loop.execute(Command.draw()).success
        assert len(loop.store.hand) == 3
        assert loop.store.action_points == 1

    def test_focus(self, loop, set_hand):
        loop.start()
        set_hand(loop.store, "2H", "3H")
        result = loop.execute(Command.focus("2H"))
        assert result.success
        assert result.state_changes[0] == "Discarded 2H"
        assert len(loop.store.hand) == 2
        assert loop.store.action_points == 1

    def test_repair(self, loop, set_hand):
        loop.start()
        loop.nodes.damage_node("generator", 5)
        set_hand(loop.store, "6C", "2H")
        result = loop.execute(Command.repair("generator", ["6C"]))
        assert result.success
        assert loop.nodes.get_node("generator").damage == 4
        assert loop.store.action_points == 1
        assert [c.id for c in loop.store.hand] == ["2H"]

    def test_repair_rejections(self, loop, set_hand):
        loop.start()
        set_hand(loop.store, "3C", "6H", "6C")
        assert loop.execute(Command.repair("radio", ["6C"])).error_code == RejectionCode.INVALID_TARGET

        loop.nodes.damage_node("radio", 4)
        assert loop.execute(Command.repair("radio", ["6H"])).error_code == RejectionCode.INVALID_CARDS
        assert loop.execute(Command.repair("radio", ["3C"])).error_code == RejectionCode.INVALID_CARDS
        assert loop.execute(Command.repair("radio", [])).error_code == RejectionCode.INVALID_CARDS
        assert loop.store.action_points == 2
        assert len(loop.store.hand) == 3

    def test_clubs_expose_for_a_critical_hit(self, loop, set_hand):
        loop.start()
        set_hand(loop.store, "4C", "5S")
        loop.execute(Command.play("4C"))
        loop.execute(Command.play("5S"))
        assert loop.store.eco_hp == 40
        assert any(e.type == "critical_hit" for e in loop.score.history())

    def test_card_with_failing_formula_still_resolves(self, loop, set_hand):
        """The card is spent and discarded even when its formula cannot be evaluated."""
        loop.start()
        loop.engine.ruleset = Ruleset.from_dict({
            "player_actions": [
                {
                    "condition": {"suit": "spades"},
                    "effects": [{"type": "DEAL_DAMAGE", "target": "ECO", "target_stat": "HP", "value": "CARD_VALUE / CORRUPTION"}],
                }
            ]
        })
        set_hand(loop.store, "5S")
        discarded = loop.deck.discard_count()

        result = loop.execute(Command.play("5S"))

        assert result.success
        assert len(loop.store.hand) == 0
        assert loop.store.action_points == 1
        assert loop.deck.discard_count() == discarded + 1
        assert loop.store.eco_hp == 50


class TestGameOver:
    """Tests for the end of a run."""

    def test_victory(self, loop, set_hand):
        loop.start()
        loop.store.damage_eco(45)
        set_hand(loop.store, "5S")
        loop.execute(Command.play("5S"))

        state = loop.store.state
        assert state.game_over and state.victory
        assert state.phase == GamePhase.GAME_OVER
        assert state.end_cause == EndCause.ECO_DEFEATED
        assert loop.scheduler.pending == 0
        assert loop.summary.victory
        assert any(e.type == "eco_killed" for e in loop.score.history())

    def test_commands_rejected_after_game_over(self, loop):
        loop.start()
        loop.abandon()
        result = loop.execute(Command.end_turn())
        assert result.error_code == RejectionCode.GAME_OVER
        assert loop.turns.available_commands() == []

    def test_abandon_is_a_loss(self, loop):
        loop.start()
        loop.abandon()
        assert loop.summary is not None
        assert not loop.summary.victory
        assert loop.summary.end_cause == "abandoned"

    def test_game_over_listener_fires_once(self, loop):
        seen = []
        loop.turns.on_game_over(lambda snapshot: seen.append(snapshot.end_cause))
        loop.start()
        loop.abandon()
        loop.advance(5.0)
        assert seen == [EndCause.ABANDONED]
