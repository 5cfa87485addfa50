"""
Tests for the player-facing game feed.
"""

from ..engine_core.game_log import GameLog, LogSource, LogType


class TestGameLog:
    """Tests for GameLog."""

    def test_keeps_newest_messages(self):
        log = GameLog(max_messages=3)
        for i in range(5):
            log.add(f"message {i}")
        assert [m.message for m in log.messages] == ["message 2", "message 3", "message 4"]
        assert log.messages[-1].id == 5

    def test_subscribe_replays_current_feed(self, log):
        log.add("The Eco reveals 9S", source=LogSource.ECO, type=LogType.ATTACK)
        seen = []
        log.subscribe(seen.append)
        assert len(seen) == 1
        assert seen[0][0].source == LogSource.ECO

    def test_unsubscribe(self, log):
        seen = []
        unsubscribe = log.subscribe(seen.append)
        unsubscribe()
        log.add("quiet")
        assert len(seen) == 1

    def test_failing_listener_is_isolated(self, log):
        def broken(messages):
            if messages:
                raise RuntimeError("boom")

        seen = []
        log.subscribe(broken)
        log.subscribe(seen.append)
        log.add("still delivered")
        assert seen[-1][-1].message == "still delivered"

    def test_to_dict(self, log):
        entry = log.add("You play 5S", source=LogSource.PLAYER, type=LogType.ATTACK)
        assert entry.to_dict() == {"id": 1, "message": "You play 5S", "source": "player", "type": "attack"}

    def test_listener_can_unsubscribe_itself(self, log):
        first, second = [], []
        handles = {}

        def once(messages):
            first.append(len(messages))
            if "once" in handles:
                handles["once"]()

        handles["once"] = log.subscribe(once)
        log.subscribe(lambda messages: second.append(len(messages)))
        log.add("first")
        log.add("second")
        assert first == [0, 1]
        assert second == [0, 1, 2]
