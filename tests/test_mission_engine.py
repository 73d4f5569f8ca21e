"""Tests for the mission execution engine."""

import pytest
import random
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from app.services.game.engine import (
    MissionEngine, MissionError, UnknownMissionError, MissionOnCooldownError,
    MissionAlreadyCompletedError, PlayerImprisonedError, PRISON_TIME_MS,
)
from app.services.game.cooldowns import CooldownTracker
from app.services.game.game_logger import GameLogger
from app.services.game.missions import MISSIONS_BY_ID
from app.services.game.prison import PrisonStateMachine
from app.services.game.state import PlayerState
from fakes import FixedRoll

NOW = 1_760_000_000_000


def make_engine(player=None, probability=None, roll=0.5, **kwargs):
    options = dict(
        player=player,
        rng=FixedRoll(roll),
        clock=lambda: NOW,
        logger=GameLogger(name="tests.game"),
    )
    if probability is not None:
        options["probability_fn"] = lambda mission, level: probability
    options.update(kwargs)
    return MissionEngine(**options)


class TestForcedOutcomes:
    """Scenarios with the probability pinned to 1.0 or 0.0."""

    def test_forced_success(self):
        """Test a certain success pays out, completes and cools down the mission."""
        engine = make_engine(probability=1.0)
        heist = MISSIONS_BY_ID["heist"]

        result = engine.execute("heist")

        assert result.success is True
        assert result.reward == heist.reward
        assert result.imprisoned is False
        assert engine.player.balance == heist.reward
        assert "heist" in engine.player.completed_missions
        assert engine.cooldowns.is_active("heist")
        assert engine.cooldowns.remaining_ms("heist", NOW) == heist.cooldown
        assert engine.player.cooldowns["heist"] == NOW + heist.cooldown
        assert engine.player.prison_time is None

    def test_success_message_formats_reward(self):
        """Test the success message names the mission and the reward."""
        engine = make_engine(probability=1.0)
        result = engine.execute("heist")
        assert result.message == "Successfully completed Bank Heist and earned $100,000!"

    def test_forced_failure_imprisons(self):
        """Test a certain failure sends the player to prison for five minutes."""
        player = PlayerState(balance=1_200, completed_missions=("pickpocket",))
        engine = make_engine(player=player, probability=0.0, roll=0.3)

        result = engine.execute("heist")

        assert result.success is False
        assert result.reward == 0
        assert result.imprisoned is True
        assert engine.player.balance == 1_200
        assert engine.player.completed_missions == ("pickpocket",)
        assert engine.player.prison_time == NOW + PRISON_TIME_MS == NOW + 300_000
        assert engine.prison.is_imprisoned
        assert not engine.cooldowns.is_active("heist")

    def test_roll_equal_to_probability_succeeds(self):
        """Test the success boundary is inclusive."""
        engine = make_engine(probability=0.4, roll=0.4)
        assert engine.execute("heist").success is True

    def test_zero_roll_at_zero_probability_succeeds(self):
        """Test a zero sample wins even at zero probability (roll <= p)."""
        engine = make_engine(probability=0.0, roll=0.0)
        assert engine.execute("pickpocket").success is True

    def test_roll_just_above_probability_fails(self):
        """Test any sample above the probability fails."""
        engine = make_engine(probability=0.4, roll=0.4000001)
        assert engine.execute("heist").success is False


class TestPreconditions:
    """Tests for rejected attempts."""

    def test_unknown_mission(self):
        """Test an id outside the catalog is rejected."""
        engine = make_engine(probability=1.0)
        with pytest.raises(UnknownMissionError):
            engine.execute("moon-landing")
        assert engine.player == PlayerState()

    def test_completed_mission_rejected_without_changes(self):
        """Test every completed mission is rejected and state is untouched."""
        player = PlayerState(balance=500, completed_missions=tuple(MISSIONS_BY_ID))
        engine = make_engine(player=player, probability=1.0)
        for mission_id in MISSIONS_BY_ID:
            with pytest.raises(MissionAlreadyCompletedError):
                engine.execute(mission_id)
        assert engine.player == player

    def test_cooldown_rejected_without_changes(self):
        """Test a mission with a cooldown entry is rejected."""
        tracker = CooldownTracker()
        tracker.start("car-theft", NOW + 10_000)
        player = PlayerState(balance=2_000, cooldowns={"car-theft": NOW + 10_000})
        engine = make_engine(player=player, cooldowns=tracker, probability=1.0)

        with pytest.raises(MissionOnCooldownError):
            engine.execute("car-theft")
        assert engine.player == player

    def test_expired_but_unpruned_cooldown_still_blocks(self):
        """Test an entry past its end still blocks until the tracker ticks."""
        tracker = CooldownTracker()
        tracker.start("car-theft", NOW - 1)
        engine = make_engine(cooldowns=tracker, probability=1.0)

        with pytest.raises(MissionOnCooldownError):
            engine.execute("car-theft")
        tracker.tick(NOW)
        assert engine.execute("car-theft").success is True

    def test_imprisoned_rejects_everything(self):
        """Test imprisonment blocks every mission regardless of other state."""
        prison = PrisonStateMachine()
        prison.imprison(NOW + 60_000)
        player = PlayerState(balance=10, prison_time=NOW + 60_000)
        engine = make_engine(player=player, prison=prison, probability=1.0)

        for mission_id in MISSIONS_BY_ID:
            with pytest.raises(PlayerImprisonedError):
                engine.execute(mission_id)
        assert engine.player == player

    def test_precondition_order(self):
        """Test cooldown is reported before completion and prison."""
        tracker = CooldownTracker()
        tracker.start("shoplift", NOW + 1_000)
        prison = PrisonStateMachine()
        prison.imprison(NOW + 1_000)
        player = PlayerState(completed_missions=("shoplift",))
        engine = make_engine(player=player, cooldowns=tracker, prison=prison, probability=1.0)

        with pytest.raises(MissionOnCooldownError):
            engine.execute("shoplift")

        tracker.tick(NOW + 1_000)
        with pytest.raises(MissionAlreadyCompletedError):
            engine.execute("shoplift")

    def test_all_rejections_share_a_base_class(self):
        """Test callers can catch every rejection as MissionError."""
        engine = make_engine(probability=1.0)
        with pytest.raises(MissionError):
            engine.execute("nope")


class TestPlayerSnapshot:
    """Tests for engines built from a persisted PlayerState alone."""

    def test_persisted_sentence_blocks_missions(self):
        """Test a future prisonTime on the player locks out every mission."""
        player = PlayerState(balance=10, prison_time=NOW + 60_000)
        engine = make_engine(player=player, probability=1.0)

        assert engine.prison.is_imprisoned
        for mission_id in MISSIONS_BY_ID:
            with pytest.raises(PlayerImprisonedError):
                engine.execute(mission_id)
        assert engine.player == player

    def test_persisted_cooldown_blocks_mission(self):
        """Test an active cooldown on the player blocks that mission."""
        engine = make_engine(player=PlayerState(cooldowns={"shoplift": NOW + 60_000}), probability=1.0)

        with pytest.raises(MissionOnCooldownError):
            engine.execute("shoplift")

    def test_success_keeps_persisted_cooldowns(self):
        """Test a success publishes both the new and the persisted cooldowns."""
        published = []
        engine = make_engine(
            player=PlayerState(cooldowns={"shoplift": NOW + 60_000}),
            probability=1.0,
            on_change=published.append,
        )

        engine.execute("pickpocket")

        assert published[0].cooldowns == {
            "shoplift": NOW + 60_000,
            "pickpocket": NOW + MISSIONS_BY_ID["pickpocket"].cooldown,
        }

    def test_elapsed_state_is_dropped(self):
        """Test a past prisonTime and expired cooldowns do not lock anything."""
        engine = make_engine(
            player=PlayerState(prison_time=NOW - 1, cooldowns={"shoplift": NOW - 1}),
            probability=1.0,
        )

        assert not engine.prison.is_imprisoned
        assert engine.player.prison_time is None
        assert engine.player.cooldowns == {}
        assert engine.execute("shoplift").success is True

    def test_load_player_never_shortens_lockouts(self):
        """Test a stale snapshot cannot lift an active sentence or cooldown."""
        engine = make_engine(probability=0.0)
        engine.execute("heist")
        engine.cooldowns.start("pickpocket", NOW + 5_000)

        engine.load_player(PlayerState(balance=99))

        assert engine.prison.release_at == NOW + PRISON_TIME_MS
        assert engine.player.prison_time == NOW + PRISON_TIME_MS
        assert engine.player.cooldowns == {"pickpocket": NOW + 5_000}
        assert engine.player.balance == 99

    def test_load_player_extends_sentence(self):
        """Test a later persisted sentence replaces an earlier local one."""
        engine = make_engine(player=PlayerState(prison_time=NOW + 1_000))
        engine.load_player(PlayerState(prison_time=NOW + 9_000))
        assert engine.prison.release_at == NOW + 9_000


class TestStateChanges:
    """Tests for published snapshots and the audit log."""

    def test_on_change_called_once_per_attempt(self):
        """Test every executed attempt publishes exactly one snapshot."""
        published = []
        engine = make_engine(probability=1.0, on_change=published.append)

        engine.execute("pickpocket")
        engine.execute("shoplift")

        assert len(published) == 2
        assert published[-1] is engine.player
        assert published[-1].balance == 350
        assert published[-1].completed_missions == ("pickpocket", "shoplift")

    def test_rejected_attempt_publishes_nothing(self):
        """Test a rejection never reaches persistence."""
        published = []
        engine = make_engine(probability=1.0, on_change=published.append)
        with pytest.raises(UnknownMissionError):
            engine.execute("nope")
        assert published == []

    def test_audit_events_record_roll_and_probability(self):
        """Test attempts and results land in the game log."""
        game_log = GameLogger(name="tests.audit")
        engine = make_engine(probability=0.25, roll=0.75, logger=game_log)

        engine.execute("heist")

        attempts = game_log.events("mission_attempt")
        results = game_log.events("mission_result")
        assert attempts[0].data == {"missionId": "heist"}
        assert results[0].data == {"missionId": "heist", "roll": 0.75, "probability": 0.25}
        assert results[0].message == "Mission failed"

    def test_level_feeds_probability(self):
        """Test the probability model sees the level derived from balance."""
        seen = []

        def probability_fn(mission, level):
            seen.append(level)
            return 1.0

        engine = make_engine(player=PlayerState(balance=30_000), probability_fn=probability_fn)
        engine.execute("pickpocket")
        assert seen == [4]

    def test_seeded_rng_is_reproducible(self):
        """Test the same seed gives the same outcome sequence."""
        def run(seed):
            engine = MissionEngine(
                rng=random.Random(seed), clock=lambda: NOW, logger=GameLogger(name="tests.seed"),
            )
            outcomes = []
            for mission_id in ["pickpocket", "shoplift", "car-theft"]:
                if engine.prison.is_imprisoned:
                    break
                outcomes.append(engine.execute(mission_id).success)
            return outcomes, engine.player

        assert run(42) == run(42)
