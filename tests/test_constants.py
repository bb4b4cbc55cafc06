"""Tests for macroengine.core.constants — verify documented values and types."""
from macroengine.core import constants


class TestExecutorConstants:
    def test_sleep_chunk(self):
        assert isinstance(constants.SLEEP_CHUNK_S, float)
        assert 0 < constants.SLEEP_CHUNK_S <= 0.1

    def test_wait_budgets(self):
        assert constants.DEFAULT_WAIT_BUDGET_S > 0
        assert constants.DEFAULT_MAXWAIT_S > 0

    def test_retry_clamp(self):
        assert constants.MAX_TIMEOUT_RETRIES == 10


class TestSchedulerConstants:
    def test_depth_limit(self):
        assert isinstance(constants.MAX_FRAME_DEPTH, int)
        assert constants.MAX_FRAME_DEPTH >= 2

    def test_embedded_step_is_not_an_index(self):
        assert constants.STEP_EMBEDDED < 0


class TestPlayerConstants:
    def test_tick_interval(self):
        assert isinstance(constants.TICK_INTERVAL_MS, int)
        assert constants.TICK_INTERVAL_MS > 0
