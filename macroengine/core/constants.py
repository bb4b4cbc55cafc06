"""Centralised tunables and magic numbers.

All numeric constants that control runtime behaviour are collected here
so they are easy to find, document, and adjust.
"""

# ---------------------------------------------------------------------------
# Executor  (macroengine/core/executor.py)
# ---------------------------------------------------------------------------
SLEEP_CHUNK_S          = 0.05   # seconds between stop_event polls during waits
DEFAULT_WAIT_BUDGET_S  = 10.0   # confirmation budget per /action attempt
DEFAULT_MAXWAIT_S      = 5.0    # /waitaddon and /require polling budget
MAX_TIMEOUT_RETRIES    = 10     # upper clamp for the retry setting

# ---------------------------------------------------------------------------
# Scheduler  (macroengine/core/scheduler.py)
# ---------------------------------------------------------------------------
MAX_FRAME_DEPTH = 16        # maximum nested /runmacro depth
STEP_EMBEDDED   = -1        # cursor sentinel for frames driven by a script

# ---------------------------------------------------------------------------
# Player  (macroengine/core/player.py)
# ---------------------------------------------------------------------------
TICK_INTERVAL_MS = 16       # driver period, roughly one game frame
