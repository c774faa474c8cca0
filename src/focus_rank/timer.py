"""Pomodoro timer engine for focus-rank.

One TimerEngine owns the live TimerState. Time comes from an injected clock
and ticks from an injected scheduler, so tests can drive the machine one
second at a time without sleeping.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable
from datetime import datetime
from functools import partial
from typing import Any, Protocol

from focus_rank.models import (
    BreaksUsed,
    Phase,
    Session,
    StreakSegment,
    TimerState,
    utc_now,
)

logger = logging.getLogger(__name__)

FOCUS_DURATION = 25 * 60
SHORT_BREAK_DURATION = 5 * 60
LONG_BREAK_DURATION = 15 * 60
LONG_BREAK_EVERY = 4
# Break overrun that would end a streak segment. Not enforced yet.
BREAK_OVERRUN_SECONDS = 60
TICK_INTERVAL = 1.0

PHASE_DURATIONS: dict[Phase, int] = {
    Phase.FOCUS: FOCUS_DURATION,
    Phase.SHORT_BREAK: SHORT_BREAK_DURATION,
    Phase.LONG_BREAK: LONG_BREAK_DURATION,
}


class TickHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_every(self, interval: float, callback: Callable[[], None]) -> TickHandle: ...


class TimerStorage(Protocol):
    def save_timer_state(self, state: TimerState) -> Any: ...

    def load_timer_state(self) -> TimerState | None: ...


class RepeatingTimer(threading.Thread):
    """Daemon thread calling `callback` every `interval` seconds until cancelled."""

    def __init__(self, interval: float, callback: Callable[[], None]) -> None:
        super().__init__(daemon=True)
        self.interval = interval
        self.callback = callback
        self._cancelled = threading.Event()

    def run(self) -> None:
        while not self._cancelled.wait(self.interval):
            try:
                self.callback()
            except Exception:
                logger.exception("Timer tick failed")

    def cancel(self) -> None:
        self._cancelled.set()


class ThreadingScheduler:
    """Real wall-clock scheduler backed by one thread per run."""

    def call_every(self, interval: float, callback: Callable[[], None]) -> RepeatingTimer:
        timer = RepeatingTimer(interval, callback)
        timer.start()
        return timer


def format_time(seconds: int) -> str:
    """Format seconds for display as MM:SS."""
    seconds = max(0, int(seconds))
    minutes, secs = divmod(seconds, 60)
    return f"{minutes:02d}:{secs:02d}"


class TimerEngine:
    """Pomodoro state machine: focus -> short/long break -> focus.

    Public methods and ticks are serialized by one re-entrant lock. Every
    scheduled tick carries the generation it was started under; pause, stop
    and reset bump the generation so a tick that was already queued is
    dropped when it finally runs.
    """

    def __init__(
        self,
        storage: TimerStorage | None = None,
        scheduler: Scheduler | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._storage = storage
        self._scheduler = scheduler or ThreadingScheduler()
        self._clock = clock
        self._lock = threading.RLock()
        self._handle: TickHandle | None = None
        self._generation = 0
        self._state = TimerState(time_remaining=FOCUS_DURATION)

        self._on_tick: Callable[[TimerState], None] | None = None
        self._on_phase_change: Callable[[Phase], None] | None = None
        self._on_complete: Callable[[Session], None] | None = None

        self._restore_state()

    # ── Observers ────────────────────────────────────────────────────────────

    def set_callbacks(
        self,
        on_tick: Callable[[TimerState], None] | None = None,
        on_phase_change: Callable[[Phase], None] | None = None,
        on_complete: Callable[[Session], None] | None = None,
    ) -> None:
        """Register observers. Replaces any previously registered set."""
        with self._lock:
            self._on_tick = on_tick
            self._on_phase_change = on_phase_change
            self._on_complete = on_complete

    def get_state(self) -> TimerState:
        """Return a snapshot copy of the current state."""
        with self._lock:
            return self._state.copy()

    # ── Commands ─────────────────────────────────────────────────────────────

    def start(self) -> None:
        """Start or resume. Opens a session if none is open."""
        with self._lock:
            if self._state.is_running:
                return

            self._state.is_running = True
            self._state.is_paused = False
            if self._state.session_start_time is None:
                self._state.session_start_time = self._clock()
                logger.info("Session opened at %s", self._state.session_start_time.isoformat())

            self._generation += 1
            self._handle = self._scheduler.call_every(
                TICK_INTERVAL, partial(self._tick, self._generation)
            )
            self._persist()

    def pause(self) -> None:
        with self._lock:
            if not self._state.is_running:
                return

            self._cancel_ticks()
            self._state.is_running = False
            self._state.is_paused = True
            # TODO: split streak segments once a focus pause exceeds BREAK_OVERRUN_SECONDS.
            self._persist()

    def skip_break(self) -> None:
        """Jump straight back to a full focus block. No-op during focus."""
        with self._lock:
            if self._state.phase == Phase.FOCUS:
                return

            self._state.phase = Phase.FOCUS
            self._state.time_remaining = FOCUS_DURATION
            logger.info("Break skipped")
            self._notify_phase_change()
            self._persist()

    def stop(self) -> Session | None:
        """End the open session and return it. Returns None if nothing is open."""
        with self._lock:
            if self._state.session_start_time is None:
                return None

            session = self._generate_session()
            self.reset()
            logger.info(
                "Session %s completed: %.1f focus minutes, %d blocks",
                session.id, session.focus_minutes_total, session.completed_focus_blocks,
            )
            if self._on_complete:
                self._on_complete(session)
            return session

    def reset(self) -> None:
        """Cancel ticking and restore every field to its initial value."""
        with self._lock:
            self._cancel_ticks()
            self._state = TimerState(time_remaining=FOCUS_DURATION)
            self._persist()

    def set_selection(self, skill_id: str | None = None, attribute_ids: list[str] | tuple[str, ...] = ()) -> None:
        """Choose which skill and attributes the open session is credited to."""
        with self._lock:
            self._state.selected_skill_id = skill_id
            self._state.selected_attribute_ids = list(attribute_ids)
            self._persist()

    # ── Internals ────────────────────────────────────────────────────────────

    def _tick(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or not self._state.is_running:
                return

            self._state.time_remaining -= 1

            if self._state.phase == Phase.FOCUS:
                self._state.total_focus_minutes = self._calculate_total_focus_minutes()
                self._state.current_streak = self._state.total_focus_minutes / 60

            if self._state.time_remaining <= 0:
                self._handle_phase_transition()

            if self._on_tick:
                self._on_tick(self._state.copy())

            self._persist()

    def _handle_phase_transition(self) -> None:
        if self._state.phase == Phase.FOCUS:
            self._state.focus_blocks_completed += 1
            if self._state.focus_blocks_completed % LONG_BREAK_EVERY == 0:
                self._state.phase = Phase.LONG_BREAK
            else:
                self._state.phase = Phase.SHORT_BREAK
        else:
            # Breaks never chain
            self._state.phase = Phase.FOCUS

        self._state.time_remaining = PHASE_DURATIONS[self._state.phase]
        logger.info(
            "Phase changed to %s after %d focus blocks",
            self._state.phase.value, self._state.focus_blocks_completed,
        )
        self._notify_phase_change()

    def _notify_phase_change(self) -> None:
        if self._on_phase_change:
            self._on_phase_change(self._state.phase)

    def _calculate_total_focus_minutes(self) -> float:
        """Completed blocks plus progress into the current focus block."""
        if self._state.session_start_time is None:
            return 0.0

        completed = self._state.focus_blocks_completed * (FOCUS_DURATION / 60)
        if self._state.phase == Phase.FOCUS:
            return completed + (FOCUS_DURATION - self._state.time_remaining) / 60
        return completed

    def _generate_session(self) -> Session:
        """Build the Session record. XP is filled in downstream."""
        now = self._clock()
        start = self._state.session_start_time or now
        focus_minutes = self._calculate_total_focus_minutes()
        blocks = self._state.focus_blocks_completed
        long_breaks = blocks // LONG_BREAK_EVERY

        # One segment for the whole session; streak breaks are not tracked yet.
        return Session(
            id=f"session_{int(now.timestamp() * 1000)}_{uuid.uuid4().hex[:6]}",
            start_time=start,
            end_time=max(now, start),
            focus_minutes_total=focus_minutes,
            completed_focus_blocks=blocks,
            breaks_used=BreaksUsed(short_breaks=blocks - long_breaks, long_breaks=long_breaks),
            streak_segments=(StreakSegment(minutes=focus_minutes),),
            total_xp=0.0,
            attribute_ids_awarded_to=tuple(self._state.selected_attribute_ids),
            skill_id=self._state.selected_skill_id,
        )

    def _cancel_ticks(self) -> None:
        self._generation += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _persist(self) -> None:
        if self._storage is None:
            return
        try:
            self._storage.save_timer_state(self._state.copy())
        except Exception:
            logger.exception("Failed to persist timer state")

    def _restore_state(self) -> None:
        """Load a saved snapshot. A saved running timer is never resumed."""
        if self._storage is None:
            return
        try:
            saved = self._storage.load_timer_state()
        except Exception:
            logger.exception("Failed to restore timer state")
            return
        if saved is None:
            return

        saved.is_running = False
        saved.is_paused = False
        self._state = saved
        logger.info("Restored timer state (phase=%s)", saved.phase.value)
