import logging
import threading
import time
from typing import Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class TimerHandle:
    def __init__(self, room_id: str, kind: str, delay_sec: float):
        self.room_id = room_id
        self.kind = kind
        self.delay_sec = delay_sec
        self.deadline = time.monotonic() + delay_sec
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class RoomTimers:
    """At most one pending transition per room.

    - Scheduling a timer for a room cancels whatever was pending for it
    - Callbacks run under the room's lock, and only if their handle is still
      the room's pending one
    - With ``enabled=False`` (tests) timers are recorded but never started;
      ``fire`` runs them on demand
    - A callback returning a truthy value reports a state change; ``on_fired``
      is then called with the room id after the room lock is released
    """

    def __init__(self, start_task: Optional[Callable] = None, sleep: Optional[Callable] = None,
                 enabled: bool = True, heartbeat_sec: int = 0,
                 on_fired: Optional[Callable[[str], None]] = None):
        self._start_task = start_task or _start_thread
        self._sleep = sleep or time.sleep
        self.enabled = enabled
        self.heartbeat_sec = heartbeat_sec
        self.on_fired = on_fired
        self._pending: Dict[str, Tuple[TimerHandle, object, Callable[[], object]]] = {}
        self._lock = threading.Lock()

    def schedule(self, room, kind: str, delay_ms: int, callback: Callable[[], object]) -> TimerHandle:
        delay_sec = max(0, delay_ms) / 1000.0
        handle = TimerHandle(room.id, kind, delay_sec)
        with self._lock:
            previous = self._pending.get(room.id)
            if previous:
                previous[0].cancel()
            self._pending[room.id] = (handle, room, callback)
        logger.info(f"[timer-set] room={room.id} kind={kind} delay={delay_sec:.3f}s")
        if self.enabled:
            self._start_task(self._worker, handle, room, callback)
        return handle

    def cancel(self, room_id: str) -> bool:
        with self._lock:
            entry = self._pending.pop(room_id, None)
        if entry is None:
            return False
        handle = entry[0]
        handle.cancel()
        logger.info(f"[timer-cancel] room={room_id} kind={handle.kind}")
        return True

    def pending(self, room_id: str) -> Optional[TimerHandle]:
        with self._lock:
            entry = self._pending.get(room_id)
        return entry[0] if entry else None

    def fire(self, room_id: str) -> bool:
        """Run the pending timer of ``room_id`` now, skipping its delay."""
        with self._lock:
            entry = self._pending.get(room_id)
        if entry is None:
            return False
        handle, room, callback = entry
        return self._run(handle, room, callback)

    def _worker(self, handle: TimerHandle, room, callback) -> None:
        # Sleep in short slices so cancelled timers exit early and heartbeats can be logged
        step = self.heartbeat_sec if self.heartbeat_sec and self.heartbeat_sec > 0 else 1.0
        while True:
            if handle.cancelled:
                logger.info(f"[timer-abort] room={handle.room_id} kind={handle.kind} cancelled")
                return
            remaining = handle.deadline - time.monotonic()
            if remaining <= 0:
                break
            self._sleep(min(step, remaining))
            if self.heartbeat_sec and self.heartbeat_sec > 0:
                logger.info(
                    f"[timer-heartbeat] room={handle.room_id} kind={handle.kind} "
                    f"remaining={max(0.0, handle.deadline - time.monotonic()):.1f}s"
                )
        self._run(handle, room, callback)

    def _run(self, handle: TimerHandle, room, callback) -> bool:
        with room.lock:
            with self._lock:
                entry = self._pending.get(handle.room_id)
                if handle.cancelled or entry is None or entry[0] is not handle:
                    logger.info(f"[timer-abort] room={handle.room_id} kind={handle.kind} superseded")
                    return False
                del self._pending[handle.room_id]
            logger.info(f"[timer-fire] room={handle.room_id} kind={handle.kind}")
            try:
                changed = callback()
            except Exception:
                logger.exception(f"[timer-error] room={handle.room_id} kind={handle.kind}")
                return False
        if changed and self.on_fired is not None:
            try:
                self.on_fired(handle.room_id)
            except Exception:
                logger.exception(f"[timer-notify-error] room={handle.room_id} kind={handle.kind}")
        return True


def _start_thread(target, *args) -> threading.Thread:
    thread = threading.Thread(target=target, args=args, daemon=True)
    thread.start()
    return thread
