import json
import logging
import queue
import threading
import time
from datetime import datetime
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    'Content-Type': 'text/event-stream',
    'Cache-Control': 'no-cache',
    'Connection': 'keep-alive',
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Headers': 'Cache-Control',
    'X-Accel-Buffering': 'no',
}


def format_sse(event: str, data) -> str:
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


class StreamChannel:
    """
    One open event-stream response.

    The bus writes frames into a bounded queue; the Flask response drains it
    through ``stream()``. When the client goes away the generator is closed,
    which destroys the channel and fires its close callbacks. A client that
    stops reading fills its queue and is destroyed on the next write.

    ``last_activity`` moves only when a frame is handed to the client.
    """

    _SENTINEL = None

    def __init__(self, keepalive_interval: float = 15, max_queue: int = 1000):
        self.keepalive_interval = keepalive_interval
        self.max_queue = max_queue
        self.headers: Dict[str, str] = {}
        self.status = 200
        self.destroyed = False
        self.finished = False
        self.last_activity = time.monotonic()
        self._queue: "queue.Queue[Optional[str]]" = queue.Queue(maxsize=max_queue)
        self._close_callbacks: List[Callable[["StreamChannel"], None]] = []
        self._lock = threading.Lock()

    def set_header(self, name: str, value: str):
        self.headers[name] = value

    def on_close(self, callback: Callable[["StreamChannel"], None]):
        self._close_callbacks.append(callback)

    def write(self, chunk: str) -> bool:
        if self.destroyed or self.finished:
            return False
        try:
            self._queue.put_nowait(chunk)
        except queue.Full:
            logger.warning(f"Stream client fell {self.max_queue} frames behind, dropping it")
            self.destroy()
            return False
        return True

    def end(self):
        """Finish the response normally once queued frames are flushed."""
        if self.finished or self.destroyed:
            return
        self.finished = True
        self._wake()
        self._fire_close()

    def destroy(self):
        """Abort the response; pending frames are dropped."""
        if self.destroyed:
            return
        self.destroyed = True
        self._wake()
        self._fire_close()

    def _wake(self):
        # A full queue needs no sentinel: the reader checks the flags after every get
        try:
            self._queue.put_nowait(self._SENTINEL)
        except queue.Full:
            pass

    def _fire_close(self):
        with self._lock:
            callbacks, self._close_callbacks = self._close_callbacks, []
        for callback in callbacks:
            try:
                callback(self)
            except Exception:
                logger.exception("Stream close callback failed")

    def stream(self):
        """Generator handed to the Flask Response."""
        try:
            while True:
                try:
                    chunk = self._queue.get(timeout=self.keepalive_interval)
                except queue.Empty:
                    if self.destroyed or self.finished:
                        break
                    yield ": keepalive\n\n"
                    continue
                if chunk is self._SENTINEL or self.destroyed:
                    break
                self.last_activity = time.monotonic()
                yield chunk
        except GeneratorExit:
            logger.debug("Stream client disconnected")
            raise
        finally:
            self.destroy()


class EventBus:
    """
    Fan-out of named events to every connected stream.

    Owned by the application factory. ``start()`` arms the periodic sweep of
    stale connections and ``close_all()`` is the shutdown hook.
    """

    def __init__(self, idle_timeout: float = 300, sweep_interval: float = 30):
        self.idle_timeout = idle_timeout
        self.sweep_interval = sweep_interval
        self.connections = set()
        self.event_counts: Dict[str, int] = {}
        self.total_events = 0
        self.start_time = time.monotonic()
        self._lock = threading.RLock()
        self._watchdogs: Dict[int, threading.Timer] = {}
        self._stop = threading.Event()
        self._sweeper: Optional[threading.Thread] = None

    # ==================== Lifecycle ====================

    def start(self):
        if self._sweeper and self._sweeper.is_alive():
            return
        self._stop.clear()
        self._sweeper = threading.Thread(target=self._sweep_loop, name='event-bus-sweep', daemon=True)
        self._sweeper.start()
        logger.info(f"Event bus started (sweep every {self.sweep_interval}s)")

    def _sweep_loop(self):
        while not self._stop.wait(self.sweep_interval):
            self.cleanup_stale_connections()

    def close_all(self):
        self._stop.set()
        with self._lock:
            channels = list(self.connections)
            self.connections.clear()
            timers = list(self._watchdogs.values())
            self._watchdogs.clear()
        for timer in timers:
            timer.cancel()
        for channel in channels:
            if not channel.destroyed:
                channel.end()
        if channels:
            logger.info(f"Closed {len(channels)} stream connections")

    # ==================== Connections ====================

    def add_connection(self, channel: StreamChannel):
        for name, value in SSE_HEADERS.items():
            channel.set_header(name, value)
        channel.status = 200

        with self._lock:
            self.connections.add(channel)

        channel.on_close(self._remove)

        self.send_event(channel, 'connection', {
            'message': 'Event stream connected',
            'timestamp': datetime.utcnow().isoformat() + "Z",
        })
        self._arm_watchdog(channel, self.idle_timeout)
        logger.debug(f"Stream connected ({self.get_connection_count()} open)")

    def _remove(self, channel: StreamChannel):
        with self._lock:
            self.connections.discard(channel)
            timer = self._watchdogs.pop(id(channel), None)
        if timer:
            timer.cancel()

    def _arm_watchdog(self, channel: StreamChannel, delay: float):
        if not self.idle_timeout:
            return
        timer = threading.Timer(delay, self._check_idle, args=(channel,))
        timer.daemon = True
        with self._lock:
            if channel not in self.connections:
                return
            self._watchdogs[id(channel)] = timer
        timer.start()

    def _check_idle(self, channel: StreamChannel):
        idle = time.monotonic() - channel.last_activity
        if idle < self.idle_timeout:
            self._arm_watchdog(channel, self.idle_timeout - idle)
            return
        with self._lock:
            still_open = channel in self.connections
        if still_open:
            logger.warning("Stream connection idle too long, closing")
            channel.destroy()
            self._remove(channel)

    def get_connection_count(self) -> int:
        with self._lock:
            return len(self.connections)

    def cleanup_stale_connections(self) -> int:
        with self._lock:
            stale = [c for c in self.connections if c.destroyed or c.finished]
            for channel in stale:
                self.connections.discard(channel)
                timer = self._watchdogs.pop(id(channel), None)
                if timer:
                    timer.cancel()
        if stale:
            logger.info(f"Cleaned up {len(stale)} stale stream connections")
        return len(stale)

    # ==================== Events ====================

    def send_event(self, channel: StreamChannel, event: str, data) -> bool:
        if channel is None or channel.destroyed:
            return False
        return channel.write(format_sse(event, data))

    def broadcast(self, event: str, data):
        frame = format_sse(event, data)
        with self._lock:
            self.total_events += 1
            self.event_counts[event] = self.event_counts.get(event, 0) + 1
            channels = list(self.connections)

        logger.debug(f"Broadcasting {event} to {len(channels)} connections")

        for channel in channels:
            if channel.destroyed:
                self._remove(channel)
                continue
            channel.write(frame)

    def get_metrics(self) -> dict:
        uptime_ms = int((time.monotonic() - self.start_time) * 1000)
        hours, rem = divmod(uptime_ms, 3600000)
        minutes, rem = divmod(rem, 60000)
        seconds = rem // 1000
        with self._lock:
            return {
                'connections': len(self.connections),
                'totalEvents': self.total_events,
                'eventCounts': dict(self.event_counts),
                'uptime': {
                    'milliseconds': uptime_ms,
                    'seconds': uptime_ms // 1000,
                    'formatted': f"{hours}h {minutes}m {seconds}s",
                },
                'eventsPerSecond': self.total_events / (uptime_ms / 1000) if uptime_ms else 0.0,
                'status': 'active' if not self._stop.is_set() else 'stopped',
            }
