import threading
from typing import Dict, List, Optional, Set

from hideseek.models import GameSession
from hideseek.socketio_events import announce_departures
from hideseek.transport import Transport


class LivenessMonitor:
    """Periodic sweep reconciling the registry with live transport connections.

    - Registry ids the transport no longer reports are evicted and announced
    - Participants idle past ``idle_timeout`` are evicted the same way (0 disables)
    - Transport connections unknown to the registry on two consecutive sweeps
      are force-closed; a single miss can be a connect still in flight
    - A sweep that finds the previous one still running is skipped
    """

    def __init__(self, app, session: GameSession, transport: Transport,
                 interval: Optional[float] = None, idle_timeout: Optional[float] = None):
        self.app = app
        self.session = session
        self.transport = transport
        self.interval = float(interval if interval is not None else app.config.get('LIVENESS_INTERVAL_SEC', 5))
        self.idle_timeout = float(idle_timeout if idle_timeout is not None else app.config.get('IDLE_TIMEOUT_SEC', 0))
        if self.interval <= 0:
            raise ValueError(f"LIVENESS_INTERVAL_SEC must be positive, got {self.interval}")
        if self.idle_timeout < 0:
            raise ValueError(f"IDLE_TIMEOUT_SEC must not be negative, got {self.idle_timeout}")
        self._sweep_guard = threading.Lock()
        self._suspects: Set[str] = set()
        self._stopped = threading.Event()
        self.started = False

    def start(self) -> None:
        if self.started:
            return
        self.started = True
        # Fresh event per loop; a stopped loop still sleeping never resumes
        self._stopped = threading.Event()
        self.app.logger.info(f"[sweep-start] interval={self.interval}s idle_timeout={self.idle_timeout}s")
        self.transport.socketio.start_background_task(self._run, self._stopped)

    def stop(self) -> None:
        self._stopped.set()
        self.started = False

    def _run(self, stopped: threading.Event) -> None:
        while not stopped.wait(self.interval):
            try:
                self.sweep()
            except Exception:
                self.app.logger.exception("[sweep-error] liveness sweep failed; retrying next tick")

    def sweep(self) -> Optional[Dict[str, List[str]]]:
        """Run one reconciliation pass.

        Returns the evicted and force-closed ids, or None when another sweep
        was still in progress.
        """
        if not self._sweep_guard.acquire(blocking=False):
            self.app.logger.info("[sweep-skip] previous sweep still running")
            return None
        try:
            with self.session.lock:
                live = self.transport.connected_ids()
                registered = set(self.session.participant_ids())
                stale = registered - live
                idle = set()
                if self.idle_timeout > 0:
                    idle = set(self.session.idle_ids(self.idle_timeout)) - stale
                removed, seeker_changed = self.session.evict(sorted(stale | idle))
                announce_departures(self.transport, self.session, removed, seeker_changed)
                unknown = live - set(self.session.participant_ids())

            self.app.logger.debug(f"[sweep] live={len(live)} registered={len(registered)} unknown={len(unknown)}")
            for sid in removed:
                reason = 'idle' if sid in idle else 'transport-gone'
                self.app.logger.info(f"[evict] sid={sid} reason={reason}")
            if seeker_changed:
                self.app.logger.info(f"[seeker] reassigned after sweep seeker={self.session.seeker_id}")

            # Idle evictees are still connected; close them right away
            to_close = sorted((unknown & self._suspects) | (unknown & idle))
            self._suspects = unknown - set(to_close)
            for sid in to_close:
                self.app.logger.info(f"[orphan-close] sid={sid}")
                self.transport.close(sid)
            return {'evicted': removed, 'closed': to_close}
        finally:
            self._sweep_guard.release()
