import importlib
import random
import time

import pytest

from conftest import TestConfig, named, sid_of

from hideseek import create_app
from hideseek.models import GameSession
from hideseek.services.games.grid import generate_grid
from hideseek.services.games.liveness import LivenessMonitor


class FakeTransport:
    def __init__(self):
        self.live = set()
        self.sent = []
        self.closed = []
        self.socketio = None

    def connected_ids(self):
        return set(self.live)

    def send(self, event, payload, to=None, skip=None):
        self.sent.append((event, payload, to, skip))

    def close(self, sid):
        self.closed.append(sid)
        self.live.discard(sid)


@pytest.fixture()
def monitor(flask_app):
    return flask_app.extensions['liveness_monitor']


def test_monitor_not_started_in_tests(monitor):
    assert monitor.started is False


def test_sweep_evicts_ids_the_transport_no_longer_has(session, connect, monitor):
    alice = connect()
    sid_a = sid_of(session)
    bob = connect()
    sid_b = sid_of(session, [sid_a])
    # A disconnect that never reached the handler
    session.join('ghost')
    alice.get_received()
    bob.get_received()

    result = monitor.sweep()

    assert result['evicted'] == ['ghost']
    assert set(session.participant_ids()) == {sid_a, sid_b}
    assert set(session.participant_ids()) <= monitor.transport.connected_ids()
    assert named(alice.get_received(), 'participant-left') == [{'id': 'ghost'}]
    assert named(bob.get_received(), 'participant-left') == [{'id': 'ghost'}]


def test_sweep_clears_evicted_seeker(session, connect, monitor):
    alice = connect()
    sid_a = sid_of(session)
    session.join('ghost')
    assert session.seeker_id in (sid_a, 'ghost')
    alice.get_received()

    monitor.sweep()

    assert session.participant_ids() == [sid_a]
    assert session.seeker_id is None
    received = alice.get_received()
    assert named(received, 'participant-left') == [{'id': 'ghost'}]
    assert named(received, 'seeker-changed') == [{'seekerId': None}]


def test_sweep_closes_unknown_connection_on_second_sighting(session, connect, monitor):
    alice = connect()
    sid_a = sid_of(session)
    # Registry lost track of a live connection
    session.registry.remove(sid_a)

    first = monitor.sweep()
    assert first['closed'] == []
    assert sid_a in monitor.transport.connected_ids()

    second = monitor.sweep()
    assert second['closed'] == [sid_a]
    assert sid_a not in monitor.transport.connected_ids()
    assert session.participant_ids() == []


def test_sweep_evicts_and_closes_idle_participants(flask_app, session, connect):
    monitor = LivenessMonitor(
        flask_app, session, flask_app.extensions['game_transport'], idle_timeout=30
    )
    alice = connect()
    sid_a = sid_of(session)
    bob = connect()
    sid_b = sid_of(session, [sid_a])
    session.registry.get(sid_a).last_active = time.time() - 120
    bob.get_received()

    result = monitor.sweep()

    assert result == {'evicted': [sid_a], 'closed': [sid_a]}
    assert session.participant_ids() == [sid_b]
    assert session.seeker_id is None
    received = bob.get_received()
    assert named(received, 'participant-left') == [{'id': sid_a}]
    assert named(received, 'seeker-changed') == [{'seekerId': None}]
    assert sid_a not in monitor.transport.connected_ids()


def test_sweep_is_skipped_while_another_runs(monitor):
    assert monitor._sweep_guard.acquire(blocking=False)
    try:
        assert monitor.sweep() is None
    finally:
        monitor._sweep_guard.release()
    assert monitor.sweep() == {'evicted': [], 'closed': []}


def test_registry_stays_within_live_set_and_seeker_valid(flask_app):
    rng = random.Random(7)
    session = GameSession(generate_grid(8, 0.3, (1, 1), rng=random.Random(3)), (1, 1), rng=rng)
    transport = FakeTransport()
    monitor = LivenessMonitor(flask_app, session, transport, interval=1, idle_timeout=0)

    for step in range(300):
        sid = f"c{rng.randrange(12)}"
        action = rng.random()
        if action < 0.45:
            transport.live.add(sid)
            session.join(sid)
        elif action < 0.7:
            # Transport drops without a disconnect event
            transport.live.discard(sid)
        elif action < 0.85:
            transport.live.discard(sid)
            session.leave(sid)
        else:
            monitor.sweep()
            assert set(session.participant_ids()) <= transport.connected_ids()

        ids = session.participant_ids()
        if len(ids) < 2:
            assert session.seeker_id is None
        else:
            assert session.seeker_id in ids


def test_rejects_bad_intervals(flask_app, session):
    transport = flask_app.extensions['game_transport']
    with pytest.raises(ValueError):
        LivenessMonitor(flask_app, session, transport, interval=0)
    with pytest.raises(ValueError):
        LivenessMonitor(flask_app, session, transport, idle_timeout=-1)


class RecordingSocketIO:
    def __init__(self):
        self.tasks = []

    def start_background_task(self, target, *args):
        self.tasks.append((target, args))


def wait_for(predicate, timeout=2.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()


class LoopConfig(TestConfig):
    ENABLE_LIVENESS_IN_TESTS = True
    LIVENESS_INTERVAL_SEC = 0.05


def test_loop_sweeps_on_interval_and_survives_failures():
    application = create_app(LoopConfig)
    monitor = application.extensions['liveness_monitor']
    session = application.extensions['game_session']
    try:
        assert monitor.started is True
        session.join('ghost')
        assert wait_for(lambda: 'ghost' not in session.participant_ids())

        real_sweep = monitor.sweep
        calls = []

        def flaky_sweep():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError('boom')
            return real_sweep()

        monitor.sweep = flaky_sweep
        session.join('ghost-2')
        assert wait_for(lambda: 'ghost-2' not in session.participant_ids())
        assert len(calls) >= 2
    finally:
        monitor.stop()


def test_restart_does_not_revive_stopped_loop(flask_app, session):
    transport = FakeTransport()
    transport.socketio = RecordingSocketIO()
    monitor = LivenessMonitor(flask_app, session, transport, interval=0.01)
    sweeps = []
    monitor.sweep = lambda: sweeps.append(1)

    monitor.start()
    monitor.stop()
    monitor.start()

    (old_run, old_args), (new_run, new_args) = transport.socketio.tasks
    assert old_args[0] is not new_args[0]
    assert not new_args[0].is_set()
    # The first loop exits without sweeping even though the monitor runs again
    old_run(*old_args)
    assert sweeps == []
    monitor.stop()
    new_run(*new_args)
    assert sweeps == []


def test_idle_eviction_is_off_by_default(monkeypatch):
    monkeypatch.delenv('IDLE_TIMEOUT_SEC', raising=False)
    import config
    importlib.reload(config)
    assert config.Config.IDLE_TIMEOUT_SEC == 0
