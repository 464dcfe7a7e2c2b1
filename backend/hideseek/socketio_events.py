from flask import current_app, request
from typing import Any, Dict, Iterable, Optional, Tuple

from hideseek import socketio
from hideseek.models import GameSession
from hideseek.transport import Transport


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _session() -> GameSession:
    return current_app.extensions['game_session']


def _transport() -> Transport:
    return current_app.extensions['game_transport']


def _parse_move(data: Any) -> Optional[Tuple[int, int]]:
    if not isinstance(data, dict):
        return None
    x, y = data.get('x'), data.get('y')
    for value in (x, y):
        # bool is an int subclass; true/false are not coordinates
        if not isinstance(value, int) or isinstance(value, bool):
            return None
    return x, y


def announce_seeker(transport: Transport, session: GameSession) -> None:
    transport.send('seeker-changed', {'seekerId': session.seeker_id})


def announce_departures(transport: Transport, session: GameSession,
                        removed: Iterable[str], seeker_changed: bool) -> None:
    """Tell the remaining participants who left, then who seeks now."""
    for sid in removed:
        transport.send('participant-left', {'id': sid}, skip=sid)
    if seeker_changed:
        announce_seeker(transport, session)


def handle_connect(auth=None):
    sid = _get_sid()
    session, transport = _session(), _transport()
    with session.lock:
        participant, seeker_changed = session.join(sid)
        transport.send('init', session.to_dict(), to=sid)
        transport.send('participant-joined', {'id': sid, 'x': participant.x, 'y': participant.y}, skip=sid)
        if seeker_changed:
            announce_seeker(transport, session)
    current_app.logger.info(f"[connect] sid={sid} participants={len(session.registry)} seeker={session.seeker_id}")
    if seeker_changed:
        current_app.logger.info(f"[seeker] assigned seeker={session.seeker_id}")


def handle_disconnect(reason=None):
    sid = _get_sid()
    session, transport = _session(), _transport()
    with session.lock:
        removed, seeker_changed = session.leave(sid)
        if removed is None:
            # Already evicted by the sweep or cleared by a reset
            return
        announce_departures(transport, session, [sid], seeker_changed)
    current_app.logger.info(f"[disconnect] sid={sid} reason={reason} seeker={session.seeker_id}")
    if seeker_changed:
        current_app.logger.info(f"[seeker] reassigned after disconnect seeker={session.seeker_id}")


def handle_join(data=None):
    name = data.get('name') if isinstance(data, dict) else None
    if not isinstance(name, str) or not name.strip():
        current_app.logger.debug(f"[join-reject] sid={_get_sid()} payload={data!r}")
        return
    current_app.logger.info(f"[join] sid={_get_sid()} name={name}")
    _transport().send('welcome', {'message': f"Welcome to the game, {name}!"}, to=_get_sid())


def handle_move(data=None):
    sid = _get_sid()
    target = _parse_move(data)
    if target is None:
        current_app.logger.debug(f"[move-reject] sid={sid} malformed payload={data!r}")
        return
    session, transport = _session(), _transport()
    with session.lock:
        participant = session.move(sid, *target)
        if participant is None:
            current_app.logger.debug(f"[move-reject] sid={sid} target={target}")
            return
        transport.send('participant-moved', {'id': sid, 'x': participant.x, 'y': participant.y}, skip=sid)


def handle_heartbeat(data=None):
    _session().heartbeat(_get_sid())


def handle_error(exc):
    current_app.logger.exception(f"[socket-error] sid={_get_sid()} event failed: {exc}")


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on the game namespace."""
    handlers: Dict[str, Any] = {
        'connect': handle_connect,
        'disconnect': handle_disconnect,
        'join': handle_join,
        # Legacy event name still sent by the web client
        'player-join': handle_join,
        'move': handle_move,
        'heartbeat': handle_heartbeat,
    }
    for event, handler in handlers.items():
        socketio.on_event(event, handler, namespace=namespace)
    socketio.on_error_default(handle_error)
