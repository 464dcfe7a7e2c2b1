from typing import Optional, Set

from flask_socketio import SocketIO


class Transport:
    """Socket.IO server as seen by the session: live ids, sends, closes."""

    def __init__(self, socketio: SocketIO, namespace: str = '/'):
        self.socketio = socketio
        self.namespace = namespace

    def connected_ids(self) -> Set[str]:
        server = self.socketio.server
        if server is None:
            return set()
        try:
            participants = server.manager.get_participants(self.namespace, None)
            # get_participants may return tuples of (sid, eio_sid) or just sids
            return {p[0] if isinstance(p, tuple) else p for p in participants}
        except KeyError:
            # Namespace has never seen a connection
            return set()

    def send(self, event: str, payload, to: Optional[str] = None, skip: Optional[str] = None) -> None:
        self.socketio.emit(event, payload, to=to, skip_sid=skip, namespace=self.namespace)

    def close(self, sid: str) -> None:
        self.socketio.server.disconnect(sid, namespace=self.namespace)
