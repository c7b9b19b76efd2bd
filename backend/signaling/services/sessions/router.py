import logging
import time
from typing import Any, Callable, Dict, List, Optional

from signaling.models import Connection, Role, Session
from .registry import (
    DuplicatePinError,
    SessionNotFound,
    SessionRegistry,
    ViewerAlreadyPresent,
)


ERR_PIN_IN_USE = 'PIN already in use'
ERR_INVALID_PIN = 'Invalid PIN'
ERR_VIEWER_PRESENT = 'Session already has a viewer'
ERR_NO_VIEWER = 'No viewer connected'
ERR_HOST_NOT_FOUND = 'Host not found'
ERR_ALREADY_BOUND = 'Connection already in a session'

# send(connection_id, event, payload=None)
SendFn = Callable[..., None]


class ConnectionRouter:
    """Binds sockets to host/viewer roles and relays messages between them.

    The router knows nothing about the transport: it is handed a ``send``
    callable that delivers one event to one connection id. Outbound sends
    are fire-and-forget.
    """

    def __init__(self, registry: Optional[SessionRegistry] = None,
                 send: Optional[SendFn] = None,
                 logger: Optional[logging.Logger] = None,
                 pin_length: int = 6) -> None:
        self.registry = registry if registry is not None else SessionRegistry()
        self.connections: Dict[str, Connection] = {}
        self.logger = logger or logging.getLogger(__name__)
        self.pin_length = pin_length
        self._send = send
        self._handlers: Dict[str, Callable[[Connection, Dict[str, Any]], None]] = {
            'create-session': self.create_session,
            'join-session': self.join_session,
            'offer': self.relay_offer,
            'answer': self.relay_answer,
            'ice-candidate': self.relay_ice_candidate,
            'touch-event': self.relay_touch_event,
            'end-session': self.end_session,
        }

    def init_app(self, app, send: SendFn) -> None:
        # Fresh state per app so each test app starts with an empty registry
        self.registry = SessionRegistry()
        self.connections = {}
        self.logger = app.logger
        self.pin_length = int(app.config.get('PIN_LENGTH', 6))
        self._send = send
        app.extensions['signaling_router'] = self

    @property
    def message_types(self) -> List[str]:
        return list(self._handlers)

    # ---- transport entry points ----

    def connect(self, connection_id: str) -> Connection:
        self.logger.info(f"[connect] sid={connection_id}")
        conn = self.connections.get(connection_id)
        if conn is None:
            conn = self.connections[connection_id] = Connection(id=connection_id)
        return conn

    def dispatch(self, connection_id: str, message_type: str, payload: Any = None) -> None:
        handler = self._handlers.get(message_type)
        if handler is None:
            self.logger.debug(f"[ignored] sid={connection_id} type={message_type}")
            return
        conn = self.connections.get(connection_id)
        if conn is None:
            self.logger.debug(f"[ignored] sid={connection_id} type={message_type} unknown connection")
            return
        handler(conn, payload if isinstance(payload, dict) else {})

    def disconnect(self, connection_id: str) -> None:
        self.logger.info(f"[disconnect] sid={connection_id}")
        conn = self.connections.pop(connection_id, None)
        if conn is None or not conn.is_bound:
            return
        if conn.role is Role.HOST:
            self._host_left(conn)
        elif conn.role is Role.VIEWER:
            self._viewer_left(conn)

    # ---- pairing ----

    def create_session(self, conn: Connection, payload: Dict[str, Any]) -> None:
        pin = payload.get('pin')
        if conn.is_bound:
            self._reject(conn, ERR_ALREADY_BOUND)
            return
        if not self._valid_pin(pin):
            self._reject(conn, ERR_INVALID_PIN)
            return
        try:
            self.registry.create(pin, conn.id)
        except DuplicatePinError:
            self._reject(conn, ERR_PIN_IN_USE)
            return
        conn.bind(Role.HOST, pin)
        self._emit(conn.id, 'session-created', {'pin': pin})
        self.logger.info(f"[session-created] pin={pin} host={conn.id}")

    def join_session(self, conn: Connection, payload: Dict[str, Any]) -> None:
        pin = payload.get('pin')
        if conn.is_bound:
            self._reject(conn, ERR_ALREADY_BOUND)
            return
        if not self._valid_pin(pin):
            self._reject(conn, ERR_INVALID_PIN)
            return
        try:
            session = self.registry.set_viewer(pin, conn.id)
        except SessionNotFound:
            self._reject(conn, ERR_INVALID_PIN)
            return
        except ViewerAlreadyPresent:
            self._reject(conn, ERR_VIEWER_PRESENT)
            return
        conn.bind(Role.VIEWER, pin)
        self._emit(conn.id, 'session-joined', {'pin': pin})
        self._emit(session.host_id, 'viewer-joined', {'viewerId': conn.id})
        self.logger.info(f"[session-joined] pin={pin} viewer={conn.id} host={session.host_id}")

    # ---- relays ----

    def relay_offer(self, conn: Connection, payload: Dict[str, Any]) -> None:
        session = self._session_for(conn, payload.get('pin'), Role.HOST)
        if session is None or session.viewer_id is None:
            self._reject(conn, ERR_NO_VIEWER)
            return
        self.registry.touch(session.pin)
        self.logger.debug(f"[offer] pin={session.pin} {conn.id} -> {session.viewer_id}")
        self._emit(session.viewer_id, 'offer', {'offer': payload.get('offer')})

    def relay_answer(self, conn: Connection, payload: Dict[str, Any]) -> None:
        session = self._session_for(conn, payload.get('pin'), Role.VIEWER)
        if session is None:
            self._reject(conn, ERR_HOST_NOT_FOUND)
            return
        self.registry.touch(session.pin)
        self.logger.debug(f"[answer] pin={session.pin} {conn.id} -> {session.host_id}")
        self._emit(session.host_id, 'answer', {'answer': payload.get('answer')})

    def relay_ice_candidate(self, conn: Connection, payload: Dict[str, Any]) -> None:
        session = self._session_for(conn, payload.get('pin'), conn.role)
        target = self._counterpart(conn, session) if session else None
        if target is None:
            self.logger.debug(f"[ice-drop] sid={conn.id} pin={payload.get('pin')}")
            return
        self.registry.touch(session.pin)
        self._emit(target, 'ice-candidate', {'candidate': payload.get('candidate')})

    def relay_touch_event(self, conn: Connection, payload: Dict[str, Any]) -> None:
        session = self._session_for(conn, payload.get('pin'), Role.VIEWER)
        if session is None:
            self.logger.debug(f"[touch-drop] sid={conn.id} pin={payload.get('pin')}")
            return
        self.registry.touch(session.pin)
        self._emit(session.host_id, 'touch-event', {
            'x': payload.get('x'),
            'y': payload.get('y'),
            'action': payload.get('action'),
        })

    # ---- lifecycle ----

    def end_session(self, conn: Connection, payload: Dict[str, Any]) -> None:
        if not conn.is_bound:
            return
        session = self._session_for(conn, conn.pin, conn.role)
        if session is None:
            return
        if self._terminate(session):
            self.logger.info(f"[session-ended] pin={session.pin} by={conn.id}")

    def reap_idle_sessions(self, max_idle_sec: float, now: Optional[float] = None) -> List[str]:
        """End every session with no activity for ``max_idle_sec`` seconds.

        Both parties receive ``session-ended``. Returns the reaped PINs.
        """
        now = time.monotonic() if now is None else now
        reaped = []
        for pin in self.registry.idle_pins(now - max_idle_sec):
            try:
                session = self.registry.get(pin)
            except SessionNotFound:
                continue
            if self._terminate(session):
                reaped.append(pin)
                self.logger.info(f"[session-reaped] pin={pin} idle>{max_idle_sec}s")
        return reaped

    def status(self) -> Dict[str, Any]:
        pins = self.registry.pins()
        return {'activeSessions': len(pins), 'sessions': pins}

    # ---- helpers ----

    def _host_left(self, conn: Connection) -> None:
        try:
            session = self.registry.remove(conn.pin, host_id=conn.id)
        except SessionNotFound:
            return
        if session.viewer_id:
            self._emit(session.viewer_id, 'host-disconnected')
        self.logger.info(f"[session-deleted] pin={conn.pin} reason=host-disconnected")

    def _viewer_left(self, conn: Connection) -> None:
        try:
            session = self.registry.clear_viewer(conn.pin, viewer_id=conn.id)
        except SessionNotFound:
            return
        if session is None:
            return
        self._emit(session.host_id, 'viewer-disconnected')
        self.logger.info(f"[viewer-left] pin={conn.pin} viewer={conn.id}")

    def _terminate(self, session: Session) -> bool:
        try:
            removed = self.registry.remove(session.pin, host_id=session.host_id)
        except SessionNotFound:
            return False
        if removed.viewer_id:
            self._emit(removed.viewer_id, 'session-ended')
        self._emit(removed.host_id, 'session-ended')
        return True

    def _session_for(self, conn: Connection, pin: Any, role: Role) -> Optional[Session]:
        """Live session for ``pin`` if ``conn`` currently holds ``role`` in it."""
        if role is Role.UNBOUND or conn.role is not role or conn.pin != pin:
            return None
        try:
            session = self.registry.get(pin)
        except SessionNotFound:
            return None
        if role is Role.HOST and session.host_id != conn.id:
            return None
        if role is Role.VIEWER and session.viewer_id != conn.id:
            return None
        return session

    @staticmethod
    def _counterpart(conn: Connection, session: Session) -> Optional[str]:
        if conn.role is Role.HOST:
            return session.viewer_id
        if conn.role is Role.VIEWER:
            return session.host_id
        return None

    def _valid_pin(self, pin: Any) -> bool:
        return (
            isinstance(pin, str)
            and len(pin) == self.pin_length
            and pin.isascii()
            and pin.isdigit()
        )

    def _reject(self, conn: Connection, message: str) -> None:
        self.logger.warning(f"[rejected] sid={conn.id} role={conn.role.value} error={message!r}")
        self._emit(conn.id, 'error', {'message': message})

    def _emit(self, connection_id: str, event: str, payload: Optional[Dict[str, Any]] = None) -> None:
        if self._send is None:
            raise RuntimeError('ConnectionRouter has no send function; call init_app first')
        self._send(connection_id, event, payload)
