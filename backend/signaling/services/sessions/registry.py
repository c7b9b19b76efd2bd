import threading
import time
from dataclasses import replace
from typing import Dict, List, Optional

from signaling.models import Session


class RegistryError(Exception):
    """Base class for registry failures; carries the PIN involved."""

    def __init__(self, pin: str):
        super().__init__(pin)
        self.pin = pin


class DuplicatePinError(RegistryError):
    pass


class SessionNotFound(RegistryError):
    pass


class ViewerAlreadyPresent(RegistryError):
    pass


class SessionRegistry:
    """In-memory PIN -> Session store.

    Every mutation and every snapshot runs under one lock, so two joins
    racing for the same PIN cannot both see an empty viewer slot. Lookups
    hand out copies; the stored records only change through the methods
    below.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sessions: Dict[str, Session] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, pin: str) -> bool:
        with self._lock:
            return pin in self._sessions

    def create(self, pin: str, host_id: str) -> Session:
        with self._lock:
            if pin in self._sessions:
                raise DuplicatePinError(pin)
            session = Session(pin=pin, host_id=host_id)
            self._sessions[pin] = session
            return replace(session)

    def get(self, pin: str) -> Session:
        with self._lock:
            session = self._sessions.get(pin)
            if session is None:
                raise SessionNotFound(pin)
            return replace(session)

    def set_viewer(self, pin: str, viewer_id: str) -> Session:
        with self._lock:
            session = self._sessions.get(pin)
            if session is None:
                raise SessionNotFound(pin)
            if session.viewer_id is not None:
                raise ViewerAlreadyPresent(pin)
            session.viewer_id = viewer_id
            session.last_activity = time.monotonic()
            return replace(session)

    def clear_viewer(self, pin: str, viewer_id: Optional[str] = None) -> Optional[Session]:
        """Empty the viewer slot. Idempotent.

        With ``viewer_id`` the slot is only cleared if that connection
        still occupies it; otherwise nothing changes and None is returned.
        """
        with self._lock:
            session = self._sessions.get(pin)
            if session is None:
                raise SessionNotFound(pin)
            if viewer_id is not None and session.viewer_id != viewer_id:
                return None
            session.viewer_id = None
            return replace(session)

    def remove(self, pin: str, host_id: Optional[str] = None) -> Session:
        """Delete the session and return its final state.

        With ``host_id`` the session is only removed if that connection is
        its host; otherwise it is reported as not found.
        """
        with self._lock:
            session = self._sessions.get(pin)
            if session is None or (host_id is not None and session.host_id != host_id):
                raise SessionNotFound(pin)
            del self._sessions[pin]
            return session

    def touch(self, pin: str) -> None:
        with self._lock:
            session = self._sessions.get(pin)
            if session is not None:
                session.last_activity = time.monotonic()

    def pins(self) -> List[str]:
        with self._lock:
            return list(self._sessions)

    def idle_pins(self, cutoff: float) -> List[str]:
        """PINs whose last activity is older than ``cutoff`` (monotonic)."""
        with self._lock:
            return [pin for pin, s in self._sessions.items() if s.last_activity < cutoff]
