from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
import time


class Role(Enum):
    UNBOUND = 'unbound'
    HOST = 'host'
    VIEWER = 'viewer'


@dataclass
class Session:
    """Pairing record for one PIN: a host and at most one viewer.

    Connections are referenced by their transport sid only; the registry
    owns the record.
    """
    pin: str
    host_id: str
    viewer_id: Optional[str] = None
    created_at: float = field(default_factory=time.monotonic)
    last_activity: float = field(default_factory=time.monotonic)


@dataclass
class Connection:
    """Router-side view of a live socket."""
    id: str
    role: Role = Role.UNBOUND
    pin: Optional[str] = None

    @property
    def is_bound(self) -> bool:
        return self.role is not Role.UNBOUND

    def bind(self, role: Role, pin: str) -> None:
        if self.is_bound:
            raise ValueError(f"connection {self.id} is already bound as {self.role.value}")
        self.role = role
        self.pin = pin
