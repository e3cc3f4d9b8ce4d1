"""madOS iwd backend - Abstract interfaces.

Defines the data types, errors and the contract the backend expects from
the iwd message bus, so the core can run against the real daemon or the
in-memory mock without change.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class IwdError(Exception):
    """Base class for all backend errors."""


class DeviceNotFoundError(IwdError):
    """No wireless device matches the configured interface name."""

    def __init__(self, name: str):
        super().__init__(f'No iwd device named {name!r}')
        self.name = name


class BackendNotLoadedError(IwdError):
    """An operation needing a loaded backend was called before load()."""


class DaemonCallError(IwdError):
    """A method call or property read on the daemon failed."""

    def __init__(self, message: str, error_name: str = ''):
        super().__init__(message)
        self.error_name = error_name


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NetworkEntry:
    """A visible wireless network.

    ``bssid`` and ``channel`` are never filled in by iwd; they are kept so
    the entry has the same shape as the host's other network backends.
    """
    id: str
    strength: int = 0
    essid: str = ''
    encryption: str = ''
    bssid: str = ''
    channel: int = 0

    @property
    def display_name(self) -> str:
        """Return a user-friendly display name."""
        return self.essid if self.essid else '(Hidden)'


# handler(interface_name, changed_properties, invalidated_properties)
PropertiesChangedHandler = Callable[[str, Dict[str, Any], List[str]], None]


class IwdBusInterface(ABC):
    """Abstract interface for the iwd side of the message bus.

    Implementations convert bus values to plain Python types and raise
    DaemonCallError when a call fails.
    """

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the iwd service is present on the bus."""

    @abstractmethod
    def find_device(self, name: str) -> Optional[str]:
        """Return the object path of the device called *name*, or None."""

    @abstractmethod
    def get_ordered_networks(self, device: str) -> List[Tuple[str, int]]:
        """Return (network path, signal in centi-dBm) pairs, best first."""

    @abstractmethod
    def get_network_properties(self, network: str) -> Dict[str, Any]:
        """Return the Network interface properties of *network*."""

    @abstractmethod
    def get_station_property(self, device: str, name: str) -> Any:
        """Return a Station property, or None when iwd does not set it."""

    @abstractmethod
    def scan(self, device: str) -> None:
        """Ask the station to start a scan."""

    @abstractmethod
    def disconnect(self, device: str) -> None:
        """Disconnect the station from its current network."""

    @abstractmethod
    def connect_network(self, network: str) -> None:
        """Connect to the given network."""

    @abstractmethod
    def subscribe(self, device: str, handler: PropertiesChangedHandler) -> Any:
        """Deliver PropertiesChanged signals of *device* to *handler*.

        Returns an opaque token to pass to unsubscribe().
        """

    @abstractmethod
    def unsubscribe(self, subscription: Any) -> None:
        """Stop the delivery started by subscribe()."""
