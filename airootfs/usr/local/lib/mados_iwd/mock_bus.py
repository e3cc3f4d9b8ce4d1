"""madOS iwd backend - Mock bus for testing.

Provides an in-memory implementation of IwdBusInterface that simulates
an iwd station without requiring a wireless device, D-Bus or GLib.
Property changes are pushed synchronously to subscribed handlers.
"""

import itertools
import threading
from typing import Any, Dict, List, Optional, Tuple

from .config import (
    PROP_CONNECTED_NETWORK,
    PROP_SCANNING,
    PROP_STATE,
    STATION_INTERFACE,
)
from .interfaces import DaemonCallError, IwdBusInterface


DEMO_NETWORKS = [
    ('/net/connman/iwd/0/3/486f6d65_psk', -5500, 'Home', 'psk'),
    ('/net/connman/iwd/0/3/4f6666696365_open', -7000, 'Office', 'open'),
    ('/net/connman/iwd/0/3/436166c3a9_psk', -7900, 'Café', 'psk'),
]


class MockIwdBus(IwdBusInterface):
    """Mock iwd daemon for unit testing and demo mode.

    Every method call is recorded in ``calls`` as a (method, args) tuple.
    """

    def __init__(self, device_name: str = 'wlan0',
                 device_path: str = '/net/connman/iwd/0/3',
                 auto_complete_scan: bool = True):
        self.device_name = device_name
        self.device_path = device_path
        self.auto_complete_scan = auto_complete_scan
        self.available = True
        self.calls: List[Tuple[str, tuple]] = []
        self.failing_networks = set()
        self.fail_ordered_networks = False

        self._networks: List[Tuple[str, int]] = []
        self._network_props: Dict[str, Dict[str, Any]] = {}
        self._station: Dict[str, Any] = {
            PROP_STATE: 'disconnected',
            PROP_SCANNING: False,
        }
        self._handlers: Dict[int, Tuple[str, Any]] = {}
        self._tokens = itertools.count(1)
        self._lock = threading.Lock()

    @classmethod
    def with_demo_networks(cls, device_name: str = 'wlan0') -> 'MockIwdBus':
        """Create a mock daemon pre-populated with a few networks."""
        bus = cls(device_name=device_name)
        bus.set_networks(DEMO_NETWORKS)
        return bus

    # -- test helpers -------------------------------------------------------

    def set_networks(self, networks) -> None:
        """Replace the visible networks.

        Args:
            networks: Iterable of (path, signal, name, type) in priority
                order.
        """
        with self._lock:
            self._networks = [(path, signal) for path, signal, _, _ in networks]
            self._network_props = {
                path: {'Name': name, 'Type': kind}
                for path, _, name, kind in networks
            }

    def set_station_property(self, name: str, value: Any) -> None:
        """Set a station property without emitting a signal."""
        with self._lock:
            if value is None:
                self._station.pop(name, None)
            else:
                self._station[name] = value

    def emit(self, changed: Dict[str, Any], invalidated: Optional[List[str]] = None,
             interface: str = STATION_INTERFACE) -> None:
        """Update station properties and notify subscribers."""
        invalidated = list(invalidated or [])
        if interface == STATION_INTERFACE:
            with self._lock:
                self._station.update(changed)
                for name in invalidated:
                    self._station.pop(name, None)
        for path, handler in list(self._handlers.values()):
            if path == self.device_path:
                handler(interface, dict(changed), invalidated)

    def complete_scan(self) -> None:
        """Finish a running scan the way iwd does."""
        self.emit({PROP_SCANNING: False})

    def call_count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)

    # -- IwdBusInterface ----------------------------------------------------

    def is_available(self) -> bool:
        self.calls.append(('is_available', ()))
        return self.available

    def find_device(self, name: str) -> Optional[str]:
        self.calls.append(('find_device', (name,)))
        return self.device_path if name == self.device_name else None

    def get_ordered_networks(self, device: str) -> List[Tuple[str, int]]:
        self.calls.append(('get_ordered_networks', (device,)))
        self._check_device(device)
        if self.fail_ordered_networks:
            raise DaemonCallError('GetOrderedNetworks failed',
                                  'net.connman.iwd.Failed')
        with self._lock:
            return list(self._networks)

    def get_network_properties(self, network: str) -> Dict[str, Any]:
        self.calls.append(('get_network_properties', (network,)))
        if network in self.failing_networks:
            raise DaemonCallError(f'Cannot read properties of {network}',
                                  'org.freedesktop.DBus.Error.UnknownObject')
        with self._lock:
            try:
                return dict(self._network_props[network])
            except KeyError:
                raise DaemonCallError(f'Unknown network {network}',
                                      'org.freedesktop.DBus.Error.UnknownObject')

    def get_station_property(self, device: str, name: str) -> Any:
        self.calls.append(('get_station_property', (device, name)))
        self._check_device(device)
        with self._lock:
            return self._station.get(name)

    def scan(self, device: str) -> None:
        self.calls.append(('scan', (device,)))
        self._check_device(device)
        if self._station.get(PROP_SCANNING):
            raise DaemonCallError('Operation already in progress',
                                  'net.connman.iwd.InProgress')
        self.emit({PROP_SCANNING: True})
        if self.auto_complete_scan:
            self.complete_scan()

    def disconnect(self, device: str) -> None:
        self.calls.append(('disconnect', (device,)))
        self._check_device(device)
        if PROP_CONNECTED_NETWORK not in self._station:
            raise DaemonCallError('Not connected', 'net.connman.iwd.NotConnected')
        self.emit({PROP_STATE: 'disconnecting'})
        self.emit({PROP_STATE: 'disconnected'}, [PROP_CONNECTED_NETWORK])

    def connect_network(self, network: str) -> None:
        self.calls.append(('connect_network', (network,)))
        if network not in self._network_props:
            raise DaemonCallError(f'Unknown network {network}',
                                  'org.freedesktop.DBus.Error.UnknownObject')
        self.emit({PROP_STATE: 'connecting', PROP_CONNECTED_NETWORK: network})
        self.emit({PROP_STATE: 'connected'})

    def subscribe(self, device: str, handler) -> Any:
        self.calls.append(('subscribe', (device,)))
        token = next(self._tokens)
        self._handlers[token] = (device, handler)
        return token

    def unsubscribe(self, subscription: Any) -> None:
        self.calls.append(('unsubscribe', (subscription,)))
        self._handlers.pop(subscription, None)

    def _check_device(self, device: str) -> None:
        if device != self.device_path:
            raise DaemonCallError(f'Unknown device {device}',
                                  'org.freedesktop.DBus.Error.UnknownObject')
