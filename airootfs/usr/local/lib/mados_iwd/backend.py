"""madOS iwd backend - Host-facing backend.

IwdBackend exposes the fixed operation set the network manager front-end
calls (can_load, load, unload, list_network_ids, ...).  Reads are plain
lookups against the cached state; the cache and connection state are
kept current by the EventDispatcher reacting to iwd's PropertiesChanged
signals.
"""

import logging
from typing import Callable, List, Optional

from .cache import NetworkCache
from .config import DEVICE_NAME
from .dispatcher import EventDispatcher, PropertyChange
from .interfaces import (
    BackendNotLoadedError,
    DeviceNotFoundError,
    IwdBusInterface,
    NetworkEntry,
)
from .state import ConnectionStateTracker
from .tasks import InlineTaskRunner, TaskRunner

logger = logging.getLogger(__name__)


class IwdBackend:
    """Wireless backend for a single iwd station.

    Args:
        bus: Transport to the iwd daemon.
        device_name: Interface name of the wireless device (e.g. wlan0).
        runner: Runs refreshes triggered by finished scans.  Defaults to
            running them inline.
        scan_listener: Called after new scan results have been cached.
        error_listener: Called with the exception when a background
            refresh fails.
        change_listener: Called with every applied station property change.
    """

    def __init__(self, bus: IwdBusInterface, device_name: str = DEVICE_NAME,
                 runner: Optional[TaskRunner] = None,
                 scan_listener: Optional[Callable[[], None]] = None,
                 error_listener: Optional[Callable[[Exception], None]] = None,
                 change_listener: Optional[Callable[[PropertyChange], None]] = None):
        self._bus = bus
        self._device_name = device_name
        self._runner = runner or InlineTaskRunner()
        self._scan_listener = scan_listener
        self._error_listener = error_listener
        self._change_listener = change_listener

        self._device: Optional[str] = None
        self._cache: Optional[NetworkCache] = None
        self._tracker: Optional[ConnectionStateTracker] = None
        self._dispatcher: Optional[EventDispatcher] = None
        self._subscription = None

    # -- lifecycle ----------------------------------------------------------

    def can_load(self) -> bool:
        """Return True if iwd is running on the bus."""
        return self._bus.is_available()

    @property
    def is_loaded(self) -> bool:
        return self._dispatcher is not None

    @property
    def device_path(self) -> Optional[str]:
        return self._device

    def load(self) -> None:
        """Resolve the device, read the initial state and start listening.

        Raises:
            DeviceNotFoundError: If no device has the configured name.
            DaemonCallError: If one of the initial queries fails.
        """
        if self.is_loaded:
            return

        device = self._bus.find_device(self._device_name)
        if device is None:
            raise DeviceNotFoundError(self._device_name)

        cache = NetworkCache(self._bus, device)
        tracker = ConnectionStateTracker(self._bus, device)
        tracker.initialize()
        dispatcher = EventDispatcher(
            cache, tracker, self._runner,
            scan_listener=self._scan_listener,
            error_listener=self._error_listener,
            change_listener=self._change_listener,
        )
        dispatcher.refresh_now()
        subscription = self._bus.subscribe(device, dispatcher.handle)

        self._device = device
        self._cache = cache
        self._tracker = tracker
        self._dispatcher = dispatcher
        self._subscription = subscription
        logger.info('Loaded iwd backend for %s (%s): %d network(s)',
                    self._device_name, device, len(cache))

    def unload(self) -> None:
        """Stop listening and drop all cached state."""
        if not self.is_loaded:
            return
        if self._subscription is not None:
            self._bus.unsubscribe(self._subscription)
        self._dispatcher.close()
        self._cache.clear()
        self._tracker.reset()

        self._subscription = None
        self._dispatcher = None
        self._cache = None
        self._tracker = None
        self._device = None
        logger.info('Unloaded iwd backend for %s', self._device_name)

    def _require_loaded(self) -> None:
        if not self.is_loaded:
            raise BackendNotLoadedError('iwd backend is not loaded')

    # -- networks -----------------------------------------------------------

    def list_network_ids(self) -> List[str]:
        """Return the visible networks, most preferred first."""
        self._require_loaded()
        return self._cache.ordered_ids()

    def get_network_properties(self, network_id: str) -> NetworkEntry:
        """Return the cached entry for *network_id*.

        Raises:
            KeyError: If the network is not in the cache.
        """
        self._require_loaded()
        entry = self._cache.lookup(network_id)
        if entry is None:
            raise KeyError(network_id)
        return entry

    def scan(self) -> None:
        """Ask iwd to scan; results arrive through the scan listener."""
        self._require_loaded()
        self._bus.scan(self._device)

    def refresh(self) -> List[str]:
        """Rebuild the network list now, without scanning."""
        self._require_loaded()
        return list(self._dispatcher.refresh_now().ids)

    # -- connection ---------------------------------------------------------

    def connect(self, network_id: str) -> None:
        self._require_loaded()
        self._bus.connect_network(network_id)

    def disconnect(self) -> None:
        self._require_loaded()
        self._bus.disconnect(self._device)

    def get_current_network_id(self) -> Optional[str]:
        self._require_loaded()
        return self._tracker.current_network_id

    def is_connecting(self) -> bool:
        self._require_loaded()
        return self._tracker.is_connecting

    def is_wired(self) -> bool:
        return False
