"""madOS iwd backend - PropertiesChanged dispatch.

Every PropertiesChanged signal from the station goes through
EventDispatcher.handle().  The payload is turned into a list of tagged
PropertyChange records which are applied one by one, in payload order,
to the network cache and the connection state tracker.

Notifications are processed one at a time.  A notification that arrives
while another is being handled (e.g. a listener that triggers a nested
signal) is queued and handled right after the current one.

Refreshes triggered by a finished scan run through a TaskRunner.  Each
request gets a ticket; a result is only installed if the dispatcher is
still open and nothing newer has been installed already.  Every refresh
that succeeds while the dispatcher is open is reported to the scan
listener once, installed or not.

Errors raised by host listeners are logged and do not stop dispatch.
"""

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Any, Callable, Dict, Iterable, List, Optional

from .cache import NetworkCache, NetworkSnapshot
from .config import (
    PROP_CONNECTED_NETWORK,
    PROP_SCANNING,
    PROP_STATE,
    STATION_INTERFACE,
)
from .state import ConnectionStateTracker
from .tasks import TaskRunner

logger = logging.getLogger(__name__)


class PropertyChangeKind(Enum):
    """Station property changes the backend reacts to."""
    SCANNING = 'scanning'
    STATE = 'state'
    CONNECTED_NETWORK = 'connected-network'
    CONNECTED_NETWORK_INVALIDATED = 'connected-network-invalidated'
    UNKNOWN = 'unknown'


_CHANGED_KINDS = {
    PROP_SCANNING: PropertyChangeKind.SCANNING,
    PROP_STATE: PropertyChangeKind.STATE,
    PROP_CONNECTED_NETWORK: PropertyChangeKind.CONNECTED_NETWORK,
}

_INVALIDATED_KINDS = {
    PROP_CONNECTED_NETWORK: PropertyChangeKind.CONNECTED_NETWORK_INVALIDATED,
}


@dataclass(frozen=True)
class PropertyChange:
    """One entry of a PropertiesChanged payload."""
    kind: PropertyChangeKind
    name: str
    value: Any = None


def parse_changes(changed: Dict[str, Any],
                  invalidated: Iterable[str] = ()) -> List[PropertyChange]:
    """Turn a PropertiesChanged payload into tagged changes.

    Changed properties come first, in payload order, followed by the
    invalidated ones.
    """
    changes = [
        PropertyChange(_CHANGED_KINDS.get(name, PropertyChangeKind.UNKNOWN), name, value)
        for name, value in changed.items()
    ]
    changes.extend(
        PropertyChange(_INVALIDATED_KINDS.get(name, PropertyChangeKind.UNKNOWN), name)
        for name in invalidated
    )
    return changes


class EventDispatcher:
    """Applies station notifications to the cache and connection state.

    Args:
        cache: The network cache to refresh when a scan finishes.
        tracker: The connection state tracker to update.
        runner: Runs the blocking part of a refresh.
        scan_listener: Called with no arguments once the refresh for a
            finished scan has succeeded.
        error_listener: Called with the exception when a refresh fails.
        change_listener: Called with each applied PropertyChange.
    """

    def __init__(self, cache: NetworkCache, tracker: ConnectionStateTracker,
                 runner: TaskRunner,
                 scan_listener: Optional[Callable[[], None]] = None,
                 error_listener: Optional[Callable[[Exception], None]] = None,
                 change_listener: Optional[Callable[[PropertyChange], None]] = None):
        self._cache = cache
        self._tracker = tracker
        self._runner = runner
        self._scan_listener = scan_listener
        self._error_listener = error_listener
        self._change_listener = change_listener

        self._pending = deque()
        self._dispatching = False
        self._closed = False
        self._last_ticket = 0
        self._applied_ticket = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Stop handling notifications and drop late refresh results."""
        self._closed = True
        self._pending.clear()

    # -- notification entry point -------------------------------------------

    def handle(self, interface: str, changed: Dict[str, Any],
               invalidated: Iterable[str] = ()) -> None:
        """Handle one PropertiesChanged notification."""
        if self._closed:
            return
        if interface != STATION_INTERFACE:
            logger.debug('Ignoring PropertiesChanged for %s', interface)
            return

        self._pending.append(parse_changes(changed, invalidated))
        if self._dispatching:
            return

        self._dispatching = True
        try:
            while self._pending and not self._closed:
                for change in self._pending.popleft():
                    self._apply(change)
        finally:
            self._dispatching = False

    def _apply(self, change: PropertyChange) -> None:
        kind = change.kind
        if kind is PropertyChangeKind.SCANNING:
            if change.value:
                logger.debug('Scan started')
                return
            self.request_refresh()
        elif kind is PropertyChangeKind.STATE:
            self._tracker.on_state(change.value)
            logger.debug('Station state %r, connecting=%s',
                         change.value, self._tracker.is_connecting)
        elif kind is PropertyChangeKind.CONNECTED_NETWORK:
            self._tracker.set_current_network(change.value)
        elif kind is PropertyChangeKind.CONNECTED_NETWORK_INVALIDATED:
            self._tracker.clear_current_network()
        else:
            return

        self._notify(self._change_listener, change)

    # -- refresh ------------------------------------------------------------

    def request_refresh(self) -> None:
        """Rebuild the network cache in the background."""
        self._last_ticket += 1
        ticket = self._last_ticket
        logger.debug('Refresh #%d requested', ticket)
        self._runner.run(
            self._cache.build_snapshot,
            partial(self._on_refresh_done, ticket),
            partial(self._on_refresh_failed, ticket),
        )

    def refresh_now(self) -> NetworkSnapshot:
        """Rebuild the network cache synchronously.

        Takes a ticket like a background refresh, so a slower background
        result started earlier cannot overwrite it afterwards.

        Raises:
            DaemonCallError: If a daemon query fails; the cache is kept.
        """
        self._last_ticket += 1
        ticket = self._last_ticket
        snapshot = self._cache.build_snapshot()
        if not self._closed:
            self._applied_ticket = ticket
            self._cache.swap(snapshot)
        return snapshot

    def _on_refresh_done(self, ticket: int, snapshot: NetworkSnapshot) -> None:
        if self._closed:
            logger.debug('Dropping refresh #%d: backend unloaded', ticket)
            return
        if ticket <= self._applied_ticket:
            # The cache already holds newer networks; the scan still finished
            logger.debug('Discarding refresh #%d: #%d already applied',
                         ticket, self._applied_ticket)
        else:
            self._applied_ticket = ticket
            self._cache.swap(snapshot)
        self._notify(self._scan_listener)

    def _on_refresh_failed(self, ticket: int, exc: Exception) -> None:
        if self._closed:
            return
        logger.warning('Refresh #%d failed, keeping previous networks: %s', ticket, exc)
        self._notify(self._error_listener, exc)

    def _notify(self, listener, *args) -> None:
        """Call a host listener; its errors are logged, never raised."""
        if listener is None:
            return
        try:
            listener(*args)
        except Exception:
            logger.exception('Listener %r failed', listener)
