"""madOS iwd backend - Ordered network cache.

The cache holds an immutable NetworkSnapshot.  A refresh queries iwd,
builds a complete new snapshot without touching the live one, then swaps
it in with a single assignment, so readers see either the old list or the
new list and never a mix of both.  If any query fails the live snapshot
is left as it was.
"""

import logging
import threading
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .interfaces import IwdBusInterface, NetworkEntry
from .strength import classify

logger = logging.getLogger(__name__)


class NetworkSnapshot:
    """Networks in iwd priority order plus a lookup table by id."""

    __slots__ = ('_ids', '_entries')

    def __init__(self, entries: Iterable[NetworkEntry] = ()):
        ids: List[str] = []
        table: Dict[str, NetworkEntry] = {}
        for entry in entries:
            # First occurrence wins: it is the higher priority one
            if entry.id in table:
                continue
            ids.append(entry.id)
            table[entry.id] = entry
        self._ids: Tuple[str, ...] = tuple(ids)
        self._entries: Mapping[str, NetworkEntry] = MappingProxyType(table)

    @property
    def ids(self) -> Tuple[str, ...]:
        return self._ids

    @property
    def entries(self) -> Mapping[str, NetworkEntry]:
        return self._entries

    def get(self, network_id: str) -> Optional[NetworkEntry]:
        return self._entries.get(network_id)

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self):
        return (self._entries[network_id] for network_id in self._ids)

    def __repr__(self) -> str:
        return f'NetworkSnapshot({list(self._ids)!r})'


EMPTY_SNAPSHOT = NetworkSnapshot()


class NetworkCache:
    """Live view of the networks seen by one iwd station."""

    def __init__(self, bus: IwdBusInterface, device: str):
        self._bus = bus
        self._device = device
        self._snapshot = EMPTY_SNAPSHOT
        self._lock = threading.Lock()

    @property
    def snapshot(self) -> NetworkSnapshot:
        """The snapshot currently in effect."""
        with self._lock:
            return self._snapshot

    def build_snapshot(self) -> NetworkSnapshot:
        """Query iwd and build a new snapshot without installing it.

        Safe to call from a worker thread: only the bus is touched.

        Raises:
            DaemonCallError: If any of the daemon queries fails.
        """
        entries = []
        for network_id, signal in self._bus.get_ordered_networks(self._device):
            props = self._bus.get_network_properties(network_id)
            entries.append(NetworkEntry(
                id=network_id,
                strength=classify(signal),
                essid=props.get('Name', ''),
                encryption=props.get('Type', ''),
            ))
        return NetworkSnapshot(entries)

    def swap(self, snapshot: NetworkSnapshot) -> None:
        """Install *snapshot* as the live view."""
        with self._lock:
            self._snapshot = snapshot
        logger.info('Network cache refreshed: %d network(s)', len(snapshot))

    def refresh(self) -> NetworkSnapshot:
        """Rebuild the cache from iwd.

        On failure the exception propagates and the previous snapshot
        stays in effect.
        """
        snapshot = self.build_snapshot()
        self.swap(snapshot)
        return snapshot

    def clear(self) -> None:
        """Drop all cached networks."""
        with self._lock:
            self._snapshot = EMPTY_SNAPSHOT

    def lookup(self, network_id: str) -> Optional[NetworkEntry]:
        """Return the cached entry for *network_id*, or None."""
        return self.snapshot.get(network_id)

    def ordered_ids(self) -> List[str]:
        """Return the cached network ids, most preferred first."""
        return list(self.snapshot.ids)

    def __len__(self) -> int:
        return len(self.snapshot)
