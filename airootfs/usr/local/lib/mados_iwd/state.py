"""madOS iwd backend - Connection state tracking."""

import logging
from dataclasses import dataclass
from typing import Optional

from .config import PROP_CONNECTED_NETWORK, PROP_STATE, STATE_CONNECTING
from .interfaces import IwdBusInterface

logger = logging.getLogger(__name__)


@dataclass
class ConnectionState:
    """Connection state of the tracked station."""
    current_network_id: Optional[str] = None
    is_connecting: bool = False


class ConnectionStateTracker:
    """Owns the connecting flag and the currently associated network.

    Only the event dispatcher calls the mutators; everything else reads.
    """

    def __init__(self, bus: IwdBusInterface, device: str):
        self._bus = bus
        self._device = device
        self._state = ConnectionState()

    def initialize(self) -> None:
        """Seed the state from the station's current properties.

        iwd omits ConnectedNetwork while not associated; that reads as
        no current network.
        """
        state = self._bus.get_station_property(self._device, PROP_STATE)
        current = self._bus.get_station_property(self._device, PROP_CONNECTED_NETWORK)
        self._state = ConnectionState(
            current_network_id=current or None,
            is_connecting=state == STATE_CONNECTING,
        )
        logger.debug('Initial station state %r, connected network %r', state, current)

    @property
    def current_network_id(self) -> Optional[str]:
        return self._state.current_network_id

    @property
    def is_connecting(self) -> bool:
        return self._state.is_connecting

    def on_state(self, value: str) -> None:
        """Apply a change of the station State property.

        The connecting flag is a latch: set by "connecting", cleared by
        the next State change after that, untouched otherwise.
        """
        if value == STATE_CONNECTING:
            self._state.is_connecting = True
        elif self._state.is_connecting:
            self._state.is_connecting = False

    def set_current_network(self, network_id: Optional[str]) -> None:
        self._state.current_network_id = network_id or None

    def clear_current_network(self) -> None:
        self._state.current_network_id = None

    def reset(self) -> None:
        self._state = ConnectionState()
