"""madOS iwd backend - D-Bus transport.

Talks to iwd on the system bus with dbus-python.  Signals are delivered
on the GLib main loop (dbus.mainloop.glib), so a GLib.MainLoop must be
running for PropertiesChanged notifications to arrive.

All values leaving this module are plain Python types; all failures are
raised as DaemonCallError.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Tuple

import dbus
import dbus.exceptions
from dbus.mainloop.glib import DBusGMainLoop

from .config import (
    DEVICE_INTERFACE,
    IWD_ROOT_PATH,
    IWD_SERVICE,
    NETWORK_INTERFACE,
    OBJECT_MANAGER_INTERFACE,
    PROPERTIES_INTERFACE,
    STATION_INTERFACE,
)
from .interfaces import DaemonCallError, IwdBusInterface

logger = logging.getLogger(__name__)

# Errors meaning "this property currently has no value"
PROPERTY_UNSET_ERRORS = (
    'org.freedesktop.DBus.Error.InvalidArgs',
    'org.freedesktop.DBus.Error.UnknownProperty',
    'net.connman.iwd.NotFound',
)


def to_python(value: Any) -> Any:
    """Recursively convert dbus-python values to plain Python types."""
    if isinstance(value, dbus.Boolean):
        return bool(value)
    if isinstance(value, (dbus.ObjectPath, dbus.Signature, str)):
        return str(value)
    if isinstance(value, dbus.Double):
        return float(value)
    if isinstance(value, int):
        return int(value)
    if isinstance(value, (dbus.Dictionary, dict)):
        return {to_python(k): to_python(v) for k, v in value.items()}
    if isinstance(value, (dbus.Struct, tuple)):
        return tuple(to_python(v) for v in value)
    if isinstance(value, (dbus.Array, list)):
        return [to_python(v) for v in value]
    return value


@contextmanager
def _daemon_call(description: str):
    """Convert DBusException into DaemonCallError."""
    try:
        yield
    except dbus.exceptions.DBusException as exc:
        name = exc.get_dbus_name() or ''
        message = exc.get_dbus_message() or str(exc)
        raise DaemonCallError(f'{description}: {message}', name) from exc


class IwdDBus(IwdBusInterface):
    """IwdBusInterface over the system D-Bus.

    Args:
        connection: An existing dbus.Bus; the system bus is opened lazily
            (with the GLib main loop as default) when omitted.
    """

    def __init__(self, connection: Optional[dbus.Bus] = None):
        self._connection = connection

    @property
    def connection(self) -> dbus.Bus:
        if self._connection is None:
            DBusGMainLoop(set_as_default=True)
            self._connection = dbus.SystemBus()
        return self._connection

    def _interface(self, path: str, interface: str) -> dbus.Interface:
        return dbus.Interface(self.connection.get_object(IWD_SERVICE, path), interface)

    # -- queries ------------------------------------------------------------

    def is_available(self) -> bool:
        try:
            return bool(self.connection.name_has_owner(IWD_SERVICE))
        except dbus.exceptions.DBusException as exc:
            logger.warning('Cannot reach the system bus: %s', exc)
            return False

    def find_device(self, name: str) -> Optional[str]:
        with _daemon_call('GetManagedObjects'):
            manager = self._interface(IWD_ROOT_PATH, OBJECT_MANAGER_INTERFACE)
            objects = manager.GetManagedObjects()

        for path, interfaces in objects.items():
            device = interfaces.get(DEVICE_INTERFACE)
            if device is None or str(device.get('Name', '')) != name:
                continue
            if STATION_INTERFACE not in interfaces:
                logger.warning('Device %s (%s) is not in station mode', name, path)
            return str(path)
        return None

    def get_ordered_networks(self, device: str) -> List[Tuple[str, int]]:
        with _daemon_call('GetOrderedNetworks'):
            station = self._interface(device, STATION_INTERFACE)
            networks = station.GetOrderedNetworks()
        return [(str(path), int(signal)) for path, signal in networks]

    def get_network_properties(self, network: str) -> Dict[str, Any]:
        with _daemon_call(f'Network properties of {network}'):
            props = self._interface(network, PROPERTIES_INTERFACE)
            values = props.GetAll(NETWORK_INTERFACE)
        return to_python(values)

    def get_station_property(self, device: str, name: str) -> Any:
        try:
            props = self._interface(device, PROPERTIES_INTERFACE)
            return to_python(props.Get(STATION_INTERFACE, name))
        except dbus.exceptions.DBusException as exc:
            if exc.get_dbus_name() in PROPERTY_UNSET_ERRORS:
                return None
            raise DaemonCallError(
                f'Station property {name}: {exc.get_dbus_message() or exc}',
                exc.get_dbus_name() or '',
            ) from exc

    # -- actions ------------------------------------------------------------

    def scan(self, device: str) -> None:
        with _daemon_call('Scan'):
            self._interface(device, STATION_INTERFACE).Scan()

    def disconnect(self, device: str) -> None:
        with _daemon_call('Disconnect'):
            self._interface(device, STATION_INTERFACE).Disconnect()

    def connect_network(self, network: str) -> None:
        with _daemon_call(f'Connect {network}'):
            self._interface(network, NETWORK_INTERFACE).Connect()

    # -- signals ------------------------------------------------------------

    def subscribe(self, device: str, handler) -> Any:
        def _on_properties_changed(interface, changed, invalidated):
            handler(str(interface), to_python(changed), to_python(invalidated))

        return self.connection.add_signal_receiver(
            _on_properties_changed,
            signal_name='PropertiesChanged',
            dbus_interface=PROPERTIES_INTERFACE,
            bus_name=IWD_SERVICE,
            path=device,
        )

    def unsubscribe(self, subscription: Any) -> None:
        subscription.remove()
