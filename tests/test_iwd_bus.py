#!/usr/bin/env python3
"""
Tests for the iwd D-Bus transport.

Checks value conversion and error mapping with the bus connection
mocked out.  Skipped when dbus-python is not installed.
"""

import sys
import os
import unittest
from unittest.mock import MagicMock, patch

sys.path.insert(
    0, os.path.join(os.path.dirname(__file__), "..", "airootfs", "usr", "local", "lib")
)

try:
    import dbus
    import dbus.exceptions
    from mados_iwd.bus import IwdDBus, to_python
    HAVE_DBUS = True
except ImportError:
    HAVE_DBUS = False

from mados_iwd.interfaces import DaemonCallError


def _dbus_error(name, message='failed'):
    return dbus.exceptions.DBusException(message, name=name)


@unittest.skipUnless(HAVE_DBUS, "dbus-python not installed")
class TestToPython(unittest.TestCase):
    """Verify dbus-python values become plain Python values."""

    def test_boolean(self):
        value = to_python(dbus.Boolean(False))
        self.assertIs(value, False)

    def test_strings(self):
        self.assertEqual(to_python(dbus.String('connected')), 'connected')
        path = to_python(dbus.ObjectPath('/net/connman/iwd/0/3'))
        self.assertEqual(path, '/net/connman/iwd/0/3')
        self.assertIs(type(path), str)

    def test_properties_dict(self):
        value = to_python(dbus.Dictionary({
            dbus.String('Name'): dbus.String('Home'),
            dbus.String('Connected'): dbus.Boolean(True),
        }, signature='sv'))
        self.assertEqual(value, {'Name': 'Home', 'Connected': True})
        self.assertIs(type(value['Connected']), bool)

    def test_ordered_networks(self):
        value = to_python(dbus.Array([
            dbus.Struct((dbus.ObjectPath('/net/0'), dbus.Int16(-5500))),
        ], signature='(on)'))
        self.assertEqual(value, [('/net/0', -5500)])
        self.assertIs(type(value[0][1]), int)


@unittest.skipUnless(HAVE_DBUS, "dbus-python not installed")
class TestIwdDBus(unittest.TestCase):
    """Verify IwdDBus calls with a mocked connection."""

    def setUp(self):
        self.connection = MagicMock()
        self.bus = IwdDBus(self.connection)
        self.iface = MagicMock()
        patcher = patch.object(IwdDBus, '_interface', return_value=self.iface)
        self.interface = patcher.start()
        self.addCleanup(patcher.stop)

    def test_is_available(self):
        self.connection.name_has_owner.return_value = True
        self.assertTrue(self.bus.is_available())
        self.connection.name_has_owner.assert_called_once_with('net.connman.iwd')

    def test_is_available_bus_error(self):
        self.connection.name_has_owner.side_effect = _dbus_error(
            'org.freedesktop.DBus.Error.NoServer')
        self.assertFalse(self.bus.is_available())

    def test_find_device(self):
        self.iface.GetManagedObjects.return_value = {
            '/net/connman/iwd/0': {'net.connman.iwd.Adapter': {}},
            '/net/connman/iwd/0/3': {
                'net.connman.iwd.Device': {'Name': 'wlan0'},
                'net.connman.iwd.Station': {},
            },
            '/net/connman/iwd/0/4': {
                'net.connman.iwd.Device': {'Name': 'wlan1'},
                'net.connman.iwd.Station': {},
            },
        }
        self.assertEqual(self.bus.find_device('wlan1'), '/net/connman/iwd/0/4')
        self.assertIsNone(self.bus.find_device('wlan7'))

    def test_get_ordered_networks(self):
        self.iface.GetOrderedNetworks.return_value = [
            (dbus.ObjectPath('/net/0'), dbus.Int16(-5500)),
            (dbus.ObjectPath('/net/1'), dbus.Int16(-7000)),
        ]
        self.assertEqual(self.bus.get_ordered_networks('/dev'),
                         [('/net/0', -5500), ('/net/1', -7000)])
        self.interface.assert_called_with('/dev', 'net.connman.iwd.Station')

    def test_get_ordered_networks_error(self):
        self.iface.GetOrderedNetworks.side_effect = _dbus_error('net.connman.iwd.Failed')
        with self.assertRaises(DaemonCallError) as ctx:
            self.bus.get_ordered_networks('/dev')
        self.assertEqual(ctx.exception.error_name, 'net.connman.iwd.Failed')

    def test_get_network_properties(self):
        self.iface.GetAll.return_value = {
            dbus.String('Name'): dbus.String('Home'),
            dbus.String('Type'): dbus.String('psk'),
        }
        self.assertEqual(self.bus.get_network_properties('/net/0'),
                         {'Name': 'Home', 'Type': 'psk'})
        self.iface.GetAll.assert_called_once_with('net.connman.iwd.Network')

    def test_station_property(self):
        self.iface.Get.return_value = dbus.String('connected')
        self.assertEqual(self.bus.get_station_property('/dev', 'State'), 'connected')

    def test_station_property_unset(self):
        self.iface.Get.side_effect = _dbus_error('org.freedesktop.DBus.Error.InvalidArgs')
        self.assertIsNone(self.bus.get_station_property('/dev', 'ConnectedNetwork'))

    def test_station_property_error(self):
        self.iface.Get.side_effect = _dbus_error('org.freedesktop.DBus.Error.AccessDenied')
        with self.assertRaises(DaemonCallError):
            self.bus.get_station_property('/dev', 'State')

    def test_actions(self):
        self.bus.scan('/dev')
        self.bus.disconnect('/dev')
        self.bus.connect_network('/net/0')
        self.iface.Scan.assert_called_once_with()
        self.iface.Disconnect.assert_called_once_with()
        self.iface.Connect.assert_called_once_with()

    def test_scan_busy(self):
        self.iface.Scan.side_effect = _dbus_error('net.connman.iwd.Busy', 'Busy')
        with self.assertRaises(DaemonCallError) as ctx:
            self.bus.scan('/dev')
        self.assertIn('Busy', str(ctx.exception))

    def test_subscribe_converts_payload(self):
        handler = MagicMock()
        match = self.bus.subscribe('/dev', handler)

        kwargs = self.connection.add_signal_receiver.call_args[1]
        self.assertEqual(kwargs['signal_name'], 'PropertiesChanged')
        self.assertEqual(kwargs['path'], '/dev')
        callback = self.connection.add_signal_receiver.call_args[0][0]
        callback(dbus.String('net.connman.iwd.Station'),
                 dbus.Dictionary({dbus.String('Scanning'): dbus.Boolean(False)},
                                 signature='sv'),
                 dbus.Array([dbus.String('ConnectedNetwork')], signature='s'))
        handler.assert_called_once_with(
            'net.connman.iwd.Station', {'Scanning': False}, ['ConnectedNetwork'])

        self.bus.unsubscribe(match)
        match.remove.assert_called_once_with()


if __name__ == "__main__":
    unittest.main()
