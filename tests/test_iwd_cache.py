#!/usr/bin/env python3
"""
Tests for the iwd network cache.

Runs the cache against the in-memory MockIwdBus, so no wireless device,
D-Bus or GLib is needed.
"""

import sys
import os
import unittest

sys.path.insert(
    0, os.path.join(os.path.dirname(__file__), "..", "airootfs", "usr", "local", "lib")
)

from mados_iwd.cache import NetworkCache, NetworkSnapshot
from mados_iwd.interfaces import DaemonCallError, NetworkEntry
from mados_iwd.mock_bus import MockIwdBus


def _make_cache(networks):
    bus = MockIwdBus()
    bus.set_networks(networks)
    return bus, NetworkCache(bus, bus.device_path)


# ═══════════════════════════════════════════════════════════════════════════
# NetworkSnapshot
# ═══════════════════════════════════════════════════════════════════════════
class TestNetworkSnapshot(unittest.TestCase):
    """Verify snapshot ordering and the id/mapping invariant."""

    def test_empty(self):
        snap = NetworkSnapshot()
        self.assertEqual(len(snap), 0)
        self.assertEqual(snap.ids, ())
        self.assertIsNone(snap.get('/net/0'))

    def test_keeps_order(self):
        snap = NetworkSnapshot([NetworkEntry('/net/b'), NetworkEntry('/net/a')])
        self.assertEqual(snap.ids, ('/net/b', '/net/a'))
        self.assertEqual([e.id for e in snap], ['/net/b', '/net/a'])

    def test_duplicate_keeps_first(self):
        snap = NetworkSnapshot([
            NetworkEntry('/net/0', strength=100),
            NetworkEntry('/net/1'),
            NetworkEntry('/net/0', strength=25),
        ])
        self.assertEqual(snap.ids, ('/net/0', '/net/1'))
        self.assertEqual(snap.get('/net/0').strength, 100)
        self.assertEqual(set(snap.ids), set(snap.entries))

    def test_entries_read_only(self):
        snap = NetworkSnapshot([NetworkEntry('/net/0')])
        with self.assertRaises(TypeError):
            snap.entries['/net/1'] = NetworkEntry('/net/1')


# ═══════════════════════════════════════════════════════════════════════════
# NetworkCache.refresh
# ═══════════════════════════════════════════════════════════════════════════
class TestNetworkCacheRefresh(unittest.TestCase):
    """Verify refresh builds entries from iwd in priority order."""

    def test_starts_empty(self):
        _, cache = _make_cache([])
        self.assertEqual(cache.ordered_ids(), [])
        self.assertEqual(len(cache), 0)

    def test_home_and_office(self):
        _, cache = _make_cache([
            ('/net/0', -5500, 'Home', 'psk'),
            ('/net/1', -7000, 'Office', 'open'),
        ])
        cache.refresh()

        self.assertEqual(cache.ordered_ids(), ['/net/0', '/net/1'])
        home = cache.lookup('/net/0')
        self.assertEqual(home.strength, 100)
        self.assertEqual(home.essid, 'Home')
        self.assertEqual(home.encryption, 'psk')
        office = cache.lookup('/net/1')
        self.assertEqual(office.strength, 50)
        self.assertEqual(office.essid, 'Office')
        self.assertEqual(office.encryption, 'open')

    def test_placeholder_fields(self):
        _, cache = _make_cache([('/net/0', -5500, 'Home', 'psk')])
        cache.refresh()
        entry = cache.lookup('/net/0')
        self.assertEqual(entry.bssid, '')
        self.assertEqual(entry.channel, 0)

    def test_missing_name_is_empty(self):
        bus, cache = _make_cache([('/net/0', -5500, 'Home', 'psk')])
        bus._network_props['/net/0'] = {'Type': 'open'}
        cache.refresh()
        self.assertEqual(cache.lookup('/net/0').essid, '')
        self.assertEqual(cache.lookup('/net/0').display_name, '(Hidden)')

    def test_refresh_replaces_wholesale(self):
        bus, cache = _make_cache([
            ('/net/a', -5000, 'A', 'psk'),
            ('/net/b', -6000, 'B', 'psk'),
        ])
        cache.refresh()
        bus.set_networks([
            ('/net/b', -6000, 'B', 'psk'),
            ('/net/c', -7000, 'C', 'open'),
        ])
        cache.refresh()

        self.assertIsNone(cache.lookup('/net/a'))
        self.assertIsNotNone(cache.lookup('/net/c'))
        self.assertEqual(cache.ordered_ids(), ['/net/b', '/net/c'])

    def test_ids_match_entries(self):
        bus, cache = _make_cache([
            ('/net/0', -5000, 'A', 'psk'),
            ('/net/1', -6000, 'B', 'psk'),
        ])
        bus._networks.append(('/net/0', -9000))
        snap = cache.refresh()
        self.assertEqual(len(cache.ordered_ids()), len(set(cache.ordered_ids())))
        self.assertEqual(set(cache.ordered_ids()), set(snap.entries))

    def test_order_follows_daemon_not_strength(self):
        _, cache = _make_cache([
            ('/net/weak', -8000, 'Weak', 'psk'),
            ('/net/strong', -4000, 'Strong', 'psk'),
        ])
        cache.refresh()
        self.assertEqual(cache.ordered_ids(), ['/net/weak', '/net/strong'])


class TestNetworkCacheFailure(unittest.TestCase):
    """A failed refresh must leave the previous snapshot in place."""

    def setUp(self):
        self.bus, self.cache = _make_cache([
            ('/net/0', -5500, 'Home', 'psk'),
            ('/net/1', -7000, 'Office', 'open'),
        ])
        self.cache.refresh()
        self.before = self.cache.snapshot

    def test_network_property_failure(self):
        self.bus.set_networks([
            ('/net/2', -5500, 'Cafe', 'open'),
            ('/net/3', -6500, 'Library', 'psk'),
        ])
        self.bus.failing_networks.add('/net/3')

        with self.assertRaises(DaemonCallError):
            self.cache.refresh()

        self.assertIs(self.cache.snapshot, self.before)
        self.assertEqual(self.cache.ordered_ids(), ['/net/0', '/net/1'])
        self.assertIsNone(self.cache.lookup('/net/2'))

    def test_ordered_networks_failure(self):
        self.bus.fail_ordered_networks = True
        with self.assertRaises(DaemonCallError):
            self.cache.refresh()
        self.assertEqual(self.cache.ordered_ids(), ['/net/0', '/net/1'])

    def test_build_snapshot_does_not_install(self):
        self.bus.set_networks([('/net/9', -5000, 'Other', 'psk')])
        snap = self.cache.build_snapshot()
        self.assertEqual(snap.ids, ('/net/9',))
        self.assertEqual(self.cache.ordered_ids(), ['/net/0', '/net/1'])

    def test_clear(self):
        self.cache.clear()
        self.assertEqual(self.cache.ordered_ids(), [])
        self.assertIsNone(self.cache.lookup('/net/0'))


if __name__ == "__main__":
    unittest.main()
