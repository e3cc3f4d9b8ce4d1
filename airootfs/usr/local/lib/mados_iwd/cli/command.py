"""CLI entry point for mados-iwd."""

import argparse
import logging
import sys

from .. import config
from ..factory import create_backend
from ..interfaces import IwdError

logger = logging.getLogger(__name__)


class _Waiter:
    """Listener that stops the main loop once the awaited event arrives."""

    def __init__(self):
        self.done = False
        self.loop = None

    def __call__(self):
        self.done = True
        if self.loop is not None:
            self.loop.quit()

    def wait(self, timeout):
        """Run the main loop until the event arrives.

        Returns:
            False if *timeout* expired first.
        """
        if self.done:
            return True
        self.loop = _new_main_loop()
        return self.loop.run(timeout=timeout)


def _new_main_loop():
    from ..mainloop import MainLoop
    return MainLoop()


def _print_networks(backend, out):
    ids = backend.list_network_ids()
    if not ids:
        print("No networks found", file=out)
        return
    current = backend.get_current_network_id()
    print(f"Found {len(ids)} network(s):", file=out)
    for network_id in ids:
        entry = backend.get_network_properties(network_id)
        marker = '>' if network_id == current else ' '
        print(f"{marker} {entry.display_name:<32} {entry.strength:>3}%  "
              f"[{entry.encryption}]  {network_id}", file=out)


def _print_status(backend, out):
    current = backend.get_current_network_id()
    if backend.is_connecting():
        print("Connecting...", file=out)
    if current is None:
        print("Not connected", file=out)
        return
    try:
        name = backend.get_network_properties(current).display_name
    except KeyError:
        name = current
    print(f"Connected to: {name}", file=out)


def _on_connect_change(change, waiter):
    if change.name == config.PROP_STATE and change.value in config.SETTLED_STATES:
        waiter()


def _print_change(change, out):
    print(f"{change.name}: {change.value if change.value is not None else '(unset)'}", file=out)


def build_parser():
    parser = argparse.ArgumentParser(
        prog='mados-iwd',
        description='Inspect and control an iwd wireless station.',
    )
    parser.add_argument('-d', '--device', default=config.DEVICE_NAME,
                        help='wireless interface (default: %(default)s)')
    parser.add_argument('--mode', choices=('production', 'test'), default=config.MODE,
                        help='talk to iwd or to the built-in mock daemon')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='enable debug logging')

    sub = parser.add_subparsers(dest='command')
    sub.add_parser('status', help='show current connection status')
    sub.add_parser('list', help='list cached networks')
    scan = sub.add_parser('scan', help='scan and list networks')
    scan.add_argument('--timeout', type=int, default=config.SCAN_TIMEOUT_SECONDS,
                      help='seconds to wait for the scan (default: %(default)s)')
    connect = sub.add_parser('connect', help='connect to a network')
    connect.add_argument('network', help='network object path')
    connect.add_argument('--timeout', type=int, default=config.CONNECT_TIMEOUT_SECONDS,
                         help='seconds to wait for the station to settle (default: %(default)s)')
    sub.add_parser('disconnect', help='disconnect from current network')
    sub.add_parser('monitor', help='print station changes until interrupted')
    return parser


def main(argv=None, out=None):
    """CLI entry point.

    Returns:
        Process exit status.
    """
    out = out or sys.stdout
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help(out)
        return 0

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.LOG_LEVEL,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    waiter = _Waiter()
    listeners = {}
    if args.command == 'scan':
        listeners['scan_listener'] = waiter
    elif args.command == 'connect':
        listeners['change_listener'] = lambda change: _on_connect_change(change, waiter)
    elif args.command == 'monitor':
        listeners['change_listener'] = lambda change: _print_change(change, out)
    backend = create_backend(mode=args.mode, device_name=args.device, **listeners)

    try:
        if not backend.can_load():
            print("iwd is not running", file=out)
            return 1
        backend.load()

        if args.command == 'status':
            _print_status(backend, out)
        elif args.command == 'list':
            _print_networks(backend, out)
        elif args.command == 'scan':
            print("Scanning for networks...", file=out)
            backend.scan()
            if not waiter.wait(args.timeout):
                print("Scan timed out, showing cached results", file=out)
            _print_networks(backend, out)
        elif args.command == 'connect':
            if backend.get_current_network_id() == args.network:
                waiter()
            backend.connect(args.network)
            if not waiter.wait(args.timeout):
                print("Connection attempt timed out", file=out)
            _print_status(backend, out)
        elif args.command == 'disconnect':
            backend.disconnect()
            print("Disconnected", file=out)
        elif args.command == 'monitor':
            _print_status(backend, out)
            _new_main_loop().run()
    except IwdError as exc:
        logger.debug('Command %s failed', args.command, exc_info=True)
        print(f"Error: {exc}", file=out)
        return 1
    finally:
        backend.unload()
    return 0


if __name__ == "__main__":
    sys.exit(main())
