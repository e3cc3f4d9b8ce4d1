"""madOS iwd backend - Backend factory.

Factory pattern to create backend instances.
Enables dependency injection for testing.
"""

from . import config
from .backend import IwdBackend


def create_backend(mode=None, device_name=None, **listeners):
    """Create a backend for the configured mode.

    Environment:
        MADOS_IWD_MODE: 'production' (default) or 'test'
        MADOS_IWD_DEVICE: wireless interface name (default 'wlan0')

    Args:
        mode: Overrides MADOS_IWD_MODE.
        device_name: Overrides MADOS_IWD_DEVICE.
        **listeners: scan_listener, error_listener and change_listener,
            passed on to IwdBackend.

    Returns:
        An unloaded IwdBackend.
    """
    mode = mode or config.MODE
    device_name = device_name or config.DEVICE_NAME

    if mode == 'test':
        from .mock_bus import MockIwdBus

        return IwdBackend(MockIwdBus.with_demo_networks(device_name),
                          device_name, **listeners)

    # Production mode: iwd over D-Bus, refreshes on a worker thread
    from .bus import IwdDBus
    from .mainloop import GLibTaskRunner

    return IwdBackend(IwdDBus(), device_name, runner=GLibTaskRunner(), **listeners)
