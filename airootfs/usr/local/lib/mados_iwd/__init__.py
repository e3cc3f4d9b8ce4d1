"""madOS iwd backend.

Keeps a live view of the networks visible to an iwd station (priority
order, signal strength, name, security) and of its connection state,
driven by the PropertiesChanged notifications iwd pushes over D-Bus.

Usage:
    from mados_iwd import create_backend

    backend = create_backend(scan_listener=on_scan_done)
    backend.load()
    for network_id in backend.list_network_ids():
        entry = backend.get_network_properties(network_id)
"""

__version__ = "1.0.0"
__app_id__ = "mados-iwd"

from .interfaces import (
    NetworkEntry,
    IwdBusInterface,
    IwdError,
    DeviceNotFoundError,
    BackendNotLoadedError,
    DaemonCallError,
)
from .strength import classify
from .backend import IwdBackend
from .factory import create_backend

__all__ = [
    '__version__',
    '__app_id__',
    'NetworkEntry',
    'IwdBusInterface',
    'IwdError',
    'DeviceNotFoundError',
    'BackendNotLoadedError',
    'DaemonCallError',
    'classify',
    'IwdBackend',
    'create_backend',
]
