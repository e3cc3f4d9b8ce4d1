"""
madOS iwd backend - Configuration constants
"""

import os

# ========== RUNTIME SETTINGS ==========
# Wireless interface whose station is tracked
DEVICE_NAME = os.environ.get('MADOS_IWD_DEVICE', 'wlan0')

# 'production' talks to iwd over the system bus, 'test' uses the mock daemon
MODE = os.environ.get('MADOS_IWD_MODE', 'production')

LOG_LEVEL = os.environ.get('MADOS_IWD_LOG_LEVEL', 'WARNING')
# ======================================

# iwd D-Bus names
IWD_SERVICE = 'net.connman.iwd'
IWD_ROOT_PATH = '/'
DEVICE_INTERFACE = 'net.connman.iwd.Device'
STATION_INTERFACE = 'net.connman.iwd.Station'
NETWORK_INTERFACE = 'net.connman.iwd.Network'

OBJECT_MANAGER_INTERFACE = 'org.freedesktop.DBus.ObjectManager'
PROPERTIES_INTERFACE = 'org.freedesktop.DBus.Properties'

# Station properties
PROP_STATE = 'State'
PROP_SCANNING = 'Scanning'
PROP_CONNECTED_NETWORK = 'ConnectedNetwork'

STATE_CONNECTING = 'connecting'

# Signal strength (centi-dBm lower bounds, exclusive) to percentage
STRENGTH_STEPS = (
    (-6000, 100),
    (-6700, 75),
    (-7400, 50),
    (-8100, 25),
)
STRENGTH_FLOOR = 0

# Seconds the CLI waits for iwd to finish a scan
SCAN_TIMEOUT_SECONDS = 15

# Seconds the CLI waits for a connection attempt to settle
CONNECT_TIMEOUT_SECONDS = 30

# Station states that end a connection attempt
SETTLED_STATES = ('connected', 'disconnected')
