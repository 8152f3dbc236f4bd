"""Constants for the AmbiVision integration."""

DOMAIN = "ambivision"

# UDP port used for commands and discovery
UDP_PORT = 45457

# Broadcast address for discovery
BROADCAST_ADDRESS = "255.255.255.255"

# Local port the listening socket binds to (0 = ephemeral)
PORT_LISTEN = 0

# Wire tokens
PING_MESSAGE = b"AmbiVisionPing"
DEVICE_SIGNATURE = "AmbiVision"
PREFIX_COLOR = "AmbiVision1"
PREFIX_MODE = "AmbiVision2"
PREFIX_SUB_MODE = "AmbiVision3"
PREFIX_BRIGHTNESS = "AmbiVision4"

# Timeouts (seconds)
TIMEOUT_DISCOVERY = 3.0
TIMEOUT_COMMAND = 2.0

# Discovery interval (seconds)
DISCOVERY_INTERVAL = 30

# Settle time between consecutive commands of a sequence (seconds)
DEFAULT_SETTLE_TIME = 0.5
MAX_SETTLE_TIME = 5.0

# Address is reported stale after this many seconds without a reply
DEFAULT_STALE_AFTER = 90

# Config keys
CONF_AUTO_DISCOVER = "auto_discover"
CONF_DEVICE_ID = "device_id"
CONF_SETTLE_TIME = "settle_time"
CONF_STALE_AFTER = "stale_after"

DEFAULT_AUTO_DISCOVER = True
DEFAULT_NAME = "AmbiVision PRO"

# Value ranges
MAX_PERCENT = 100
MAX_CHANNEL = 255

# Published attributes
ATTR_DEVICE_ID = "device_id"
ATTR_FIRMWARE_VERSION = "firmware_version"
ATTR_IP_ADDRESS = "ip_address"
ATTR_ADDRESS_STALE = "address_stale"
ATTR_MODE = "mode"
ATTR_SUB_MODE = "sub_mode"
ATTR_SWITCH = "switch"
ATTR_LEVEL = "level"
ATTR_HUE = "hue"
ATTR_SATURATION = "saturation"
ATTR_COLOR = "color"
