# =============================================================================
# AIS Bridge -- Protocol Constants
# =============================================================================
#
# Engine.IO v4 packet literals as spoken by the Comar AIS unit.
# =============================================================================

ENGINE_IO_VERSION = 4
SOCKET_PATH = "/socket/"

# -- Upstream defaults ---------------------------------------------------------

DEFAULT_UPSTREAM_HOST = "192.168.1.168"
USER_AGENT = "AISBridge/1.0"
REFERER_PATH = "/admin/dashboard"

# -- Local fan-out -------------------------------------------------------------

DEFAULT_LOCAL_HOST = "0.0.0.0"
DEFAULT_LOCAL_PORT = 8080

# -- Timing (seconds) ----------------------------------------------------------

RECONNECT_DELAY = 5.0

# -- Wire literals -------------------------------------------------------------

PACKET_OPEN = "0"
PACKET_CONNECT = "40"
PACKET_EVENT = "42"
PACKET_PING = "2"
PACKET_PONG = "3"
PACKET_NOOP = "6"
PACKET_UPGRADE = "5"
PROBE_REQUEST = "2probe"
PROBE_ACK = "3probe"

# -- Events --------------------------------------------------------------------

FORWARDED_EVENTS = frozenset(
    {
        "vesselPositions-update",
        "vesselPositions-init",
    }
)

# High-frequency events not logged per message
QUIET_EVENTS = frozenset(
    {
        "realtimeStats-counters",
        "realtimeStats-vesselTypePie",
        "vesselPositions-update",
    }
)
