"""
System Constants and Enumerations

This module defines constants and enumerations used across the response cache.

Architectural Decision: Centralized constants for maintainability
- Single source of truth for defaults shared by settings and options
- Type-safe enums for connection state
"""

from enum import Enum

# ============================================================================
# Connection States
# ============================================================================


class ConnectionStatus(str, Enum):
    """
    Lifecycle states of the shared Redis handle.

    DISCONNECTED: No live connection (initial state, after close or fatal error)
    CONNECTING: Connection is being established
    READY: Connected and verified with PING
    RECONNECTING: A command hit a connection error, next success restores READY

    Transitions:
        disconnected -> connecting -> ready
        ready -> reconnecting -> ready
        ready | connecting -> disconnected
    """

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    READY = "ready"
    RECONNECTING = "reconnecting"


# States in which a handle counts as live for create/is_connected checks
LIVE_STATUSES = frozenset({ConnectionStatus.READY, ConnectionStatus.CONNECTING})


class HealthStatus(str, Enum):
    """Outcome of a ping-based health check."""

    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"


# ============================================================================
# Cache Defaults
# ============================================================================

DEFAULT_TTL_SECONDS = 60  # Expiry of cached responses
DEFAULT_KEY_PREFIX = "cache"  # Namespace prepended to every derived key
DEFAULT_TIMEOUT_MS = 5000  # Deadline for the read-through GET
DEFAULT_MAX_PENDING_WRITES = 100  # Cap on detached cache-write tasks

# Only GET responses are served from / written to the cache
CACHEABLE_METHODS = frozenset({"GET"})

# Response content types considered JSON payloads
JSON_CONTENT_TYPE = "application/json"

# Key separator between prefix, method and path
KEY_SEPARATOR = ":"

# ============================================================================
# HTTP Headers
# ============================================================================

HEADER_REQUEST_ID = "X-Request-ID"
