"""Application-wide constants for bweb-log.

Constants that define application behavior.
For user-configurable settings per deployment, see config.py.
"""

__all__ = [
    # Application identity
    "APP_NAME",
    "DEFAULT_LOG_DIR",
    # Logger names
    "DEFAULT_NODE_LOGNAME",
    "DEFAULT_WALLET_LOGNAME",
    # Rotating log store
    "DEFAULT_FILE_SIZE_MB",
    "DEFAULT_MAX_FILE_SIZE",
    "DEFAULT_MAX_FILES",
    "BYTES_PER_MB",
    # Record types
    "REQUEST_BEGIN",
    "REQUEST_FINISH",
    # Redaction
    "REDACTED_MARKER",
    "SENSITIVE_FIELDS",
    # Interceptor
    "METADATA_SCOPE_KEY",
    "CAPTURED_BODY_CONTENT_TYPES",
    "DEFAULT_MAX_CAPTURE_BYTES",
    # Registry
    "DEFAULT_CALLBACK_TIMEOUT_SECONDS",
    # Name events
    "NAME_OPERATIONS",
    "U64_MAX",
    # Management API / CLI
    "MANAGEMENT_PATH",
    "DEFAULT_API_URL",
    "DEFAULT_HTTP_TIMEOUT_SECONDS",
]

from platformdirs import user_log_dir

# ============================================================================
# Application Identity
# ============================================================================

# Application name used for logger names and directory names
APP_NAME: str = "bweb-log"

# Default base directory for request logs
# - macOS: ~/Library/Logs/bweb-log
# - Linux: ~/.local/state/bweb-log/log
DEFAULT_LOG_DIR: str = user_log_dir(APP_NAME)

# Default names of the per-server request loggers (also the log file stems)
DEFAULT_NODE_LOGNAME: str = "node-http"
DEFAULT_WALLET_LOGNAME: str = "wallet-http"

# ============================================================================
# Rotating Log Store
# ============================================================================

BYTES_PER_MB: int = 1 << 20

DEFAULT_FILE_SIZE_MB: int = 100
DEFAULT_MAX_FILE_SIZE: int = DEFAULT_FILE_SIZE_MB * BYTES_PER_MB  # 100 MiB
DEFAULT_MAX_FILES: int = 10

# ============================================================================
# Records
# ============================================================================

REQUEST_BEGIN: str = "begin"
REQUEST_FINISH: str = "finish"

# Fields masked wherever they appear in params, query or body
SENSITIVE_FIELDS: frozenset[str] = frozenset({"token", "passphrase"})
REDACTED_MARKER: str = "*****"

# ============================================================================
# Interceptor
# ============================================================================

# ASGI scope key under which the in-flight RequestMetadata is stored,
# so the host's exception handlers can attach the error to it
METADATA_SCOPE_KEY: str = "bweb_log.metadata"

# Request bodies are buffered (and replayed to the handler) only for these
CAPTURED_BODY_CONTENT_TYPES: tuple[str, ...] = (
    "application/json",
    "application/x-www-form-urlencoded",
)

# Response bytes kept by the response recorder (larger bodies are not captured)
DEFAULT_MAX_CAPTURE_BYTES: int = 1 << 20  # 1 MiB

# ============================================================================
# Registry
# ============================================================================

# Upper bound for a single reporter callback during fan-out
DEFAULT_CALLBACK_TIMEOUT_SECONDS: float = 5.0

# ============================================================================
# Name Events
# ============================================================================

# Wallet endpoints (POST /wallet/:id/<op>) that produce name events
NAME_OPERATIONS: frozenset[str] = frozenset(
    {
        "open",
        "bid",
        "auction",
        "reveal",
        "redeem",
        "update",
        "renewal",
        "transfer",
        "cancel",
        "finalize",
        "revoke",
    }
)

U64_MAX: int = (1 << 64) - 1

# ============================================================================
# Management API / CLI
# ============================================================================

MANAGEMENT_PATH: str = "/bweb-log"

# Default node HTTP endpoint used by the CLI
DEFAULT_API_URL: str = "http://127.0.0.1:12037"
DEFAULT_HTTP_TIMEOUT_SECONDS: float = 10.0
