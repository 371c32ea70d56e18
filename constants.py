"""
Application-wide constants.
Centralizes limits, defaults and error codes for better maintainability.
"""

SERVICE_NAME = "contact-intake"
SERVICE_VERSION = "1.0.0"

# Submission field limits
NAME_MIN_LENGTH = 1
NAME_MAX_LENGTH = 120
MESSAGE_MIN_LENGTH = 1
MESSAGE_MAX_LENGTH = 5000

# Spam protection
DEFAULT_HONEYPOT_FIELD = "website"

# Rate limiting
DEFAULT_RATE_LIMIT_POINTS = 5  # requests
DEFAULT_RATE_LIMIT_DURATION = 60  # per seconds
UNKNOWN_CLIENT_KEY = "unknown"

# Request handling
DEFAULT_PORT = 4001
DEFAULT_HEALTHCHECK_PATH = "/health"
DEFAULT_MAX_BODY_BYTES = 64 * 1024
DEFAULT_SINK_TIMEOUT_SECONDS = 10.0

# Error codes returned in {"error": ...}
ERROR_VALIDATION = "validation_error"
ERROR_RATE_LIMITED = "rate_limited"
ERROR_SEND_FAILED = "send_failed"
ERROR_INTERNAL = "internal_error"
ERROR_NOT_FOUND = "not_found"
ERROR_PAYLOAD_TOO_LARGE = "payload_too_large"
