"""Application-wide constants."""

# License status values
class LicenseStatus:
    """License status constants."""
    ACTIVE = "active"
    SUSPENDED = "suspended"
    EXPIRED = "expired"
    TRIAL = "trial"


# License tiers, lowest capability first
class LicenseTier:
    """License tier constants."""
    MACH2 = "mach2"
    MACH3 = "mach3"


class ErrorReason:
    """Machine-readable reasons returned as {"error": reason}."""
    BAD_REQUEST = "bad_request"
    INVALID_API_KEY = "invalid_api_key"
    API_KEY_REVOKED = "api_key_revoked"
    GAME_NOT_FOUND = "game_not_found"
    UNIVERSE_MISMATCH = "universe_mismatch"
    NO_LICENSE = "no_license"
    LICENSE_SUSPENDED = "license_suspended"
    LICENSE_EXPIRED = "license_expired"
    LICENSE_INACTIVE = "license_inactive"
    MISSING_TOKEN = "missing_token"
    SESSION_NOT_FOUND = "session_not_found"
    SESSION_NOT_FOUND_OR_EXPIRED = "session_not_found_or_expired"
    NOT_FOUND = "not_found"
    INTERNAL_ERROR = "internal_error"
    HTTP_ERROR = "http_error"


# Background job names (shared by the inline dispatcher and the ARQ worker)
class JobName:
    """Fire-and-forget job identifiers."""
    TOUCH_API_KEY = "touch_api_key"
    RECORD_USAGE = "record_usage"


# Session configuration
SESSION_CACHE_PREFIX = "registry:session:"
MIN_SESSION_TOKEN_BYTES = 16  # 128 bits
