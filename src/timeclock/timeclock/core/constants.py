"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

EARTH_RADIUS_METERS = 6_371_000

QR_FIELD_SEPARATOR = "|"
QR_SECRET_BYTES = 32

DEVICE_MAX_ATTEMPTS = 5
DEVICE_LOCK_SECONDS = 120
DEVICE_STATE_TTL_SECONDS = 15 * 60
UNKNOWN_DEVICE_LABEL = "UNKNOWN"

PIN_LENGTH = 4
DEFAULT_PIN_HASH_METHOD = "pbkdf2:sha256"

# Defaults applied when a tenant has no settings row yet.
DEFAULT_GEOFENCE_ENABLED = True
DEFAULT_GEO_REQUIRED = True
DEFAULT_CENTER_LAT = 0.0
DEFAULT_CENTER_LNG = 0.0
DEFAULT_RADIUS_METERS = 200
DEFAULT_MAX_ACCURACY_METERS = 100
DEFAULT_QR_ENABLED = True

DEVICE_LABEL_MAX_LENGTH = 80
