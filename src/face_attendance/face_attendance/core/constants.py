"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_MATCH_THRESHOLD = 0.6
DEFAULT_EMBEDDING_DIMENSION = 128
DEFAULT_HISTORY_LIMIT = 15
DEFAULT_EVENT_LIMIT = 500
MAX_USER_ID_LENGTH = 64
