"""Well-known keys under which the engine persists its state."""

PENDING_ACTIONS = "@primecare_pending_actions"
CACHED_DATA = "@primecare_cached_data"
LAST_SYNC = "@primecare_last_sync"
OFFLINE_MODE = "@primecare_offline_mode"

ALL_KEYS = (PENDING_ACTIONS, CACHED_DATA, LAST_SYNC, OFFLINE_MODE)
