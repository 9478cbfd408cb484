"""File registry and folder hierarchy settings."""

from server.settings.components import config

# Pagination for file listings
FILES_DEFAULT_PAGE_SIZE = config(
    'FILES_DEFAULT_PAGE_SIZE',
    cast=int,
    default=10,
)
FILES_MAX_PAGE_SIZE = config('FILES_MAX_PAGE_SIZE', cast=int, default=100)

# Validity of download links in seconds
FILES_SIGNED_URL_TTL = config('FILES_SIGNED_URL_TTL', cast=int, default=300)

# Upper bound for ancestor walks when moving folders
FOLDERS_MAX_DEPTH = config('FOLDERS_MAX_DEPTH', cast=int, default=32)

# Grace period before an unreferenced blob counts as orphaned
RECONCILE_MIN_AGE_MINUTES = config(
    'RECONCILE_MIN_AGE_MINUTES',
    cast=int,
    default=60,
)
