from __future__ import annotations

# Single source of truth for static constants.

PNG_MEDIA_TYPE = "image/png"

# Every request-scoped failure is reported with this one status and no body.
FAILURE_STATUS_CODE = 415

# Returned, also without a body, when no producer slot is free.
BUSY_STATUS_CODE = 503

DEFAULT_PAGE_NUMBER = 1

# Conduit sizing: the first chunk is held back until full so that early
# failures can still be answered with the failure status.
DEFAULT_CHUNK_SIZE = 64 * 1024
DEFAULT_MAX_PENDING_CHUNKS = 4

# Requests beyond this many in flight are refused with BUSY_STATUS_CODE.
DEFAULT_MAX_PRODUCERS = 16
