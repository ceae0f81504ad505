"""Small HTTP-related constants shared across Bento."""

from __future__ import annotations

# Inclusive bounds of a valid HTTP status code.
MIN_STATUS_CODE = 100
MAX_STATUS_CODE = 599

# Statuses treated as success unless configured otherwise (2xx).
DEFAULT_SUCCESS_CODES: range = range(200, 300)

# Status code given to the empty accumulator of a merge.
MERGED_STATUS_CODE = 200
