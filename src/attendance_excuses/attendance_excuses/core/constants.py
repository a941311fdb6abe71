"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

# Excuses submitted before this time on the day before the absence are auto-approved.
EXCUSE_DEADLINE_TIME = time(9, 0, 0)
MAX_EXCUSE_SPAN_DAYS = 30

# Friday, Saturday, Sunday (date.weekday() numbering).
DEFAULT_CLOSED_WEEKDAYS = frozenset({4, 5, 6})
NEXT_SCHOOL_DAY_SEARCH_DAYS = 30

DEFAULT_HISTORY_DAYS = 14
DEFAULT_EXCUSE_LIST_LIMIT = 10
DEFAULT_DIRECTOR_LIST_LIMIT = 100
DEFAULT_AUDIT_LIMIT = 50

# Director dashboard: excuses awaiting review
PENDING_REVIEW_DAYS = 7
PENDING_REVIEW_LIMIT = 5
