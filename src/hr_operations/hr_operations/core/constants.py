"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 200

# Hour quantities are stored with this many decimals.
HOURS_PRECISION = 2

# Monday..Friday in date.weekday() numbering.
WORKING_WEEKDAYS = frozenset({0, 1, 2, 3, 4})

# Week days stored on CompanyOff use 0=Sunday .. 6=Saturday.
MIN_WEEK_DAY = 0
MAX_WEEK_DAY = 6
