"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SEMESTER_WEEKS = 16
MAX_SEMESTER_WEEKS = 52
MAX_SCHEDULE_DURATION = 4
SEMESTERS = (1, 2)

DEFAULT_LATE_THRESHOLD_MINUTES = 15

ATTENDANCE_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
ATTENDANCE_CODE_LENGTH = 6
ATTENDANCE_CODE_ATTEMPTS = 3

BULK_MARK_MAX_ITEMS = 200
REMARKS_MAX_LENGTH = 500
ROOM_NUMBER_MAX_LENGTH = 50
SESSION_TITLE_MAX_LENGTH = 255

SCHEDULE_COLORS = (
    "#4CAF50",
    "#2196F3",
    "#FF9800",
    "#E91E63",
    "#9C27B0",
    "#00BCD4",
    "#795548",
    "#607D8B",
    "#F44336",
    "#3F51B5",
    "#009688",
    "#FFEB3B",
    "#673AB7",
    "#8BC34A",
    "#FF5722",
)
