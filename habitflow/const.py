# File: const.py
"""Constants for habitflow.

This file centralizes frequency names, weekday tokens, storage keys, record
field names, completion statuses and defaults used across the package.
"""

import logging

# ------------------------------------------------------------------------------------------------
# General
# ------------------------------------------------------------------------------------------------
TITLE = "habitflow"

# Logger
LOGGER = logging.getLogger(__package__)

# Default timezone name (overridable through CONF_TIME_ZONE)
DEFAULT_TIME_ZONE = "UTC"

# ------------------------------------------------------------------------------------------------
# Configuration Keys
# ------------------------------------------------------------------------------------------------
CONF_TIME_ZONE = "time_zone"
CONF_STORAGE_PATH = "storage_path"

# ------------------------------------------------------------------------------------------------
# Recurrence
# ------------------------------------------------------------------------------------------------
FREQUENCY_DAILY = "daily"
FREQUENCY_WEEKLY = "weekly"
FREQUENCY_MONTHLY = "monthly"
FREQUENCY_YEARLY = "yearly"

FREQUENCY_OPTIONS = [
    FREQUENCY_DAILY,
    FREQUENCY_WEEKLY,
    FREQUENCY_MONTHLY,
    FREQUENCY_YEARLY,
]

DEFAULT_FREQUENCY = FREQUENCY_DAILY
DEFAULT_INTERVAL = 1

# Runaway-loop guard for occurrence expansion
MAX_OCCURRENCES = 500

# Weekday tokens -> Python weekday index (0=Mon, 6=Sun)
WEEKDAY_TOKENS: dict[str, int] = {
    "mon": 0,
    "monday": 0,
    "tue": 1,
    "tues": 1,
    "tuesday": 1,
    "wed": 2,
    "wednesday": 2,
    "thu": 3,
    "thurs": 3,
    "thursday": 3,
    "fri": 4,
    "friday": 4,
    "sat": 5,
    "saturday": 5,
    "sun": 6,
    "sunday": 6,
}

# Short names in weekday index order, used for RRULE BYDAY output
WEEKDAY_RRULE_CODES = ["MO", "TU", "WE", "TH", "FR", "SA", "SU"]

MIN_DAY_OF_MONTH = 1
MAX_DAY_OF_MONTH = 31

# ------------------------------------------------------------------------------------------------
# Deadline Classification
# ------------------------------------------------------------------------------------------------
# Fixed end-of-day cutoff (local time of the due date)
END_OF_DAY_HOUR = 23
END_OF_DAY_MINUTE = 59

# Tolerance (minutes) for the cross-day branch
ON_TIME_TOLERANCE_MINUTES = 1

COMPLETION_STATUS_EARLY = "early"
COMPLETION_STATUS_ON_TIME = "on_time"
COMPLETION_STATUS_LATE = "late"

# ------------------------------------------------------------------------------------------------
# Task Fields / States
# ------------------------------------------------------------------------------------------------
TASK_STATUS_COMPLETED = "completed"

DATA_TASK_ID = "id"
DATA_TASK_TITLE = "title"
DATA_TASK_START_AT = "start_at"
DATA_TASK_END_AT = "end_at"
DATA_TASK_RECURRENCE_ID = "recurrence_id"
DATA_TASK_STATUS = "status"
DATA_TASK_COMPLETED_AT = "completed_at"
DATA_TASK_COMPLETION_STATUS = "completion_status"
DATA_TASK_COMPLETION_DIFF_MINUTES = "completion_diff_minutes"

# ------------------------------------------------------------------------------------------------
# Recurrence Record Fields
# ------------------------------------------------------------------------------------------------
DATA_RECURRENCE_ID = "id"
DATA_RECURRENCE_TYPE = "type"
DATA_RECURRENCE_INTERVAL = "interval"
DATA_RECURRENCE_DAYS_OF_WEEK = "days_of_week"
DATA_RECURRENCE_DAY_OF_MONTH = "day_of_month"
DATA_RECURRENCE_START_DATE = "start_date"
DATA_RECURRENCE_END_DATE = "end_date"
DATA_RECURRENCE_MERGE_STREAK = "merge_streak"
DATA_RECURRENCE_AUTO_COMPLETE = "auto_complete_expired"
DATA_RECURRENCE_AUTO_COMPLETE_ENABLED_AT = "auto_complete_enabled_at"

# ------------------------------------------------------------------------------------------------
# Schedule Block Fields
# ------------------------------------------------------------------------------------------------
DATA_SCHEDULE_ID = "id"
DATA_SCHEDULE_SUBJECT = "subject"
DATA_SCHEDULE_START_AT = "start_at"
DATA_SCHEDULE_END_AT = "end_at"

# ------------------------------------------------------------------------------------------------
# Conflict Reporting
# ------------------------------------------------------------------------------------------------
CONFLICT_KIND_TASK = "task"
CONFLICT_KIND_RECURRING_TASK = "recurring_task"
CONFLICT_KIND_SCHEDULE = "schedule"

LABEL_UNTITLED = "(Untitled)"
LABEL_UNNAMED = "(Unnamed)"
LABEL_OCCURRENCE = "Occurrence"
LABEL_SCHEDULE = "[Schedule]"
LABEL_RECURRING = "(recurring)"
LABEL_START = "Start"
LABEL_END = "End"
LABEL_TIME = "Time"

MESSAGE_END_BEFORE_START = "End time must be after the start time"

# ------------------------------------------------------------------------------------------------
# Storage
# ------------------------------------------------------------------------------------------------
STORAGE_KEY_COMPLETIONS = "habit_completions"
STORAGE_KEY_COMPLETION_TIMES = "habit_completion_times"
STORAGE_KEY_SEPARATOR = ":"
