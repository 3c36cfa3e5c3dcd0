import re

SMS_TRIGGER_MANUAL = "manual"
SMS_TRIGGER_AUTOMATION = "automation"

DISPATCH_STATUS_SENT = "sent"
DISPATCH_STATUS_FAILED = "failed"

SMS_HISTORY_DEFAULT_DAYS = 7
SMS_HISTORY_MAX_DAYS = 90

DAYS_PER_WEEK = 7
TIME_OF_DAY_PATTERN = re.compile(r"^([01][0-9]|2[0-3]):[0-5][0-9]$")
DEFAULT_TIME_OF_DAY = "09:00"

# A late beat tick still runs today's slot within this window.
AUTOMATION_CATCH_UP_MINUTES = 60
