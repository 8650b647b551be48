"""Fixed business constants shared with API clients."""

from datetime import timedelta

# Phrase the user must type to request account deletion. Clients display it verbatim.
DELETE_ACCOUNT_CONFIRM_TEXT = "탈퇴하겠습니다."

DELETION_GRACE_PERIOD = timedelta(days=30)

SUPPORTED_CURRENCIES = ("KRW", "USD", "EUR", "JPY", "CNY")
DEFAULT_CURRENCY = "KRW"

SUPPORTED_TIMEZONES = (
    "Asia/Seoul",
    "Asia/Tokyo",
    "America/New_York",
    "America/Los_Angeles",
    "Europe/London",
    "Europe/Paris",
)
DEFAULT_TIMEZONE = "Asia/Seoul"

LEDGER_NAME_MAX_LENGTH = 50
CATEGORY_NAME_MAX_LENGTH = 20
NICKNAME_MIN_LENGTH = 2
NICKNAME_MAX_LENGTH = 20
MAX_MEMBERS_PER_LEDGER = 20

CATEGORY_DEFAULT_COLOR = "#6B7280"
CATEGORY_DEFAULT_ICON = "pricetag"
CATEGORY_DEFAULT_SORT_ORDER = 999
