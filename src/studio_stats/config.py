from pathlib import Path

# === Core Directories ===
RAW_DIR = Path("data/raw")
PROCESSED_DIR = Path("data/processed")

# === Raw File Name Patterns ===
FILE_PATTERNS = {
    "new": "new",
    "bookings": "bookings",
    "payments": "payments?",
}

# === Client Channel Patterns ===
TRIAL_PATTERN = "Studio Open Barre Class|Newcomers 2 For 1"
REFERRAL_MEMBERSHIP = "Studio Complimentary Referral Class"  # exact match, not a pattern
HOSTED_PATTERN = "hosted|x|p57|physique|weword|rugby|outdoor|birthday|bridal|shower"
INFLUENCER_PATTERN = "sign-up|link|influencer|twain|ooo|lrs|x|p57|physique|complimentary"
EXCLUDED_PATTERN = "friends|family|staff"

# === Retention Rules ===
TWO_FOR_ONE_MARKER = "2 for 1"
TWO_FOR_ONE_MIN_RETURN_VISITS = 2
DEFAULT_MIN_RETURN_VISITS = 1

# === Conversion Rules ===
EXCLUDED_SALE_CATEGORIES = ("product", "money credits")
EXCLUDED_SALE_ITEM = "2 for 1"

# === Labels ===
FLAG_YES = "YES"
FLAG_NO = "NO"
UNKNOWN = "Unknown"
ALL_TEACHERS = "All Teachers"
ALL_PERIODS = "All Periods"
MONTHLY_TOTAL = "Total"
PERIOD_FORMAT = "%b %y"  # e.g. "Jan 24"
LABEL_PREFIX_REGEX = r"^Class\s*-\s*"
