"""
Churn Analytics — Configuration: column aliases, thresholds, labels, limits.
"""
import os
from pathlib import Path

# ---------------------------------------------------------------------------
# Startup / upload: override with env vars for deployment
# ---------------------------------------------------------------------------
_preload = os.environ.get("CHURN_ANALYTICS_CSV", "").strip()
PRELOAD_CSV = Path(_preload) if _preload else None
MAX_UPLOAD_BYTES = int(float(os.environ.get("CHURN_MAX_UPLOAD_MB", "50")) * 1024 * 1024)

# ---------------------------------------------------------------------------
# Column aliases: canonical attribute → accepted CSV headers.
# The first alias is the canonical label shown to users.
# Matching is case-insensitive on the trimmed header text.
# ---------------------------------------------------------------------------
COLUMN_ALIASES = {
    "member_name": ["Member Name", "Name", "Member", "Full Name", "Customer Name", "Client Name"],
    "member_id": ["Member ID", "ID", "MemberID", "Customer ID", "Client ID"],
    "host_id": ["Host ID", "HostID", "Host"],
    "status": ["Status", "Member Status", "Account Status", "Membership Status"],
    "membership_name": ["Membership Name", "Membership", "Plan", "Plan Name", "Subscription", "Package"],
    "sessions_limit": ["Sessions Limit", "Session Limit", "Max Sessions", "Total Sessions"],
    "purchase_date": ["Purchase Date", "Purchased", "Date Purchased", "Buy Date", "Order Date"],
    "start_date": ["Start Date", "Started", "Begin Date", "Activation Date"],
    "end_date": ["End Date", "Ended", "Expiry Date", "Expiration Date", "Expire Date"],
    "churned_date": ["Churned Date", "Churn Date", "Cancelled Date", "Cancellation Date", "Lapsed Date"],
    "amount_paid": ["Amount Paid", "Amount", "Total Amount", "Payment", "Price", "Revenue", "Total Paid"],
    "discount_code": ["Discount Code", "Promo Code", "Coupon", "Voucher"],
    "discount_value": ["Discount Value", "Discount", "Discount Amount"],
    "original_amount": ["Original Amount (Before Discount)", "Original Amount", "Base Price"],
    "sold_by": ["Sold By", "Salesperson", "Agent", "Rep"],
    "created_by": ["Created By", "Creator", "Added By"],
    "most_recent_visit_date": ["Most Recent Visit Date", "Last Visit", "Last Visit Date", "Recent Visit"],
    "first_visit_date": ["First Visit Date", "First Visit", "Initial Visit"],
    "total_sessions_completed": ["Total Sessions Completed", "Sessions Completed", "Completed Sessions", "Sessions Used"],
    "sessions_used_pct": ["Sessions Used %", "Session Usage", "Usage %", "Sessions Used Percentage"],
    "remaining_sessions": ["Remaining Sessions", "Sessions Remaining", "Sessions Left"],
    "total_cancellations": ["Total Cancellations", "Cancellations", "Cancelled Sessions"],
    "late_cancellations": ["Late Cancellations", "Late Cancels", "Late Cancel Count"],
    "no_shows": ["No Shows", "NoShows", "No Show Count", "Missed Sessions"],
    "cancellation_rate_pct": ["Cancellation Rate %", "Cancellation Rate", "Cancel Rate", "Cancellation %"],
    "preferred_booking_method": ["Preferred Booking Method", "Booking Method", "Booking Preference"],
    "primary_location": ["Primary Location", "Location", "Studio", "Branch", "Gym", "Center", "Centre"],
    "locations_attended": ["Locations Attended", "Visited Locations", "Studios Visited"],
    "freeze_count": ["Membership Freeze Count", "Freeze Count", "Freezes", "Pauses"],
    "days_frozen": ["Days Frozen", "Frozen Days", "Freeze Days"],
    "membership_duration_days": ["Membership Duration (Days)", "Duration", "Duration Days", "Tenure"],
    "days_active": ["Days Active", "Active Days", "Days Since Start"],
    "days_since_last_visit": ["Days Since Last Visit", "Days Inactive", "Inactivity Days", "Last Visit Days Ago"],
    "avg_sessions_per_month": ["Average Sessions Per Month", "Avg Sessions", "Monthly Sessions", "Sessions/Month"],
    "revenue_per_session": ["Revenue Per Session", "Rev/Session", "Session Value"],
    "attendance_rate_pct": ["Attendance Rate %", "Attendance Rate", "Attendance %", "Attendance"],
}

# attribute → canonical label, and back
FIELD_LABELS = {attr: aliases[0] for attr, aliases in COLUMN_ALIASES.items()}
LABEL_FIELDS = {label: attr for attr, label in FIELD_LABELS.items()}

# ---------------------------------------------------------------------------
# Status / grouping labels
# ---------------------------------------------------------------------------
STATUS_ACTIVE = "Active"
STATUS_LAPSED = "Lapsed"
LAPSED_STATUS_ALIASES = {"lapsed", "churned"}  # lapsed-only table preset
UNKNOWN_LABEL = "Unknown"
NOT_CHURNED_LABEL = "Not Churned"
CHURN_MONTH_GROUP = "churnMonth"

# ---------------------------------------------------------------------------
# Classification thresholds
# ---------------------------------------------------------------------------
NEW_MEMBER_WINDOW_DAYS = 30

# High-risk: an Active member hitting at least HIGH_RISK_MIN_FACTORS of these
LOW_ATTENDANCE_PCT = 40.0       # attendance rate below
HIGH_CANCELLATION_PCT = 40.0    # cancellation rate above
LONG_ABSENCE_DAYS = 21          # days since last visit above
FREQUENT_NO_SHOWS = 3           # no-shows at or above
HIGH_RISK_MIN_FACTORS = 2

# Churn reasons for lapsed members (first match wins)
REASON_CANCELLATION_PCT = 50.0
REASON_ATTENDANCE_PCT = 30.0
REASON_INACTIVITY_DAYS = 60

# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------
MOM_WINDOW_MONTHS = 12

# (label, is_numeric): fixed columns of the member table, extras follow
TABLE_COLUMNS = [
    ("Member Name", False),
    ("Status", False),
    ("Membership Name", False),
    ("Primary Location", False),
    ("Amount Paid", True),
    ("Total Sessions Completed", True),
    ("Attendance Rate %", True),
    ("Cancellation Rate %", True),
    ("Days Since Last Visit", True),
    ("Start Date", False),
    ("Churned Date", False),
]

GROUP_BY_OPTIONS = {
    "Status": "Status",
    "Primary Location": "Location",
    "Membership Name": "Membership",
    CHURN_MONTH_GROUP: "Churn Month",
}
DEFAULT_TABLE_GROUP = "Member Name"

# ---------------------------------------------------------------------------
# Currency display
# ---------------------------------------------------------------------------
CURRENCY_SYMBOL = "₹"
