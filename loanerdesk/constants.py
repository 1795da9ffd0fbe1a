"""
Static catalogs shared by the schemas, services, and seed commands.

These are district policy, not computed data: adding a device type or
checkout reason is a code change reviewed like any other.
"""

# -- Device lifecycle ------------------------------------------------------

STATUS_AVAILABLE = "available"
STATUS_CHECKED_OUT = "checked_out"
DEVICE_STATUSES = (STATUS_AVAILABLE, STATUS_CHECKED_OUT)

ACTION_CHECKIN = "checkin"
ACTION_CHECKOUT = "checkout"
LOG_ACTIONS = (ACTION_CHECKIN, ACTION_CHECKOUT)

# Holder name recorded on check-in when the assignment has no name.
UNKNOWN_HOLDER = "Unknown"

# Loaner device categories (``devices.model``).
DEVICE_TYPES = {
    "chromebook": "Chromebook",
    "laptop": "Laptop",
    "av-cart": "AV Projector Cart",
    "dvd-player": "DVD Player",
    "projector": "Projector",
}

CHECKOUT_REASONS = {
    # Student-related
    "left-at-home": "Student device left at home",
    "student-repair": "Student device needs repair",
    # Staff-related
    "teacher": "Teacher use",
    "staff-repair": "Staff device needs repair",
    "substitute": "Substitute",
    # Administrative
    "school-admin": "School admin use",
    "it-admin": "IT admin use",
    # General
    "testing": "Testing",
    "presentation": "Presentation",
}

# -- Repair tickets --------------------------------------------------------

TICKET_OPEN = "open"
TICKET_CLOSED = "closed"
TICKET_STATUSES = (TICKET_OPEN, TICKET_CLOSED)

# Device types accepted on a repair request (the broken device, not a loaner).
REPAIR_DEVICE_TYPES = ("chromebook", "windows", "mac", "other")

ISSUE_TYPES = {
    "broken-screen": "Broken Screen",
    "keyboard-issue": "Keyboard Not Working",
    "charging-issue": "Not Charging",
    "battery-issue": "Battery Problems",
    "touchpad-issue": "Touchpad Not Working",
    "wifi-issue": "WiFi Connection Issues",
    "audio-issue": "Audio Problems",
    "software-issue": "Software/OS Issues",
    "physical-damage": "Physical Damage",
    "other": "Other Issue",
}

# -- Schools ---------------------------------------------------------------

# Seeded by ``flask seed-schools``.  Auto-registration is off by default.
DEFAULT_SCHOOLS = (
    ("flocktown", "Flocktown"),
    ("kossman", "Kossman"),
    ("old-farmers", "Old Farmers"),
    ("cucinella", "Cucinella"),
    ("long-valley", "Long Valley Middle School"),
    ("central-office", "Central Office"),
)
