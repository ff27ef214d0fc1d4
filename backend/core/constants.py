"""
Core constants — static reference content served by the public and
reporting endpoints.

Kept here rather than in the database: the lists change only with a
release, and every process must serve identical values.
"""

# ── Analytics limits ────────────────────────────────────────────────
TOP_CRIME_TYPES_LIMIT: int = 10
PUBLIC_TOP_CRIME_TYPES_LIMIT: int = 5
HOTSPOT_LIMIT: int = 50
CITY_STATS_LIMIT: int = 20
TREND_MONTHS: int = 12
RECENT_CASES_LIMIT: int = 5
DEFAULT_PERFORMANCE_WINDOW_DAYS: int = 30

# Coordinates are rounded to this many decimals (~1 km) to bucket hotspots.
HOTSPOT_PRECISION: int = 2


# ── Public information ──────────────────────────────────────────────
PREVENTION_TIPS: list[dict] = [
    {
        "category": "General Safety",
        "tips": [
            "Always be aware of your surroundings",
            "Keep your phone charged and with you",
            "Trust your instincts - if something feels wrong, it probably is",
            "Avoid walking alone at night in unfamiliar areas",
        ],
    },
    {
        "category": "Home Security",
        "tips": [
            "Install good lighting around your property",
            "Keep doors and windows locked",
            "Don't advertise when you're away from home",
            "Consider installing a security system",
        ],
    },
    {
        "category": "Online Safety",
        "tips": [
            "Use strong, unique passwords",
            "Be cautious with personal information online",
            "Keep your software updated",
            "Be wary of suspicious emails and links",
        ],
    },
    {
        "category": "Vehicle Safety",
        "tips": [
            "Always lock your car doors",
            "Don't leave valuables in plain sight",
            "Park in well-lit areas",
            "Keep your car keys secure",
        ],
    },
]

EMERGENCY_CONTACTS: list[dict] = [
    {
        "name": "Police Emergency",
        "number": "911",
        "description": "For immediate police assistance",
    },
    {
        "name": "Non-Emergency Police",
        "number": "(555) 123-4567",
        "description": "For non-urgent police matters",
    },
    {
        "name": "Crime Stoppers",
        "number": "(555) 123-4567",
        "description": "Anonymous crime reporting",
    },
    {
        "name": "Domestic Violence Hotline",
        "number": "1-800-799-7233",
        "description": "24/7 support for domestic violence",
    },
    {
        "name": "Cyber Crime Unit",
        "number": "(555) 123-4568",
        "description": "Report cyber crimes and online fraud",
    },
]


# ── Report templates ────────────────────────────────────────────────
REPORT_TEMPLATES: list[dict] = [
    {
        "id": "case-summary",
        "name": "Case Summary Report",
        "description": "Basic case information and status",
        "type": "case-report",
        "report_type": "summary",
        "parameters": ["case_id"],
    },
    {
        "id": "case-detailed",
        "name": "Detailed Case Report",
        "description": "Complete case information including investigations",
        "type": "case-report",
        "report_type": "detailed",
        "parameters": ["case_id"],
    },
    {
        "id": "case-evidence",
        "name": "Case Evidence Report",
        "description": "Detailed case report plus the evidence file inventory",
        "type": "case-report",
        "report_type": "evidence",
        "parameters": ["case_id"],
    },
    {
        "id": "monthly-overview",
        "name": "Monthly Overview Report",
        "description": "Monthly statistics and trends",
        "type": "statistical-report",
        "report_type": "overview",
        "parameters": ["start_date", "end_date"],
    },
    {
        "id": "staff-performance",
        "name": "Staff Performance Report",
        "description": "Individual staff performance metrics",
        "type": "statistical-report",
        "report_type": "performance",
        "parameters": ["start_date", "end_date"],
    },
    {
        "id": "crime-trends",
        "name": "Crime Trends Report",
        "description": "Crime patterns and trends analysis",
        "type": "statistical-report",
        "report_type": "trends",
        "parameters": ["start_date", "end_date"],
    },
]
