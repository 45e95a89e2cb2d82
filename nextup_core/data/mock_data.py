# =============================================================================
# nextup_core/data/mock_data.py
# Demo-mode sample records for NextUP
# =============================================================================
"""
Deterministic sample data used when the store is not configured.

Every field except the timestamps depends only on (entity_type, i), so two
calls with the same arguments produce the same ids, titles and tags.
Timestamps are offsets from `now`: created_at goes back `i` days, deadlines
and event dates lie ahead.
"""

from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

DEMO_USER_ID = "demo-user"
DEMO_USER_EMAIL = "demo@nextup.local"

PEOPLE = ["Alex Johnson", "Morgan Smith", "Jamie Lee", "Taylor Reed", "Sam Chen"]

PROJECT_TITLES = [
    "Student Community App",
    "Sustainability Tracker",
    "AI Study Buddy",
    "Campus Marketplace",
    "Open Course Notes",
]
PROJECT_CATEGORIES = ["Mobile App", "Web Development", "AI/ML", "Web Development", "Education"]
SKILL_TAG_SETS = [
    ["react-native", "firebase", "ui-design"],
    ["react", "d3js", "node"],
    ["python", "machine-learning", "api-development"],
    ["typescript", "postgres", "stripe"],
    ["markdown", "python", "search"],
]
ROLE_SETS = [
    ["Mobile Developer", "UI/UX Designer", "Backend Developer"],
    ["Frontend Developer", "Data Visualization Expert"],
    ["ML Engineer", "Backend Developer", "UX Researcher"],
    ["Full-stack Developer", "Product Designer"],
    ["Technical Writer", "Frontend Developer"],
]

GIG_TITLES = [
    "Python Tutoring",
    "Logo Design Needed",
    "Mobile App UI Design",
    "Resume Review",
    "Video Editing for Club Promo",
]
GIG_TAG_SETS = [
    ["python", "programming", "tutoring"],
    ["design", "logo", "branding"],
    ["ui-design", "mobile", "figma"],
    ["writing", "career"],
    ["video", "editing", "marketing"],
]

HACKATHON_TITLES = ["Campus Hack", "AI Innovation Challenge", "Green Tech Hackathon", "FinTech Sprint"]
EVENT_TAG_SETS = [
    ["hackathon", "beginner-friendly", "prizes"],
    ["AI", "machine-learning", "virtual"],
    ["sustainability", "green-tech", "iot"],
    ["finance", "web3", "mobile"],
]
LOCATIONS = ["Virtual", "University Student Center", "Engineering Building", "Tech Campus, Demo City"]

SCHOLARSHIP_TITLES = [
    "Future Tech Leaders Scholarship",
    "Women in STEM Grant",
    "Global Innovation Fellowship",
    "First Generation Award",
]
SCHOLARSHIP_ORGS = ["Tech Foundation", "Women's Tech Alliance", "Global Innovation Fund", "Open Doors Trust"]
SCHOLARSHIP_TAG_SETS = [
    ["undergraduate", "computer-science", "merit-based"],
    ["women", "stem", "diversity"],
    ["graduate", "research", "international"],
    ["undergraduate", "need-based"],
]

NOTIFICATION_TEMPLATES = [
    ("project", "New collaborator request", "Jamie Lee wants to join Student Community App."),
    ("gig", "Gig response", "Someone replied to your Python Tutoring offer."),
    ("message", "New message", "Morgan Smith sent you a message."),
    ("system", "Welcome to NextUP", "Complete your profile to get matched with projects."),
]


def _iso(moment: datetime) -> str:
    return moment.isoformat()


def _pick(options: List[Any], i: int) -> Any:
    return options[i % len(options)]


def _projects(i: int, now: datetime) -> Dict[str, Any]:
    owner = i % 3 + 1
    return {
        "id": f"mock-project-{i}",
        "title": f"{_pick(PROJECT_TITLES, i)} #{i + 1}",
        "description": (
            "A demo project showing what a real listing looks like. "
            "Connect Supabase for live projects."
        ),
        "owner_id": f"mock-user-{owner}",
        "creator": {"name": _pick(PEOPLE, owner), "avatar": None},
        "skill_tags": list(_pick(SKILL_TAG_SETS, i)),
        "roles_needed": list(_pick(ROLE_SETS, i)),
        "deadline": _iso(now + timedelta(days=30 + i)),
        "external_links": [],
        "category": _pick(PROJECT_CATEGORIES, i),
        "created_at": _iso(now - timedelta(days=i)),
    }


def _gigs(i: int, now: datetime) -> Dict[str, Any]:
    offering = i % 2 == 0
    poster = i % 3 + 1
    return {
        "id": f"mock-gig-{i}",
        "title": f"{_pick(GIG_TITLES, i)} #{i + 1}",
        "description": f"A demo {'service offering' if offering else 'gig request'}. Connect Supabase for live gigs.",
        "gig_type": "offering" if offering else "seeking",
        "poster_id": f"mock-user-{poster}",
        "poster": {"name": _pick(PEOPLE, poster), "avatar": None},
        "rate": f"${30 + i * 5}/hr" if offering else f"Fixed ${150 + i * 50}",
        "duration": f"{1 + i % 4} {'weeks' if offering else 'days'}",
        "availability": "Available now",
        "tags": list(_pick(GIG_TAG_SETS, i)),
        "created_at": _iso(now - timedelta(days=i)),
    }


def _events(i: int, now: datetime, kind: str = "event") -> Dict[str, Any]:
    return {
        "id": f"mock-{kind}-{i}",
        "title": f"{_pick(HACKATHON_TITLES, i)} {now.year} #{i + 1}",
        "description": f"A demo {kind}. Connect Supabase to see real opportunities.",
        "date": _iso(now + timedelta(days=15 + i * 5)),
        "location": _pick(LOCATIONS, i),
        "organizer": f"TechOrg {i + 1}",
        "link": f"https://example.com/{kind}/{i}",
        "tags": list(_pick(EVENT_TAG_SETS, i)),
        "created_at": _iso(now - timedelta(days=i)),
    }


def _hackathons(i: int, now: datetime) -> Dict[str, Any]:
    return _events(i, now, kind="hackathon")


def _scholarships(i: int, now: datetime) -> Dict[str, Any]:
    return {
        "id": f"mock-scholarship-{i}",
        "title": f"{_pick(SCHOLARSHIP_TITLES, i)} #{i + 1}",
        "description": "A demo scholarship. Connect Supabase to see real scholarships.",
        "amount": f"${5000 + i * 1000:,}",
        "deadline": _iso(now + timedelta(days=30 + i)),
        "organization": _pick(SCHOLARSHIP_ORGS, i),
        "link": f"https://example.com/scholarship/{i}",
        "tags": list(_pick(SCHOLARSHIP_TAG_SETS, i)),
        "created_at": _iso(now - timedelta(days=i)),
    }


def _notifications(i: int, now: datetime) -> Dict[str, Any]:
    kind, title, message = _pick(NOTIFICATION_TEMPLATES, i)
    return {
        "id": f"mock-notification-{i}",
        "user_id": DEMO_USER_ID,
        "title": title,
        "message": message,
        "type": kind,
        "is_read": i >= 2,
        "reference_id": "mock-project-0" if kind == "project" else None,
        "reference_type": "project" if kind == "project" else None,
        "created_at": _iso(now - timedelta(hours=6 * i)),
    }


GENERATORS: Dict[str, Callable[[int, datetime], Dict[str, Any]]] = {
    "projects": _projects,
    "gigs": _gigs,
    "events": _events,
    "hackathons": _hackathons,
    "scholarships": _scholarships,
    "notifications": _notifications,
}

# Default sizes of the demo tables
DEFAULT_COUNTS = {
    "projects": 12,
    "gigs": 12,
    "events": 8,
    "hackathons": 8,
    "scholarships": 8,
    "notifications": 6,
}


def generate_mock(entity_type: str, count: int = 10, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """
    Generate `count` sample rows for a table, newest first.

    Args:
        entity_type: Table name ('projects', 'gigs', 'events', ...)
        count: Number of rows
        now: Reference time for relative timestamps (default: current UTC time)

    Returns:
        List of row dicts; empty for unknown tables
    """
    generator = GENERATORS.get(entity_type)
    if generator is None or count <= 0:
        return []

    now = now or datetime.now(timezone.utc)
    return [generator(i, now) for i in range(count)]


def mock_table(entity_type: str, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """The full demo table for an entity type."""
    return generate_mock(entity_type, DEFAULT_COUNTS.get(entity_type, 10), now=now)
