# =============================================================================
# nextup_core/data/models.py
# Typed records for NextUP listings, bookmarks and notifications
# =============================================================================
"""
Rows travel through the data layer as plain dicts (the store's wire shape).
Views that need typed access convert them with `record_from_row`, which
returns one member of the listing union:

    Listing = Project | Gig | Event | Scholarship

Each member carries an `item_type` discriminant, and `card_metadata`
dispatches on it exhaustively.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class ItemType(str, Enum):
    """Bookmarkable listing kinds."""
    PROJECT = "project"
    GIG = "gig"
    EVENT = "event"
    HACKATHON = "hackathon"
    SCHOLARSHIP = "scholarship"

    @property
    def table(self) -> str:
        return TABLE_BY_ITEM_TYPE[self]


TABLE_BY_ITEM_TYPE = {
    ItemType.PROJECT: "projects",
    ItemType.GIG: "gigs",
    ItemType.EVENT: "events",
    ItemType.HACKATHON: "hackathons",
    ItemType.SCHOLARSHIP: "scholarships",
}

ITEM_TYPE_BY_TABLE = {table: item_type for item_type, table in TABLE_BY_ITEM_TYPE.items()}


class GigType(str, Enum):
    OFFERING = "offering"
    SEEKING = "seeking"


@dataclass
class DisplayInfo:
    """Creator/poster display block."""
    name: str = ""
    avatar: Optional[str] = None

    @classmethod
    def from_value(cls, value: Any) -> Optional[DisplayInfo]:
        if not value:
            return None
        if isinstance(value, DisplayInfo):
            return value
        return cls(name=value.get("name") or "", avatar=value.get("avatar"))


@dataclass
class ExternalLink:
    label: str
    url: str


@dataclass
class Project:
    id: str
    title: str
    description: str
    created_at: str
    owner_id: str = ""
    creator: Optional[DisplayInfo] = None
    skill_tags: List[str] = field(default_factory=list)
    roles_needed: List[str] = field(default_factory=list)
    deadline: Optional[str] = None
    external_links: List[ExternalLink] = field(default_factory=list)
    category: Optional[str] = None
    item_type: ItemType = ItemType.PROJECT


@dataclass
class Gig:
    id: str
    title: str
    description: str
    created_at: str
    poster_id: str = ""
    poster: Optional[DisplayInfo] = None
    gig_type: GigType = GigType.OFFERING
    rate: str = ""
    duration: str = ""
    availability: str = ""
    tags: List[str] = field(default_factory=list)
    item_type: ItemType = ItemType.GIG


@dataclass
class Event:
    id: str
    title: str
    description: str
    created_at: str
    date: Optional[str] = None
    location: str = ""
    organizer: str = ""
    link: str = ""
    tags: List[str] = field(default_factory=list)
    item_type: ItemType = ItemType.EVENT


@dataclass
class Scholarship:
    id: str
    title: str
    description: str
    created_at: str
    amount: str = ""
    deadline: Optional[str] = None
    organization: str = ""
    link: str = ""
    tags: List[str] = field(default_factory=list)
    item_type: ItemType = ItemType.SCHOLARSHIP


Listing = Union[Project, Gig, Event, Scholarship]


@dataclass
class Bookmark:
    id: str
    user_id: str
    item_id: str
    item_type: ItemType
    created_at: str
    item: Optional[Listing] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> Bookmark:
        item_type = ItemType(row["item_type"])
        joined = row.get("item")
        return cls(
            id=str(row.get("id", "")),
            user_id=str(row["user_id"]),
            item_id=str(row["item_id"]),
            item_type=item_type,
            created_at=row.get("created_at") or "",
            item=record_from_row(item_type, joined) if joined else None,
        )


@dataclass
class Notification:
    id: str
    user_id: str
    title: str
    message: str
    type: str
    is_read: bool
    created_at: str
    reference_id: Optional[str] = None
    reference_type: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> Notification:
        return cls(
            id=str(row["id"]),
            user_id=str(row.get("user_id", "")),
            title=row.get("title") or "",
            message=row.get("message") or "",
            type=row.get("type") or "system",
            is_read=bool(row.get("is_read", False)),
            created_at=row.get("created_at") or "",
            reference_id=row.get("reference_id"),
            reference_type=row.get("reference_type"),
        )


def _base(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(row["id"]),
        "title": row.get("title") or "",
        "description": row.get("description") or "",
        "created_at": row.get("created_at") or "",
    }


def record_from_row(item_type: Union[ItemType, str], row: Dict[str, Any]) -> Listing:
    """Build the typed listing for a store row."""
    item_type = ItemType(item_type)

    if item_type is ItemType.PROJECT:
        return Project(
            **_base(row),
            owner_id=row.get("owner_id") or "",
            creator=DisplayInfo.from_value(row.get("creator")),
            skill_tags=list(row.get("skill_tags") or []),
            roles_needed=list(row.get("roles_needed") or []),
            deadline=row.get("deadline"),
            external_links=[
                ExternalLink(label=link.get("label", ""), url=link.get("url", ""))
                for link in row.get("external_links") or []
            ],
            category=row.get("category"),
        )
    if item_type is ItemType.GIG:
        return Gig(
            **_base(row),
            poster_id=row.get("poster_id") or "",
            poster=DisplayInfo.from_value(row.get("poster")),
            gig_type=GigType(row.get("gig_type") or "offering"),
            rate=row.get("rate") or "",
            duration=row.get("duration") or "",
            availability=row.get("availability") or "",
            tags=list(row.get("tags") or []),
        )
    if item_type in (ItemType.EVENT, ItemType.HACKATHON):
        return Event(
            **_base(row),
            date=row.get("date"),
            location=row.get("location") or "",
            organizer=row.get("organizer") or "",
            link=row.get("link") or "",
            tags=list(row.get("tags") or []),
            item_type=item_type,
        )
    if item_type is ItemType.SCHOLARSHIP:
        return Scholarship(
            **_base(row),
            amount=row.get("amount") or "",
            deadline=row.get("deadline"),
            organization=row.get("organization") or "",
            link=row.get("link") or "",
            tags=list(row.get("tags") or []),
        )
    raise TypeError(f"Unsupported item type: {item_type!r}")


def card_metadata(record: Listing) -> Dict[str, Any]:
    """
    Extract what a listing card shows: a subtitle, tag chips, a date and an
    optional outbound link.
    """
    if isinstance(record, Project):
        return {
            "subtitle": record.creator.name if record.creator else "",
            "tags": record.skill_tags,
            "date": record.deadline,
            "link": record.external_links[0].url if record.external_links else None,
            "extra": ", ".join(record.roles_needed),
        }
    if isinstance(record, Gig):
        return {
            "subtitle": record.poster.name if record.poster else "",
            "tags": record.tags,
            "date": None,
            "link": None,
            "extra": " · ".join(x for x in (record.gig_type.value, record.rate, record.duration) if x),
        }
    if isinstance(record, Event):
        return {
            "subtitle": record.organizer,
            "tags": record.tags,
            "date": record.date,
            "link": record.link or None,
            "extra": record.location,
        }
    if isinstance(record, Scholarship):
        return {
            "subtitle": record.organization,
            "tags": record.tags,
            "date": record.deadline,
            "link": record.link or None,
            "extra": record.amount,
        }
    raise TypeError(f"Not a listing record: {type(record).__name__}")
