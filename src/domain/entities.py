from datetime import UTC, datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

def utcnow() -> datetime:
    return datetime.now(UTC)

# --- Enums / Literals ---
Visibility = Literal["public", "unlisted", "private"]
CharacterStatus = Literal["alive", "deceased", "unknown", "missing", "imprisoned"]
AddonFilter = Literal["all", "exclusive", "shared"]

# --- Admin ---

class AdminUser(BaseModel):
    email: str
    display_name: str = "Admin"

# --- Commission catalog ---

class Service(BaseModel):
    service_id: UUID = Field(default_factory=uuid4)
    name: str
    slug: str
    description: str | None = None
    base_price: Decimal = Decimal("0")
    is_active: bool = True
    comm_link: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

class Style(BaseModel):
    style_id: UUID = Field(default_factory=uuid4)
    service_id: UUID
    name: str
    slug: str
    description: str | None = None
    created_at: datetime = Field(default_factory=utcnow)

class Picture(BaseModel):
    picture_id: UUID = Field(default_factory=uuid4)
    service_id: UUID
    style_id: UUID | None = None  # None = service-level picture
    image_url: str
    caption: str | None = None
    is_primary_example: bool = False
    uploaded_at: datetime = Field(default_factory=utcnow)

class Addon(BaseModel):
    addon_id: UUID = Field(default_factory=uuid4)
    name: str
    description: str | None = None
    price_impact: Decimal = Decimal("0")
    percentage: bool = False  # price_impact is a % of base_price rather than a flat amount
    is_exclusive: bool = False

class ServiceAddonLink(BaseModel):
    service_id: UUID
    addon_id: UUID
    addon_is_exclusive: bool = False

class ServiceDetails(BaseModel):
    """Service with its children, as shown on the public commission page."""

    service: Service
    addons: list[Addon] = Field(default_factory=list)
    styles: list[Style] = Field(default_factory=list)
    pictures: list[Picture] = Field(default_factory=list)

class BlacklistedUser(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    username: str
    reasoning: str | None = None
    timestamp: datetime = Field(default_factory=utcnow)

# --- Wiki ---

class Story(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    title: str
    slug: str
    description: str | None = None
    summary: str | None = None
    content: str | None = None
    is_published: bool = False
    visibility: Visibility = "public"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    deleted_at: datetime | None = None

class World(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    story_id: UUID
    name: str
    slug: str
    description: str | None = None
    summary: str | None = None
    content: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    deleted_at: datetime | None = None

class Character(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    world_id: UUID
    name: str
    slug: str
    nickname: str | None = None
    title: str | None = None
    pronouns: str | None = None
    species: str | None = None
    occupation: str | None = None
    status: CharacterStatus | None = None
    personality_summary: str | None = None
    backstory: str | None = None
    profile_image: str | None = None
    banner_image: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    deleted_at: datetime | None = None

class Faction(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    world_id: UUID
    name: str
    slug: str
    description: str | None = None
    summary: str | None = None
    faction_type: str | None = None
    logo_url: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    deleted_at: datetime | None = None

class Location(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    world_id: UUID
    parent_location_id: UUID | None = None
    name: str
    slug: str
    location_type: str | None = None
    description: str | None = None
    summary: str | None = None
    image_url: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    deleted_at: datetime | None = None

class FactionMembership(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    character_id: UUID
    faction_id: UUID
    role: str | None = None
    rank: str | None = None
    join_date: str | None = None  # free text, e.g. "Year 3 of the Long Night"
    leave_date: str | None = None
    is_current: bool = True
    notes: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

class GalleryItem(BaseModel):
    """One commissioned or reference picture of a character."""

    id: UUID = Field(default_factory=uuid4)
    character_id: UUID
    title: str
    description: str | None = None
    image_url: str
    thumbnail_url: str | None = None
    artist_name: str | None = None
    artist_url: str | None = None
    commission_date: str | None = None
    tags: list[str] = Field(default_factory=list)
    is_featured: bool = False
    display_order: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    deleted_at: datetime | None = None

class OutfitType(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    slug: str
    description: str | None = None
    icon: str | None = None
    color: str | None = None
    is_default: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

class Outfit(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    character_id: UUID
    outfit_type_id: UUID | None = None
    name: str
    description: str | None = None
    image_url: str | None = None
    reference_images: list[str] = Field(default_factory=list)
    color_palette: str | None = None
    notes: str | None = None
    is_default: bool = False  # at most one per character
    display_order: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    deleted_at: datetime | None = None

class RelationshipType(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    slug: str
    reverse_name: str | None = None
    is_mutual: bool = True
    category: str | None = None
    color: str | None = None
    description: str | None = None
    created_at: datetime = Field(default_factory=utcnow)

class CharacterRelationship(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    character_a_id: UUID
    character_b_id: UUID
    relationship_type_id: UUID
    description: str | None = None
    is_mutual: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

# --- Blog & portfolio ---

class BlogPost(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    title: str
    slug: str
    excerpt: str | None = None
    content: str
    published_at: datetime | None = None  # None = draft, future = scheduled
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

class ArtPiece(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    title: str
    slug: str
    description: str | None = None
    image_url: str
    thumbnail_url: str | None = None
    year: int | None = None
    tags: list[str] = Field(default_factory=list)
    is_featured: bool = False
    display_order: int = 0
    artist_name: str | None = None
    artist_url: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

class WritingPiece(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    title: str
    slug: str
    excerpt: str | None = None
    content: str
    cover_image: str | None = None
    year: int | None = None
    tags: list[str] = Field(default_factory=list)
    is_featured: bool = False
    display_order: int = 0
    word_count: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

# --- Storage ---

class ResourceUrl(BaseModel):
    """Cached signed read URL for a storage path."""

    resource_path: str
    url: str
    expired_at: datetime
