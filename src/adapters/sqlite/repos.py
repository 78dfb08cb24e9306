import json
import re
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any, Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel

from src.core.ports.db import IntegrityViolationError
from src.domain.entities import (
    Addon,
    ArtPiece,
    BlacklistedUser,
    BlogPost,
    Character,
    CharacterRelationship,
    Faction,
    FactionMembership,
    GalleryItem,
    Location,
    Outfit,
    OutfitType,
    Picture,
    RelationshipType,
    ResourceUrl,
    Service,
    ServiceAddonLink,
    Story,
    Style,
    World,
    WritingPiece,
)

T = TypeVar("T", bound=BaseModel)

# Trigger messages are bare snake_case codes; driver messages are prose
_TRIGGER_CODE = re.compile(r"^[a-z][a-z0-9_]*$")


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def to_db_dt(value: datetime | None) -> str | None:
    """UTC with fixed microsecond precision, so string order is time order."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def parse_dt(s: str | None) -> datetime | None:
    return datetime.fromisoformat(s) if s else None


def integrity_violation(exc: sqlite3.IntegrityError) -> IntegrityViolationError:
    message = str(exc)
    code = message if _TRIGGER_CODE.match(message) else "constraint_violation"
    return IntegrityViolationError(code, message)


class _SQLiteRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Commit on success; roll back and translate integrity errors on failure."""
        conn = self._get_conn()
        try:
            yield conn
            conn.commit()
        except sqlite3.IntegrityError as exc:
            conn.rollback()
            raise integrity_violation(exc) from exc
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _fetch_one(self, sql: str, params: tuple = ()) -> dict[str, Any] | None:
        conn = self._get_conn()
        try:
            return conn.execute(sql, params).fetchone()
        finally:
            conn.close()

    def _fetch_all(self, sql: str, params: tuple = ()) -> list[dict[str, Any]]:
        conn = self._get_conn()
        try:
            return conn.execute(sql, params).fetchall()
        finally:
            conn.close()

    def _fetch_page(
        self, sql: str, count_sql: str, params: tuple, offset: int, limit: int
    ) -> tuple[list[dict[str, Any]], int]:
        conn = self._get_conn()
        try:
            total = conn.execute(count_sql, params).fetchone()["n"]
            rows = conn.execute(f"{sql} LIMIT ? OFFSET ?", (*params, limit, offset)).fetchall()
            return rows, total
        finally:
            conn.close()


# --- Commission catalog ---


class SQLiteServiceRepo(_SQLiteRepo):
    @staticmethod
    def _row_to_service(row: dict[str, Any]) -> Service:
        return Service(
            service_id=UUID(row["service_id"]),
            name=row["name"],
            slug=row["slug"],
            description=row["description"],
            base_price=Decimal(row["base_price"]),
            is_active=bool(row["is_active"]),
            comm_link=row["comm_link"],
            created_at=parse_dt(row["created_at"]),
            updated_at=parse_dt(row["updated_at"]),
        )

    def get_by_id(self, service_id: UUID) -> Service | None:
        row = self._fetch_one("SELECT * FROM services WHERE service_id = ?", (str(service_id),))
        return self._row_to_service(row) if row else None

    def get_by_slug(self, slug: str) -> Service | None:
        row = self._fetch_one("SELECT * FROM services WHERE slug = ?", (slug,))
        return self._row_to_service(row) if row else None

    def list_all(self, active_only: bool = False) -> list[Service]:
        sql = "SELECT * FROM services"
        if active_only:
            sql += " WHERE is_active = 1"
        rows = self._fetch_all(sql + " ORDER BY name COLLATE NOCASE ASC, service_id ASC")
        return [self._row_to_service(r) for r in rows]

    def save(self, service: Service) -> Service:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO services (
                    service_id, name, slug, description, base_price,
                    is_active, comm_link, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(service_id) DO UPDATE SET
                    name=excluded.name,
                    slug=excluded.slug,
                    description=excluded.description,
                    base_price=excluded.base_price,
                    is_active=excluded.is_active,
                    comm_link=excluded.comm_link,
                    updated_at=excluded.updated_at
            """,
                (
                    str(service.service_id),
                    service.name,
                    service.slug,
                    service.description,
                    str(service.base_price),
                    int(service.is_active),
                    service.comm_link,
                    to_db_dt(service.created_at),
                    to_db_dt(service.updated_at),
                ),
            )
        return service

    def delete(self, service_id: UUID) -> None:
        with self._transaction() as conn:
            conn.execute("DELETE FROM services WHERE service_id = ?", (str(service_id),))


class SQLiteStyleRepo(_SQLiteRepo):
    @staticmethod
    def _row_to_style(row: dict[str, Any]) -> Style:
        return Style(
            style_id=UUID(row["style_id"]),
            service_id=UUID(row["service_id"]),
            name=row["name"],
            slug=row["slug"],
            description=row["description"],
            created_at=parse_dt(row["created_at"]),
        )

    def get_by_id(self, style_id: UUID) -> Style | None:
        row = self._fetch_one("SELECT * FROM styles WHERE style_id = ?", (str(style_id),))
        return self._row_to_style(row) if row else None

    def get_by_slug(self, service_id: UUID, slug: str) -> Style | None:
        row = self._fetch_one(
            "SELECT * FROM styles WHERE service_id = ? AND slug = ?", (str(service_id), slug)
        )
        return self._row_to_style(row) if row else None

    def list_for_service(self, service_id: UUID) -> list[Style]:
        rows = self._fetch_all(
            "SELECT * FROM styles WHERE service_id = ? ORDER BY name COLLATE NOCASE ASC",
            (str(service_id),),
        )
        return [self._row_to_style(r) for r in rows]

    def save(self, style: Style) -> Style:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO styles (style_id, service_id, name, slug, description, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(style_id) DO UPDATE SET
                    name=excluded.name,
                    slug=excluded.slug,
                    description=excluded.description
            """,
                (
                    str(style.style_id),
                    str(style.service_id),
                    style.name,
                    style.slug,
                    style.description,
                    to_db_dt(style.created_at),
                ),
            )
        return style

    def delete(self, style_id: UUID) -> None:
        with self._transaction() as conn:
            conn.execute("DELETE FROM styles WHERE style_id = ?", (str(style_id),))


class SQLitePictureRepo(_SQLiteRepo):
    @staticmethod
    def _row_to_picture(row: dict[str, Any]) -> Picture:
        return Picture(
            picture_id=UUID(row["picture_id"]),
            service_id=UUID(row["service_id"]),
            style_id=UUID(row["style_id"]) if row["style_id"] else None,
            image_url=row["image_url"],
            caption=row["caption"],
            is_primary_example=bool(row["is_primary_example"]),
            uploaded_at=parse_dt(row["uploaded_at"]),
        )

    def get_by_id(self, picture_id: UUID) -> Picture | None:
        row = self._fetch_one("SELECT * FROM pictures WHERE picture_id = ?", (str(picture_id),))
        return self._row_to_picture(row) if row else None

    def list_for_service(self, service_id: UUID) -> list[Picture]:
        rows = self._fetch_all(
            "SELECT * FROM pictures WHERE service_id = ? ORDER BY uploaded_at DESC, picture_id",
            (str(service_id),),
        )
        return [self._row_to_picture(r) for r in rows]

    def list_for_style(self, style_id: UUID) -> list[Picture]:
        rows = self._fetch_all(
            "SELECT * FROM pictures WHERE style_id = ? ORDER BY uploaded_at DESC, picture_id",
            (str(style_id),),
        )
        return [self._row_to_picture(r) for r in rows]

    def save(self, picture: Picture) -> Picture:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO pictures (
                    picture_id, service_id, style_id, image_url, caption,
                    is_primary_example, uploaded_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(picture_id) DO UPDATE SET
                    style_id=excluded.style_id,
                    image_url=excluded.image_url,
                    caption=excluded.caption,
                    is_primary_example=excluded.is_primary_example
            """,
                (
                    str(picture.picture_id),
                    str(picture.service_id),
                    str(picture.style_id) if picture.style_id else None,
                    picture.image_url,
                    picture.caption,
                    int(picture.is_primary_example),
                    to_db_dt(picture.uploaded_at),
                ),
            )
        return picture

    def delete(self, picture_id: UUID) -> None:
        with self._transaction() as conn:
            conn.execute("DELETE FROM pictures WHERE picture_id = ?", (str(picture_id),))

    def set_primary(self, style_id: UUID, picture_id: UUID) -> Picture:
        with self._transaction() as conn:
            conn.execute(
                "UPDATE pictures SET is_primary_example = 0 WHERE style_id = ?", (str(style_id),)
            )
            conn.execute(
                """
                UPDATE pictures SET is_primary_example = 1
                WHERE picture_id = ? AND style_id = ?
            """,
                (str(picture_id), str(style_id)),
            )
        picture = self.get_by_id(picture_id)
        if picture is None:
            raise IntegrityViolationError("picture_not_found")
        return picture


class SQLiteAddonRepo(_SQLiteRepo):
    @staticmethod
    def _row_to_addon(row: dict[str, Any]) -> Addon:
        return Addon(
            addon_id=UUID(row["addon_id"]),
            name=row["name"],
            description=row["description"],
            price_impact=Decimal(row["price_impact"]),
            percentage=bool(row["percentage"]),
            is_exclusive=bool(row["is_exclusive"]),
        )

    def get_by_id(self, addon_id: UUID) -> Addon | None:
        row = self._fetch_one("SELECT * FROM addons WHERE addon_id = ?", (str(addon_id),))
        return self._row_to_addon(row) if row else None

    def list_all(self) -> list[Addon]:
        rows = self._fetch_all("SELECT * FROM addons ORDER BY name COLLATE NOCASE ASC, addon_id")
        return [self._row_to_addon(r) for r in rows]

    def save(self, addon: Addon) -> Addon:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO addons (
                    addon_id, name, description, price_impact, percentage, is_exclusive
                ) VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(addon_id) DO UPDATE SET
                    name=excluded.name,
                    description=excluded.description,
                    price_impact=excluded.price_impact,
                    percentage=excluded.percentage,
                    is_exclusive=excluded.is_exclusive
            """,
                (
                    str(addon.addon_id),
                    addon.name,
                    addon.description,
                    str(addon.price_impact),
                    int(addon.percentage),
                    int(addon.is_exclusive),
                ),
            )
        return addon

    def delete(self, addon_id: UUID) -> None:
        with self._transaction() as conn:
            conn.execute("DELETE FROM addons WHERE addon_id = ?", (str(addon_id),))


class SQLiteServiceAddonRepo(_SQLiteRepo):
    """
    Service<->add-on links.

    The exclusivity triggers run inside each write transaction, so a link that
    would give an exclusive add-on a second service aborts the whole call.
    """

    @staticmethod
    def _row_to_link(row: dict[str, Any]) -> ServiceAddonLink:
        return ServiceAddonLink(
            service_id=UUID(row["service_id"]),
            addon_id=UUID(row["addon_id"]),
            addon_is_exclusive=bool(row["addon_is_exclusive"]),
        )

    def list_links(self) -> list[ServiceAddonLink]:
        rows = self._fetch_all("SELECT * FROM service_addons ORDER BY service_id, addon_id")
        return [self._row_to_link(r) for r in rows]

    def list_addon_ids(self, service_id: UUID) -> list[UUID]:
        rows = self._fetch_all(
            "SELECT addon_id FROM service_addons WHERE service_id = ? ORDER BY addon_id",
            (str(service_id),),
        )
        return [UUID(r["addon_id"]) for r in rows]

    def list_service_ids(self, addon_id: UUID) -> list[UUID]:
        rows = self._fetch_all(
            "SELECT service_id FROM service_addons WHERE addon_id = ? ORDER BY service_id",
            (str(addon_id),),
        )
        return [UUID(r["service_id"]) for r in rows]

    def link(self, service_id: UUID, addon_id: UUID) -> ServiceAddonLink:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO service_addons (service_id, addon_id) VALUES (?, ?)
                ON CONFLICT(service_id, addon_id) DO NOTHING
            """,
                (str(service_id), str(addon_id)),
            )
            row = conn.execute(
                "SELECT * FROM service_addons WHERE service_id = ? AND addon_id = ?",
                (str(service_id), str(addon_id)),
            ).fetchone()
        return self._row_to_link(row)

    def unlink(self, service_id: UUID, addon_id: UUID) -> bool:
        with self._transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM service_addons WHERE service_id = ? AND addon_id = ?",
                (str(service_id), str(addon_id)),
            )
            return cursor.rowcount > 0

    def replace_service_addons(self, service_id: UUID, addon_ids: list[UUID]) -> None:
        with self._transaction() as conn:
            conn.execute("DELETE FROM service_addons WHERE service_id = ?", (str(service_id),))
            conn.executemany(
                "INSERT INTO service_addons (service_id, addon_id) VALUES (?, ?)",
                [(str(service_id), str(a)) for a in dict.fromkeys(addon_ids)],
            )

    def replace_addon_services(self, addon_id: UUID, service_ids: list[UUID]) -> None:
        with self._transaction() as conn:
            conn.execute("DELETE FROM service_addons WHERE addon_id = ?", (str(addon_id),))
            conn.executemany(
                "INSERT INTO service_addons (service_id, addon_id) VALUES (?, ?)",
                [(str(s), str(addon_id)) for s in dict.fromkeys(service_ids)],
            )


# --- Blacklist ---


class SQLiteBlacklistRepo(_SQLiteRepo):
    @staticmethod
    def _row_to_entry(row: dict[str, Any]) -> BlacklistedUser:
        return BlacklistedUser(
            id=UUID(row["id"]),
            username=row["username"],
            reasoning=row["reasoning"],
            timestamp=parse_dt(row["timestamp"]),
        )

    def list_page(self, offset: int, limit: int) -> tuple[list[BlacklistedUser], int]:
        rows, total = self._fetch_page(
            "SELECT * FROM blacklisted_users ORDER BY timestamp DESC, id DESC",
            "SELECT COUNT(*) AS n FROM blacklisted_users",
            (),
            offset,
            limit,
        )
        return [self._row_to_entry(r) for r in rows], total

    def get_by_id(self, entry_id: UUID) -> BlacklistedUser | None:
        row = self._fetch_one("SELECT * FROM blacklisted_users WHERE id = ?", (str(entry_id),))
        return self._row_to_entry(row) if row else None

    def get_by_username(self, username: str) -> BlacklistedUser | None:
        # username is declared COLLATE NOCASE
        row = self._fetch_one("SELECT * FROM blacklisted_users WHERE username = ?", (username,))
        return self._row_to_entry(row) if row else None

    def save(self, entry: BlacklistedUser) -> BlacklistedUser:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO blacklisted_users (id, username, reasoning, timestamp)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    username=excluded.username,
                    reasoning=excluded.reasoning
            """,
                (str(entry.id), entry.username, entry.reasoning, to_db_dt(entry.timestamp)),
            )
        return entry

    def delete(self, entry_id: UUID) -> bool:
        with self._transaction() as conn:
            cursor = conn.execute("DELETE FROM blacklisted_users WHERE id = ?", (str(entry_id),))
            return cursor.rowcount > 0


# --- Wiki ---


class SQLiteWikiEntityRepo(_SQLiteRepo, Generic[T]):
    """
    One table of the wiki tree.

    `parent_column` is None for stories; lists are ordered newest first for
    stories and by name for everything else.
    """

    def __init__(
        self,
        db_path: str,
        *,
        table: str,
        model: type[T],
        parent_column: str | None,
        order_by: str,
    ):
        super().__init__(db_path)
        self.table = table
        self.model = model
        self.parent_column = parent_column
        self.order_by = order_by
        self._columns = list(model.model_fields)

    def _row_to_entity(self, row: dict[str, Any]) -> T:
        return self.model.model_validate(row)

    def _to_params(self, entity: T) -> tuple:
        values = []
        for column in self._columns:
            value = getattr(entity, column)
            if isinstance(value, datetime):
                value = to_db_dt(value)
            elif isinstance(value, UUID):
                value = str(value)
            elif isinstance(value, bool):
                value = int(value)
            values.append(value)
        return tuple(values)

    def _parent_clause(self, parent_id: UUID | None) -> tuple[str, tuple]:
        if self.parent_column is None or parent_id is None:
            return "", ()
        return f" AND {self.parent_column} = ?", (str(parent_id),)

    def get_by_id(self, entity_id: UUID, include_deleted: bool = False) -> T | None:
        sql = f"SELECT * FROM {self.table} WHERE id = ?"
        if not include_deleted:
            sql += " AND deleted_at IS NULL"
        row = self._fetch_one(sql, (str(entity_id),))
        return self._row_to_entity(row) if row else None

    def get_by_slug(self, parent_id: UUID | None, slug: str) -> T | None:
        clause, params = self._parent_clause(parent_id)
        row = self._fetch_one(
            f"SELECT * FROM {self.table} WHERE slug = ? AND deleted_at IS NULL{clause}",
            (slug, *params),
        )
        return self._row_to_entity(row) if row else None

    def list_for_parent(self, parent_id: UUID | None) -> list[T]:
        clause, params = self._parent_clause(parent_id)
        rows = self._fetch_all(
            f"SELECT * FROM {self.table} WHERE deleted_at IS NULL{clause} ORDER BY {self.order_by}",
            params,
        )
        return [self._row_to_entity(r) for r in rows]

    def save(self, entity: T) -> T:
        columns = ", ".join(self._columns)
        placeholders = ", ".join("?" for _ in self._columns)
        updates = ", ".join(
            f"{c}=excluded.{c}" for c in self._columns if c not in ("id", "created_at")
        )
        with self._transaction() as conn:
            conn.execute(
                f"""
                INSERT INTO {self.table} ({columns}) VALUES ({placeholders})
                ON CONFLICT(id) DO UPDATE SET {updates}
            """,
                self._to_params(entity),
            )
        return entity

    def soft_delete(self, entity_id: UUID, deleted_at: datetime) -> bool:
        with self._transaction() as conn:
            cursor = conn.execute(
                f"UPDATE {self.table} SET deleted_at = ? WHERE id = ? AND deleted_at IS NULL",
                (to_db_dt(deleted_at), str(entity_id)),
            )
            return cursor.rowcount > 0


def create_wiki_repos(db_path: str) -> dict[str, SQLiteWikiEntityRepo[Any]]:
    """The five wiki tables keyed by kind."""
    by_name = "name COLLATE NOCASE ASC, id ASC"
    return {
        "stories": SQLiteWikiEntityRepo(
            db_path,
            table="stories",
            model=Story,
            parent_column=None,
            order_by="created_at DESC, id DESC",
        ),
        "worlds": SQLiteWikiEntityRepo(
            db_path, table="worlds", model=World, parent_column="story_id", order_by=by_name
        ),
        "characters": SQLiteWikiEntityRepo(
            db_path, table="characters", model=Character, parent_column="world_id", order_by=by_name
        ),
        "factions": SQLiteWikiEntityRepo(
            db_path, table="factions", model=Faction, parent_column="world_id", order_by=by_name
        ),
        "locations": SQLiteWikiEntityRepo(
            db_path, table="locations", model=Location, parent_column="world_id", order_by=by_name
        ),
    }


class SQLiteMembershipRepo(_SQLiteRepo):
    @staticmethod
    def _row_to_membership(row: dict[str, Any]) -> FactionMembership:
        return FactionMembership(
            id=UUID(row["id"]),
            character_id=UUID(row["character_id"]),
            faction_id=UUID(row["faction_id"]),
            role=row["role"],
            rank=row["rank"],
            join_date=row["join_date"],
            leave_date=row["leave_date"],
            is_current=bool(row["is_current"]),
            notes=row["notes"],
            created_at=parse_dt(row["created_at"]),
            updated_at=parse_dt(row["updated_at"]),
        )

    def get_by_id(self, membership_id: UUID) -> FactionMembership | None:
        row = self._fetch_one(
            "SELECT * FROM faction_memberships WHERE id = ?", (str(membership_id),)
        )
        return self._row_to_membership(row) if row else None

    def get_for_pair(self, character_id: UUID, faction_id: UUID) -> FactionMembership | None:
        row = self._fetch_one(
            "SELECT * FROM faction_memberships WHERE character_id = ? AND faction_id = ?",
            (str(character_id), str(faction_id)),
        )
        return self._row_to_membership(row) if row else None

    def list_for_character(self, character_id: UUID) -> list[FactionMembership]:
        rows = self._fetch_all(
            """
            SELECT * FROM faction_memberships WHERE character_id = ?
            ORDER BY is_current DESC, created_at ASC
        """,
            (str(character_id),),
        )
        return [self._row_to_membership(r) for r in rows]

    def list_for_faction(self, faction_id: UUID) -> list[FactionMembership]:
        rows = self._fetch_all(
            """
            SELECT * FROM faction_memberships WHERE faction_id = ?
            ORDER BY is_current DESC, created_at ASC
        """,
            (str(faction_id),),
        )
        return [self._row_to_membership(r) for r in rows]

    def save(self, membership: FactionMembership) -> FactionMembership:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO faction_memberships (
                    id, character_id, faction_id, role, rank, join_date, leave_date,
                    is_current, notes, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    role=excluded.role,
                    rank=excluded.rank,
                    join_date=excluded.join_date,
                    leave_date=excluded.leave_date,
                    is_current=excluded.is_current,
                    notes=excluded.notes,
                    updated_at=excluded.updated_at
            """,
                (
                    str(membership.id),
                    str(membership.character_id),
                    str(membership.faction_id),
                    membership.role,
                    membership.rank,
                    membership.join_date,
                    membership.leave_date,
                    int(membership.is_current),
                    membership.notes,
                    to_db_dt(membership.created_at),
                    to_db_dt(membership.updated_at),
                ),
            )
        return membership

    def delete(self, membership_id: UUID) -> bool:
        with self._transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM faction_memberships WHERE id = ?", (str(membership_id),)
            )
            return cursor.rowcount > 0


class SQLiteGalleryRepo(_SQLiteRepo):
    @staticmethod
    def _row_to_item(row: dict[str, Any]) -> GalleryItem:
        return GalleryItem(
            id=UUID(row["id"]),
            character_id=UUID(row["character_id"]),
            title=row["title"],
            description=row["description"],
            image_url=row["image_url"],
            thumbnail_url=row["thumbnail_url"],
            artist_name=row["artist_name"],
            artist_url=row["artist_url"],
            commission_date=row["commission_date"],
            tags=json.loads(row["tags_json"] or "[]"),
            is_featured=bool(row["is_featured"]),
            display_order=row["display_order"],
            created_at=parse_dt(row["created_at"]),
            updated_at=parse_dt(row["updated_at"]),
            deleted_at=parse_dt(row["deleted_at"]),
        )

    def get_by_id(self, item_id: UUID, include_deleted: bool = False) -> GalleryItem | None:
        sql = "SELECT * FROM character_gallery WHERE id = ?"
        if not include_deleted:
            sql += " AND deleted_at IS NULL"
        row = self._fetch_one(sql, (str(item_id),))
        return self._row_to_item(row) if row else None

    def list_for_character(self, character_id: UUID) -> list[GalleryItem]:
        rows = self._fetch_all(
            """
            SELECT * FROM character_gallery
            WHERE character_id = ? AND deleted_at IS NULL
            ORDER BY display_order ASC, created_at ASC, id ASC
        """,
            (str(character_id),),
        )
        return [self._row_to_item(r) for r in rows]

    def save(self, item: GalleryItem) -> GalleryItem:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO character_gallery (
                    id, character_id, title, description, image_url, thumbnail_url,
                    artist_name, artist_url, commission_date, tags_json, is_featured,
                    display_order, created_at, updated_at, deleted_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    title=excluded.title,
                    description=excluded.description,
                    image_url=excluded.image_url,
                    thumbnail_url=excluded.thumbnail_url,
                    artist_name=excluded.artist_name,
                    artist_url=excluded.artist_url,
                    commission_date=excluded.commission_date,
                    tags_json=excluded.tags_json,
                    is_featured=excluded.is_featured,
                    display_order=excluded.display_order,
                    updated_at=excluded.updated_at,
                    deleted_at=excluded.deleted_at
            """,
                (
                    str(item.id),
                    str(item.character_id),
                    item.title,
                    item.description,
                    item.image_url,
                    item.thumbnail_url,
                    item.artist_name,
                    item.artist_url,
                    item.commission_date,
                    json.dumps(item.tags),
                    int(item.is_featured),
                    item.display_order,
                    to_db_dt(item.created_at),
                    to_db_dt(item.updated_at),
                    to_db_dt(item.deleted_at),
                ),
            )
        return item

    def soft_delete(self, item_id: UUID, deleted_at: datetime) -> bool:
        with self._transaction() as conn:
            cursor = conn.execute(
                "UPDATE character_gallery SET deleted_at = ? WHERE id = ? AND deleted_at IS NULL",
                (to_db_dt(deleted_at), str(item_id)),
            )
            return cursor.rowcount > 0

    def set_order(self, ordered_ids: list[UUID], updated_at: datetime) -> None:
        stamp = to_db_dt(updated_at)
        with self._transaction() as conn:
            conn.executemany(
                "UPDATE character_gallery SET display_order = ?, updated_at = ? WHERE id = ?",
                [(position, stamp, str(item_id)) for position, item_id in enumerate(ordered_ids)],
            )


class SQLiteOutfitTypeRepo(_SQLiteRepo):
    @staticmethod
    def _row_to_type(row: dict[str, Any]) -> OutfitType:
        return OutfitType(
            id=UUID(row["id"]),
            name=row["name"],
            slug=row["slug"],
            description=row["description"],
            icon=row["icon"],
            color=row["color"],
            is_default=bool(row["is_default"]),
            created_at=parse_dt(row["created_at"]),
            updated_at=parse_dt(row["updated_at"]),
        )

    def get_by_id(self, type_id: UUID) -> OutfitType | None:
        row = self._fetch_one("SELECT * FROM outfit_types WHERE id = ?", (str(type_id),))
        return self._row_to_type(row) if row else None

    def get_by_slug(self, slug: str) -> OutfitType | None:
        row = self._fetch_one("SELECT * FROM outfit_types WHERE slug = ?", (slug,))
        return self._row_to_type(row) if row else None

    def list_all(self) -> list[OutfitType]:
        rows = self._fetch_all("SELECT * FROM outfit_types ORDER BY name COLLATE NOCASE ASC")
        return [self._row_to_type(r) for r in rows]

    def save(self, outfit_type: OutfitType) -> OutfitType:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO outfit_types (
                    id, name, slug, description, icon, color, is_default, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name=excluded.name,
                    description=excluded.description,
                    icon=excluded.icon,
                    color=excluded.color,
                    is_default=excluded.is_default,
                    updated_at=excluded.updated_at
            """,
                (
                    str(outfit_type.id),
                    outfit_type.name,
                    outfit_type.slug,
                    outfit_type.description,
                    outfit_type.icon,
                    outfit_type.color,
                    int(outfit_type.is_default),
                    to_db_dt(outfit_type.created_at),
                    to_db_dt(outfit_type.updated_at),
                ),
            )
        return outfit_type

    def delete(self, type_id: UUID) -> bool:
        # character_outfits.outfit_type_id is ON DELETE SET NULL
        with self._transaction() as conn:
            cursor = conn.execute("DELETE FROM outfit_types WHERE id = ?", (str(type_id),))
            return cursor.rowcount > 0


class SQLiteOutfitRepo(_SQLiteRepo):
    @staticmethod
    def _row_to_outfit(row: dict[str, Any]) -> Outfit:
        return Outfit(
            id=UUID(row["id"]),
            character_id=UUID(row["character_id"]),
            outfit_type_id=UUID(row["outfit_type_id"]) if row["outfit_type_id"] else None,
            name=row["name"],
            description=row["description"],
            image_url=row["image_url"],
            reference_images=json.loads(row["reference_images_json"] or "[]"),
            color_palette=row["color_palette"],
            notes=row["notes"],
            is_default=bool(row["is_default"]),
            display_order=row["display_order"],
            created_at=parse_dt(row["created_at"]),
            updated_at=parse_dt(row["updated_at"]),
            deleted_at=parse_dt(row["deleted_at"]),
        )

    def get_by_id(self, outfit_id: UUID, include_deleted: bool = False) -> Outfit | None:
        sql = "SELECT * FROM character_outfits WHERE id = ?"
        if not include_deleted:
            sql += " AND deleted_at IS NULL"
        row = self._fetch_one(sql, (str(outfit_id),))
        return self._row_to_outfit(row) if row else None

    def list_for_character(self, character_id: UUID) -> list[Outfit]:
        rows = self._fetch_all(
            """
            SELECT * FROM character_outfits
            WHERE character_id = ? AND deleted_at IS NULL
            ORDER BY display_order ASC, name COLLATE NOCASE ASC, id ASC
        """,
            (str(character_id),),
        )
        return [self._row_to_outfit(r) for r in rows]

    def save(self, outfit: Outfit) -> Outfit:
        with self._transaction() as conn:
            if outfit.is_default:
                conn.execute(
                    """
                    UPDATE character_outfits SET is_default = 0
                    WHERE character_id = ? AND id != ? AND is_default = 1
                """,
                    (str(outfit.character_id), str(outfit.id)),
                )
            conn.execute(
                """
                INSERT INTO character_outfits (
                    id, character_id, outfit_type_id, name, description, image_url,
                    reference_images_json, color_palette, notes, is_default, display_order,
                    created_at, updated_at, deleted_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    outfit_type_id=excluded.outfit_type_id,
                    name=excluded.name,
                    description=excluded.description,
                    image_url=excluded.image_url,
                    reference_images_json=excluded.reference_images_json,
                    color_palette=excluded.color_palette,
                    notes=excluded.notes,
                    is_default=excluded.is_default,
                    display_order=excluded.display_order,
                    updated_at=excluded.updated_at,
                    deleted_at=excluded.deleted_at
            """,
                (
                    str(outfit.id),
                    str(outfit.character_id),
                    str(outfit.outfit_type_id) if outfit.outfit_type_id else None,
                    outfit.name,
                    outfit.description,
                    outfit.image_url,
                    json.dumps(outfit.reference_images),
                    outfit.color_palette,
                    outfit.notes,
                    int(outfit.is_default),
                    outfit.display_order,
                    to_db_dt(outfit.created_at),
                    to_db_dt(outfit.updated_at),
                    to_db_dt(outfit.deleted_at),
                ),
            )
        return outfit

    def soft_delete(self, outfit_id: UUID, deleted_at: datetime) -> bool:
        with self._transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE character_outfits SET deleted_at = ?, is_default = 0
                WHERE id = ? AND deleted_at IS NULL
            """,
                (to_db_dt(deleted_at), str(outfit_id)),
            )
            return cursor.rowcount > 0


# --- Relationships ---


class SQLiteRelationshipTypeRepo(_SQLiteRepo):
    @staticmethod
    def _row_to_type(row: dict[str, Any]) -> RelationshipType:
        return RelationshipType(
            id=UUID(row["id"]),
            name=row["name"],
            slug=row["slug"],
            reverse_name=row["reverse_name"],
            is_mutual=bool(row["is_mutual"]),
            category=row["category"],
            color=row["color"],
            description=row["description"],
            created_at=parse_dt(row["created_at"]),
        )

    def get_by_id(self, type_id: UUID) -> RelationshipType | None:
        row = self._fetch_one("SELECT * FROM relationship_types WHERE id = ?", (str(type_id),))
        return self._row_to_type(row) if row else None

    def get_by_slug(self, slug: str) -> RelationshipType | None:
        row = self._fetch_one("SELECT * FROM relationship_types WHERE slug = ?", (slug,))
        return self._row_to_type(row) if row else None

    def list_all(self) -> list[RelationshipType]:
        rows = self._fetch_all(
            "SELECT * FROM relationship_types ORDER BY category, name COLLATE NOCASE ASC"
        )
        return [self._row_to_type(r) for r in rows]

    def save(self, relationship_type: RelationshipType) -> RelationshipType:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO relationship_types (
                    id, name, slug, reverse_name, is_mutual, category, color,
                    description, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name=excluded.name,
                    reverse_name=excluded.reverse_name,
                    is_mutual=excluded.is_mutual,
                    category=excluded.category,
                    color=excluded.color,
                    description=excluded.description
            """,
                (
                    str(relationship_type.id),
                    relationship_type.name,
                    relationship_type.slug,
                    relationship_type.reverse_name,
                    int(relationship_type.is_mutual),
                    relationship_type.category,
                    relationship_type.color,
                    relationship_type.description,
                    to_db_dt(relationship_type.created_at),
                ),
            )
        return relationship_type

    def delete(self, type_id: UUID) -> bool:
        with self._transaction() as conn:
            cursor = conn.execute("DELETE FROM relationship_types WHERE id = ?", (str(type_id),))
            return cursor.rowcount > 0


class SQLiteRelationshipRepo(_SQLiteRepo):
    @staticmethod
    def _row_to_relationship(row: dict[str, Any]) -> CharacterRelationship:
        return CharacterRelationship(
            id=UUID(row["id"]),
            character_a_id=UUID(row["character_a_id"]),
            character_b_id=UUID(row["character_b_id"]),
            relationship_type_id=UUID(row["relationship_type_id"]),
            description=row["description"],
            is_mutual=bool(row["is_mutual"]),
            created_at=parse_dt(row["created_at"]),
            updated_at=parse_dt(row["updated_at"]),
        )

    def get_by_id(self, relationship_id: UUID) -> CharacterRelationship | None:
        row = self._fetch_one(
            "SELECT * FROM character_relationships WHERE id = ?", (str(relationship_id),)
        )
        return self._row_to_relationship(row) if row else None

    def list_for_character(self, character_id: UUID) -> list[CharacterRelationship]:
        rows = self._fetch_all(
            """
            SELECT * FROM character_relationships
            WHERE character_a_id = ? OR character_b_id = ?
            ORDER BY created_at ASC
        """,
            (str(character_id), str(character_id)),
        )
        return [self._row_to_relationship(r) for r in rows]

    def list_between(self, a: UUID, b: UUID) -> list[CharacterRelationship]:
        rows = self._fetch_all(
            """
            SELECT * FROM character_relationships
            WHERE (character_a_id = ? AND character_b_id = ?)
               OR (character_a_id = ? AND character_b_id = ?)
        """,
            (str(a), str(b), str(b), str(a)),
        )
        return [self._row_to_relationship(r) for r in rows]

    def save(self, relationship: CharacterRelationship) -> CharacterRelationship:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO character_relationships (
                    id, character_a_id, character_b_id, relationship_type_id,
                    description, is_mutual, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    relationship_type_id=excluded.relationship_type_id,
                    description=excluded.description,
                    is_mutual=excluded.is_mutual,
                    updated_at=excluded.updated_at
            """,
                (
                    str(relationship.id),
                    str(relationship.character_a_id),
                    str(relationship.character_b_id),
                    str(relationship.relationship_type_id),
                    relationship.description,
                    int(relationship.is_mutual),
                    to_db_dt(relationship.created_at),
                    to_db_dt(relationship.updated_at),
                ),
            )
        return relationship

    def delete(self, relationship_id: UUID) -> bool:
        with self._transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM character_relationships WHERE id = ?", (str(relationship_id),)
            )
            return cursor.rowcount > 0


class WikiCharacterLookup:
    """Adapts the characters table to the relationships component's lookup port."""

    def __init__(self, characters: SQLiteWikiEntityRepo[Character]):
        self._characters = characters

    def get_character(self, character_id: UUID) -> Character | None:
        return self._characters.get_by_id(character_id)


# --- Blog & portfolio ---


class SQLiteBlogRepo(_SQLiteRepo):
    @staticmethod
    def _row_to_post(row: dict[str, Any]) -> BlogPost:
        return BlogPost(
            id=UUID(row["id"]),
            title=row["title"],
            slug=row["slug"],
            excerpt=row["excerpt"],
            content=row["content"],
            published_at=parse_dt(row["published_at"]),
            created_at=parse_dt(row["created_at"]),
            updated_at=parse_dt(row["updated_at"]),
        )

    def get_by_id(self, post_id: UUID) -> BlogPost | None:
        row = self._fetch_one("SELECT * FROM blog_posts WHERE id = ?", (str(post_id),))
        return self._row_to_post(row) if row else None

    def get_by_slug(self, slug: str) -> BlogPost | None:
        row = self._fetch_one("SELECT * FROM blog_posts WHERE slug = ?", (slug,))
        return self._row_to_post(row) if row else None

    def list_published_page(
        self, now: datetime, offset: int, limit: int
    ) -> tuple[list[BlogPost], int]:
        where = "WHERE published_at IS NOT NULL AND published_at <= ?"
        rows, total = self._fetch_page(
            f"SELECT * FROM blog_posts {where} ORDER BY published_at DESC, id DESC",
            f"SELECT COUNT(*) AS n FROM blog_posts {where}",
            (to_db_dt(now),),
            offset,
            limit,
        )
        return [self._row_to_post(r) for r in rows], total

    def list_all_page(self, offset: int, limit: int) -> tuple[list[BlogPost], int]:
        rows, total = self._fetch_page(
            "SELECT * FROM blog_posts ORDER BY created_at DESC, id DESC",
            "SELECT COUNT(*) AS n FROM blog_posts",
            (),
            offset,
            limit,
        )
        return [self._row_to_post(r) for r in rows], total

    def save(self, post: BlogPost) -> BlogPost:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO blog_posts (
                    id, title, slug, excerpt, content, published_at, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    title=excluded.title,
                    excerpt=excluded.excerpt,
                    content=excluded.content,
                    published_at=excluded.published_at,
                    updated_at=excluded.updated_at
            """,
                (
                    str(post.id),
                    post.title,
                    post.slug,
                    post.excerpt,
                    post.content,
                    to_db_dt(post.published_at),
                    to_db_dt(post.created_at),
                    to_db_dt(post.updated_at),
                ),
            )
        return post

    def delete(self, post_id: UUID) -> bool:
        with self._transaction() as conn:
            cursor = conn.execute("DELETE FROM blog_posts WHERE id = ?", (str(post_id),))
            return cursor.rowcount > 0


class SQLiteArtRepo(_SQLiteRepo):
    @staticmethod
    def _row_to_piece(row: dict[str, Any]) -> ArtPiece:
        return ArtPiece(
            id=UUID(row["id"]),
            title=row["title"],
            slug=row["slug"],
            description=row["description"],
            image_url=row["image_url"],
            thumbnail_url=row["thumbnail_url"],
            year=row["year"],
            tags=json.loads(row["tags_json"] or "[]"),
            is_featured=bool(row["is_featured"]),
            display_order=row["display_order"],
            artist_name=row["artist_name"],
            artist_url=row["artist_url"],
            created_at=parse_dt(row["created_at"]),
            updated_at=parse_dt(row["updated_at"]),
        )

    def get_by_id(self, piece_id: UUID) -> ArtPiece | None:
        row = self._fetch_one("SELECT * FROM art_pieces WHERE id = ?", (str(piece_id),))
        return self._row_to_piece(row) if row else None

    def get_by_slug(self, slug: str) -> ArtPiece | None:
        row = self._fetch_one("SELECT * FROM art_pieces WHERE slug = ?", (slug,))
        return self._row_to_piece(row) if row else None

    def list_all(self, featured_only: bool = False) -> list[ArtPiece]:
        where = "WHERE is_featured = 1" if featured_only else ""
        rows = self._fetch_all(
            f"SELECT * FROM art_pieces {where} ORDER BY display_order ASC, created_at DESC"
        )
        return [self._row_to_piece(r) for r in rows]

    def save(self, piece: ArtPiece) -> ArtPiece:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO art_pieces (
                    id, title, slug, description, image_url, thumbnail_url, year,
                    tags_json, is_featured, display_order, artist_name, artist_url,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    title=excluded.title,
                    description=excluded.description,
                    image_url=excluded.image_url,
                    thumbnail_url=excluded.thumbnail_url,
                    year=excluded.year,
                    tags_json=excluded.tags_json,
                    is_featured=excluded.is_featured,
                    display_order=excluded.display_order,
                    artist_name=excluded.artist_name,
                    artist_url=excluded.artist_url,
                    updated_at=excluded.updated_at
            """,
                (
                    str(piece.id),
                    piece.title,
                    piece.slug,
                    piece.description,
                    piece.image_url,
                    piece.thumbnail_url,
                    piece.year,
                    json.dumps(piece.tags),
                    int(piece.is_featured),
                    piece.display_order,
                    piece.artist_name,
                    piece.artist_url,
                    to_db_dt(piece.created_at),
                    to_db_dt(piece.updated_at),
                ),
            )
        return piece

    def delete(self, piece_id: UUID) -> bool:
        with self._transaction() as conn:
            cursor = conn.execute("DELETE FROM art_pieces WHERE id = ?", (str(piece_id),))
            return cursor.rowcount > 0


class SQLiteWritingRepo(_SQLiteRepo):
    @staticmethod
    def _row_to_piece(row: dict[str, Any]) -> WritingPiece:
        return WritingPiece(
            id=UUID(row["id"]),
            title=row["title"],
            slug=row["slug"],
            excerpt=row["excerpt"],
            content=row["content"],
            cover_image=row["cover_image"],
            year=row["year"],
            tags=json.loads(row["tags_json"] or "[]"),
            is_featured=bool(row["is_featured"]),
            display_order=row["display_order"],
            word_count=row["word_count"],
            created_at=parse_dt(row["created_at"]),
            updated_at=parse_dt(row["updated_at"]),
        )

    def get_by_id(self, piece_id: UUID) -> WritingPiece | None:
        row = self._fetch_one("SELECT * FROM writing_pieces WHERE id = ?", (str(piece_id),))
        return self._row_to_piece(row) if row else None

    def get_by_slug(self, slug: str) -> WritingPiece | None:
        row = self._fetch_one("SELECT * FROM writing_pieces WHERE slug = ?", (slug,))
        return self._row_to_piece(row) if row else None

    def list_all(self, featured_only: bool = False) -> list[WritingPiece]:
        where = "WHERE is_featured = 1" if featured_only else ""
        rows = self._fetch_all(
            f"SELECT * FROM writing_pieces {where} ORDER BY display_order ASC, created_at DESC"
        )
        return [self._row_to_piece(r) for r in rows]

    def save(self, piece: WritingPiece) -> WritingPiece:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO writing_pieces (
                    id, title, slug, excerpt, content, cover_image, year, tags_json,
                    is_featured, display_order, word_count, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    title=excluded.title,
                    excerpt=excluded.excerpt,
                    content=excluded.content,
                    cover_image=excluded.cover_image,
                    year=excluded.year,
                    tags_json=excluded.tags_json,
                    is_featured=excluded.is_featured,
                    display_order=excluded.display_order,
                    word_count=excluded.word_count,
                    updated_at=excluded.updated_at
            """,
                (
                    str(piece.id),
                    piece.title,
                    piece.slug,
                    piece.excerpt,
                    piece.content,
                    piece.cover_image,
                    piece.year,
                    json.dumps(piece.tags),
                    int(piece.is_featured),
                    piece.display_order,
                    piece.word_count,
                    to_db_dt(piece.created_at),
                    to_db_dt(piece.updated_at),
                ),
            )
        return piece

    def delete(self, piece_id: UUID) -> bool:
        with self._transaction() as conn:
            cursor = conn.execute("DELETE FROM writing_pieces WHERE id = ?", (str(piece_id),))
            return cursor.rowcount > 0


# --- Signed URL cache ---


class SQLiteResourceUrlRepo(_SQLiteRepo):
    def get_many(self, paths: list[str]) -> dict[str, ResourceUrl]:
        if not paths:
            return {}
        placeholders = ", ".join("?" for _ in paths)
        rows = self._fetch_all(
            f"SELECT * FROM resource_urls WHERE resource_path IN ({placeholders})", tuple(paths)
        )
        return {
            r["resource_path"]: ResourceUrl(
                resource_path=r["resource_path"],
                url=r["url"],
                expired_at=parse_dt(r["expired_at"]),
            )
            for r in rows
        }

    def upsert_many(self, entries: list[ResourceUrl]) -> None:
        if not entries:
            return
        with self._transaction() as conn:
            conn.executemany(
                """
                INSERT INTO resource_urls (resource_path, url, expired_at) VALUES (?, ?, ?)
                ON CONFLICT(resource_path) DO UPDATE SET
                    url=excluded.url,
                    expired_at=excluded.expired_at
            """,
                [(e.resource_path, e.url, to_db_dt(e.expired_at)) for e in entries],
            )

    def delete_expired(self, now: datetime) -> int:
        with self._transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM resource_urls WHERE expired_at <= ?", (to_db_dt(now),)
            )
            return cursor.rowcount
