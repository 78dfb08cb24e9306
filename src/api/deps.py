import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from src.adapters.clock import SystemClock
from src.adapters.local_storage import LocalObjectStorage
from src.adapters.sqlite.repos import (
    SQLiteAddonRepo,
    SQLiteArtRepo,
    SQLiteBlacklistRepo,
    SQLiteBlogRepo,
    SQLiteGalleryRepo,
    SQLiteMembershipRepo,
    SQLiteOutfitRepo,
    SQLiteOutfitTypeRepo,
    SQLitePictureRepo,
    SQLiteRelationshipRepo,
    SQLiteRelationshipTypeRepo,
    SQLiteResourceUrlRepo,
    SQLiteServiceAddonRepo,
    SQLiteServiceRepo,
    SQLiteStyleRepo,
    SQLiteWritingRepo,
    WikiCharacterLookup,
    create_wiki_repos,
)
from src.api.auth_utils import read_admin_subject

# Components are stateless; each request builds its service from repos/adapters.
from src.components.blacklist import BlacklistService
from src.components.blog import BlogService
from src.components.commissions import CommissionRepos, CommissionService
from src.components.portfolio import PortfolioService
from src.components.relationships import RelationshipService
from src.components.wiki import WikiRepos, WikiService
from src.core.services.query_cache import QueryCache
from src.core.services.signed_urls import SignedUrlConfig, SignedUrlService
from src.domain.entities import AdminUser
from src.rules.loader import load_rules
from src.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("EXO_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "exocorpse.db")
        self.storage_dir = self.data_dir / "storage"
        self.base_url = os.environ.get("EXO_BASE_URL", "http://localhost:8000")
        self.secret_key = os.environ.get("EXO_SECRET_KEY", "dev-secret-unsafe")
        self.admin_email = os.environ.get("EXO_ADMIN_EMAIL", "admin@example.com")
        self.admin_password_hash = os.environ.get("EXO_ADMIN_PASSWORD_HASH", "")
        self.rules_path = Path(os.environ.get("EXO_RULES_PATH", self.base_dir / "rules.yaml"))
        self.cors_origins = [
            o.strip()
            for o in os.environ.get(
                "EXO_CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
            ).split(",")
            if o.strip()
        ]


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return load_rules(settings.rules_path)


# --- Shared adapters ---

_clock_instance: SystemClock | None = None


def get_clock() -> SystemClock:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


_query_cache_instance: QueryCache | None = None


def get_query_cache(rules: Rules = Depends(get_rules)) -> QueryCache:
    """Process-wide cache for the public read endpoints."""
    global _query_cache_instance
    if _query_cache_instance is None:
        _query_cache_instance = QueryCache(ttl_seconds=rules.cache.ttl_seconds)
    return _query_cache_instance


def get_storage(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> LocalObjectStorage:
    return LocalObjectStorage(
        settings.storage_dir,
        secret_key=settings.secret_key,
        base_url=settings.base_url,
        upload_url_expiration=rules.storage.upload_url_expiration,
    )


# --- Repos ---
def get_commission_repos(settings: Settings = Depends(get_settings)) -> CommissionRepos:
    return CommissionRepos(
        services=SQLiteServiceRepo(settings.db_path),
        styles=SQLiteStyleRepo(settings.db_path),
        pictures=SQLitePictureRepo(settings.db_path),
        addons=SQLiteAddonRepo(settings.db_path),
        links=SQLiteServiceAddonRepo(settings.db_path),
    )


def get_wiki_repos(settings: Settings = Depends(get_settings)) -> WikiRepos:
    tables = create_wiki_repos(settings.db_path)
    return WikiRepos(
        stories=tables["stories"],
        worlds=tables["worlds"],
        characters=tables["characters"],
        factions=tables["factions"],
        locations=tables["locations"],
        memberships=SQLiteMembershipRepo(settings.db_path),
        gallery=SQLiteGalleryRepo(settings.db_path),
        outfits=SQLiteOutfitRepo(settings.db_path),
        outfit_types=SQLiteOutfitTypeRepo(settings.db_path),
    )


def get_resource_url_repo(settings: Settings = Depends(get_settings)) -> SQLiteResourceUrlRepo:
    return SQLiteResourceUrlRepo(settings.db_path)


# --- Component Services ---
def get_commission_service(
    repos: CommissionRepos = Depends(get_commission_repos),
    storage: LocalObjectStorage = Depends(get_storage),
    cache: QueryCache = Depends(get_query_cache),
    clock: SystemClock = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> CommissionService:
    return CommissionService(
        repos, storage=storage, cache=cache, time_port=clock, content_rules=rules.content
    )


def get_blacklist_service(
    settings: Settings = Depends(get_settings),
    cache: QueryCache = Depends(get_query_cache),
    clock: SystemClock = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> BlacklistService:
    return BlacklistService(
        SQLiteBlacklistRepo(settings.db_path),
        cache=cache,
        time_port=clock,
        username_max=rules.content.blacklist_username_max,
        default_page_size=rules.pagination.default_page_size,
        max_page_size=rules.pagination.max_page_size,
    )


def get_wiki_service(
    repos: WikiRepos = Depends(get_wiki_repos),
    storage: LocalObjectStorage = Depends(get_storage),
    cache: QueryCache = Depends(get_query_cache),
    clock: SystemClock = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> WikiService:
    return WikiService(
        repos, storage=storage, cache=cache, time_port=clock, content_rules=rules.content
    )


def get_relationship_service(
    settings: Settings = Depends(get_settings),
    wiki_repos: WikiRepos = Depends(get_wiki_repos),
    cache: QueryCache = Depends(get_query_cache),
    clock: SystemClock = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> RelationshipService:
    return RelationshipService(
        SQLiteRelationshipTypeRepo(settings.db_path),
        SQLiteRelationshipRepo(settings.db_path),
        WikiCharacterLookup(wiki_repos.characters),
        cache=cache,
        time_port=clock,
        content_rules=rules.content,
    )


def get_blog_service(
    settings: Settings = Depends(get_settings),
    cache: QueryCache = Depends(get_query_cache),
    clock: SystemClock = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> BlogService:
    return BlogService(
        SQLiteBlogRepo(settings.db_path),
        cache=cache,
        time_port=clock,
        content_rules=rules.content,
        default_page_size=rules.pagination.default_page_size,
        max_page_size=rules.pagination.max_page_size,
    )


def get_portfolio_service(
    settings: Settings = Depends(get_settings),
    storage: LocalObjectStorage = Depends(get_storage),
    cache: QueryCache = Depends(get_query_cache),
    clock: SystemClock = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> PortfolioService:
    return PortfolioService(
        SQLiteArtRepo(settings.db_path),
        SQLiteWritingRepo(settings.db_path),
        storage=storage,
        cache=cache,
        time_port=clock,
        content_rules=rules.content,
    )


def get_signed_url_service(
    storage: LocalObjectStorage = Depends(get_storage),
    repo: SQLiteResourceUrlRepo = Depends(get_resource_url_repo),
    clock: SystemClock = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> SignedUrlService:
    config = SignedUrlConfig(
        default_expiration=rules.storage.default_signed_url_expiration,
        max_expiration=rules.storage.max_signed_url_expiration,
        revalidate_seconds=rules.storage.revalidate_seconds,
        batch_size=rules.storage.batch_size,
    )
    return SignedUrlService(storage, repo, config=config, time_port=clock)


# --- Auth ---
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


async def get_current_admin(
    request: Request,
    token: Annotated[str | None, Depends(oauth2_scheme)],
    settings: Settings = Depends(get_settings),
) -> AdminUser:
    # 1. Cookie first (HttpOnly), then the Authorization header
    cookie_token = request.cookies.get("access_token")
    if cookie_token and cookie_token.startswith("Bearer "):
        token = cookie_token.split(" ", 1)[1]

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    email = read_admin_subject(token, settings.secret_key)
    if email is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if email.lower() != settings.admin_email.lower():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    return AdminUser(email=email)
