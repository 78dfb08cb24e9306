from pydantic import BaseModel, Field


class PaginationRules(BaseModel):
    default_page_size: int = Field(10, ge=1)
    max_page_size: int = Field(100, ge=1)
    max_visible_pages: int = Field(7, ge=5)


class StorageRules(BaseModel):
    default_signed_url_expiration: int = Field(3600, ge=1)
    max_signed_url_expiration: int = Field(604800, ge=1)
    revalidate_seconds: int = Field(3000, ge=1)
    batch_size: int = Field(100, ge=1)
    upload_url_expiration: int = Field(7200, ge=1)


class CacheRules(BaseModel):
    ttl_seconds: int = Field(3000, ge=0)


class RangeRule(BaseModel):
    min: int
    max: int


class RegexRule(RangeRule):
    pattern: str


class ContentRules(BaseModel):
    slug: RegexRule
    title: RangeRule
    blacklist_username_max: int = 100


class OpsRules(BaseModel):
    required_env: list[str] = Field(default_factory=list)


class Rules(BaseModel):
    pagination: PaginationRules = Field(default_factory=PaginationRules)
    storage: StorageRules = Field(default_factory=StorageRules)
    cache: CacheRules = Field(default_factory=CacheRules)
    content: ContentRules
    ops: OpsRules = Field(default_factory=OpsRules)
