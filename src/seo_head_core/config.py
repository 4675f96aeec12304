from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict


class _SiteModel(BaseModel):
    # Site configuration is written in camelCase (site.json style); snake_case also accepted.
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class FallbackField(str, Enum):
    """Root-level fields whose lookup path can be reconfigured."""

    TITLE = "title"
    DESCRIPTION = "description"
    IMAGE = "image"
    AUTHOR = "author"
    PUBLISH_DATE = "publish_date"
    MODIFIED_DATE = "modified_date"
    KEYWORDS = "keywords"


class Fallbacks(_SiteModel):
    title: str = "title"
    description: str = "excerpt"
    image: str = "featured_image"
    author: str = "author.name"
    publish_date: str = "date"
    modified_date: str = "updated"
    keywords: str = "tags"

    def path_for(self, field: FallbackField) -> str:
        return getattr(self, field.value)


class SiteDefaults(_SiteModel):
    title: str | None = None
    description: str | None = None
    social_image: str | None = None
    site_owner: str | None = None
    robots: str | None = None


class SocialConfig(_SiteModel):
    site_name: str | None = None
    locale: str | None = None
    language: str | None = None
    viewport: str | None = None
    theme_color: str | None = None
    publisher: str | None = None
    copyright: str | None = None
    default_robots: str | None = None

    max_snippet: int | None = None
    max_image_preview: str | None = None
    max_video_preview: int | None = None

    og_image_width: int = 1200
    og_image_height: int = 630
    facebook_app_id: str | None = None
    facebook_admins: str | list[str] | None = None

    twitter_site: str | None = None
    twitter_creator: str | None = None
    twitter_card_type: str | None = None
    twitter_description_length: int = Field(default=200, gt=0)

    ios_app_id: str | None = None
    ios_app_url: str | None = None
    android_app_id: str | None = None
    android_app_url: str | None = None
    app_name: str | None = None

    @field_validator("facebook_app_id", mode="before")
    @classmethod
    def _app_id_as_text(cls, v: Any) -> Any:
        # App ids are frequently written as bare numbers in JSON/YAML.
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class ContactPoint(_SiteModel):
    telephone: str | None = None
    contact_type: str = "customer service"


class OrganizationConfig(_SiteModel):
    name: str | None = None
    url: str | None = None
    logo: str | None = None
    description: str | None = None
    same_as: str | list[str] | None = None
    contact_point: ContactPoint | None = None


class PostalAddress(_SiteModel):
    street_address: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None


class JsonLdConfig(_SiteModel):
    organization: OrganizationConfig | None = None
    search_url: str | None = None
    enable_schemas: list[str] | None = None
    alternate_names: str | list[str] | None = None

    business_name: str | None = None
    address: PostalAddress | None = None
    phone: str | None = None
    email: str | None = None
    opening_hours: str | list[str] | None = None


class SiteConfig(_SiteModel):
    """
    Read-only configuration shared by every document of one build.

    Constructed once per build and passed explicitly through the pipeline.
    """

    hostname: str = ""
    seo_property: str = "seo"
    defaults: SiteDefaults = Field(default_factory=SiteDefaults)
    fallbacks: Fallbacks = Field(default_factory=Fallbacks)
    social: SocialConfig = Field(default_factory=SocialConfig)
    json_ld: JsonLdConfig = Field(default_factory=JsonLdConfig)

    batch_size: int = 10
    generate_sitemap: bool = True
    document_timeout_s: float | None = None

    @field_validator("hostname", mode="before")
    @classmethod
    def _hostname_text(cls, v: Any) -> Any:
        if v is None:
            return ""
        if isinstance(v, str):
            return v.strip()
        return v

    @property
    def base_url(self) -> str:
        return self.hostname.rstrip("/")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    hostname: str = Field(default="", alias="SEO_HOSTNAME")
    seo_property: str = Field(default="seo", alias="SEO_PROPERTY")
    batch_size: int = Field(default=10, alias="SEO_BATCH_SIZE")
    generate_sitemap: bool = Field(default=True, alias="SEO_GENERATE_SITEMAP")
    document_timeout_s: float | None = Field(default=None, alias="SEO_DOCUMENT_TIMEOUT_S")

    site_name: str | None = Field(default=None, alias="SEO_SITE_NAME")
    locale: str | None = Field(default=None, alias="SEO_LOCALE")
    twitter_site: str | None = Field(default=None, alias="SEO_TWITTER_SITE")

    def to_site_config(self, **overrides: Any) -> SiteConfig:
        """
        Build a SiteConfig from environment settings.

        `overrides` replace top-level keys wholesale (e.g. `social={...}` replaces the whole
        social block, it is not merged).
        """
        social: dict[str, Any] = {}
        if self.site_name:
            social["siteName"] = self.site_name
        if self.locale:
            social["locale"] = self.locale
        if self.twitter_site:
            social["twitterSite"] = self.twitter_site

        data: dict[str, Any] = {
            "hostname": self.hostname,
            "seoProperty": self.seo_property,
            "batchSize": self.batch_size,
            "generateSitemap": self.generate_sitemap,
            "documentTimeoutS": self.document_timeout_s,
            "social": social,
        }
        data.update(overrides)
        return SiteConfig.model_validate(data)


def load_settings() -> Settings:
    return Settings()
