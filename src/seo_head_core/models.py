from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from typing import Any

CONTENT_ARTICLE = "article"
CONTENT_PRODUCT = "product"
CONTENT_LOCAL_BUSINESS = "local-business"
CONTENT_PAGE = "page"
CONTENT_PROFILE = "profile"

JSON_LD_TYPE = "application/ld+json"

# Injected ahead of everything else so they are seen early by parsers.
CRITICAL_META_KEYS = frozenset({"viewport", "charset", "description", "robots"})


@dataclass(frozen=True)
class RawDocument:
    path: str
    frontmatter: Mapping[str, Any] = field(default_factory=dict)
    contents: bytes | str | None = None

    @classmethod
    def from_entry(cls, path: str, entry: Any) -> RawDocument:
        """
        Accept either a RawDocument or a build-tool file entry.

        File entries are mappings carrying `contents` next to the frontmatter keys, or an
        explicit `frontmatter` mapping.
        """
        if isinstance(entry, RawDocument):
            return entry
        if not isinstance(entry, Mapping):
            return cls(path=path, frontmatter={}, contents=None)
        contents = entry.get("contents")
        explicit = entry.get("frontmatter")
        if isinstance(explicit, Mapping):
            frontmatter: Mapping[str, Any] = explicit
        else:
            frontmatter = {k: v for k, v in entry.items() if k != "contents"}
        return cls(path=path, frontmatter=frontmatter, contents=contents)


@dataclass(frozen=True)
class ProductDetails:
    brand: str | None = None
    availability: str | None = None
    condition: str | None = None
    price: str | None = None
    currency: str | None = None
    sku: str | None = None
    rating: str | None = None
    rating_count: str | None = None


@dataclass(frozen=True)
class ProfileDetails:
    first_name: str | None = None
    last_name: str | None = None
    username: str | None = None


@dataclass(frozen=True)
class VideoDetails:
    url: str | None = None
    width: int | None = None
    height: int | None = None
    stream_url: str | None = None


@dataclass(frozen=True)
class AppDetails:
    app_id: str | None = None
    name: str | None = None
    ios_app_id: str | None = None
    ios_app_url: str | None = None
    android_app_id: str | None = None
    android_app_url: str | None = None


@dataclass(frozen=True)
class BusinessDetails:
    address: Mapping[str, Any] | None = None
    phone: str | None = None
    email: str | None = None
    opening_hours: str | tuple[str, ...] | None = None
    latitude: float | None = None
    longitude: float | None = None


@dataclass(frozen=True)
class CanonicalMetadata:
    title: str
    canonical_url: str
    description: str = ""
    image: str | None = None
    robots: str = "index,follow"
    no_index: bool = False
    content_type: str = CONTENT_PAGE
    publish_date: str | None = None
    modified_date: str | None = None
    author: str | None = None
    keywords: tuple[str, ...] = ()
    word_count: int = 0
    reading_time: str | None = None

    image_alt: str | None = None
    section: str | None = None
    twitter_card: str | None = None
    twitter_creator: str | None = None
    product: ProductDetails = field(default_factory=ProductDetails)
    profile: ProfileDetails = field(default_factory=ProfileDetails)
    video: VideoDetails = field(default_factory=VideoDetails)
    app: AppDetails = field(default_factory=AppDetails)
    business: BusinessDetails = field(default_factory=BusinessDetails)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Tag:
    kind: str
    attrs: dict[str, str]
    text: str | None = None

    @classmethod
    def meta(cls, key_attribute: str, key: str, content: Any) -> Tag:
        return cls(kind="meta", attrs={key_attribute: key, "content": str(content)})

    @classmethod
    def link(cls, rel: str, href: str, **extra: str) -> Tag:
        return cls(kind="link", attrs={"rel": rel, "href": href, **extra})

    @classmethod
    def script(cls, text: str, type_: str = JSON_LD_TYPE) -> Tag:
        return cls(kind="script", attrs={"type": type_}, text=text)

    @property
    def key_attribute(self) -> str | None:
        for attr in ("name", "property", "http-equiv"):
            if attr in self.attrs:
                return attr
        return None

    @property
    def key(self) -> str | None:
        attr = self.key_attribute
        return self.attrs[attr] if attr else None

    @property
    def content(self) -> str | None:
        return self.attrs.get("content")


@dataclass(frozen=True)
class GeneratedTagSet:
    title: str
    meta: list[Tag]
    links: list[Tag]
    open_graph: list[Tag]
    twitter: list[Tag]
    json_ld: list[dict[str, Any]]
    json_ld_text: str = ""

    def critical_meta(self) -> list[Tag]:
        return [t for t in self.meta if t.key in CRITICAL_META_KEYS]

    def other_meta(self) -> list[Tag]:
        return [t for t in self.meta if t.key not in CRITICAL_META_KEYS]

    def ordered(self) -> list[Tag]:
        """Tags in injection order; the JSON-LD script, if any, is always last."""
        tags = [*self.critical_meta(), *self.links, *self.other_meta(), *self.open_graph, *self.twitter]
        if self.json_ld_text:
            tags.append(Tag.script(self.json_ld_text))
        return tags


@dataclass(frozen=True)
class DocumentResult:
    path: str
    status: str
    contents: bytes | str | None = None
    metadata: CanonicalMetadata | None = None
    tags: GeneratedTagSet | None = None
    error: BaseException | None = None

    @property
    def changed(self) -> bool:
        return self.status == "optimized"


@dataclass(frozen=True)
class BatchResult:
    results: dict[str, DocumentResult]
    cancelled: bool = False

    @property
    def failures(self) -> dict[str, BaseException]:
        return {p: r.error for p, r in self.results.items() if r.status == "failed" and r.error is not None}

    @property
    def ok(self) -> bool:
        return not self.cancelled and not self.failures

    def metadata_by_path(self) -> dict[str, CanonicalMetadata]:
        return {p: r.metadata for p, r in self.results.items() if r.metadata is not None}
