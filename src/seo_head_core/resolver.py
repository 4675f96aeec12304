from __future__ import annotations

import html
import re
from collections.abc import Callable, Mapping
from typing import Any

from seo_head_core.config import FallbackField, SiteConfig
from seo_head_core.models import (
    CONTENT_ARTICLE,
    CONTENT_LOCAL_BUSINESS,
    CONTENT_PAGE,
    CONTENT_PRODUCT,
    AppDetails,
    BusinessDetails,
    CanonicalMetadata,
    ProductDetails,
    ProfileDetails,
    RawDocument,
    VideoDetails,
)
from seo_head_core.util import (
    absolutize_url,
    count_words,
    decode_contents,
    is_present,
    join_url,
    lookup_path,
    normalize_date,
    reading_time,
    strip_html,
    truncate_text,
)

Source = Callable[[], Any]

DEFAULT_TITLE = "Untitled"
DEFAULT_ROBOTS = "index,follow"
NO_INDEX_ROBOTS = "noindex,nofollow"
DESCRIPTION_MAX_LENGTH = 160

_INDEXABLE_BY_TYPE = {CONTENT_ARTICLE, CONTENT_PAGE, CONTENT_PRODUCT}
_HTML_EXT_RE = re.compile(r"\.html?$", re.IGNORECASE)
_INDEX_SEGMENT_RE = re.compile(r"(^|/)index$")
_TRUE_STRINGS = {"true", "yes", "1", "on"}


def first_present(*sources: Source) -> Any:
    """Evaluate sources in order and return the first present value (see `is_present`)."""
    for source in sources:
        value = source()
        if is_present(value):
            return value
    return None


def from_tree(tree: Mapping[str, Any], *paths: str) -> Source:
    """Source reading the first present dot-path out of `tree`."""

    def lookup() -> Any:
        for path in paths:
            value = lookup_path(tree, path)
            if is_present(value):
                return value
        return None

    return lookup


def constant(value: Any) -> Source:
    return lambda: value


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _text(value: Any) -> str | None:
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    return None


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def _author(value: Any) -> str | None:
    if isinstance(value, (list, tuple)):
        names = [n for n in (_author(v) for v in value) if n]
        return ", ".join(names) or None
    if isinstance(value, Mapping):
        return _text(value.get("name"))
    return _text(value)


def _keywords(value: Any) -> tuple[str, ...]:
    if isinstance(value, (list, tuple)):
        items = (_text(v) for v in value)
        return tuple(k for k in items if k)
    if isinstance(value, str):
        return tuple(k.strip() for k in value.split(",") if k.strip())
    return ()


def _int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def _float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def auto_description(body: str | None, max_length: int = DESCRIPTION_MAX_LENGTH) -> str:
    if not body:
        return ""
    return truncate_text(html.unescape(strip_html(body)), max_length)


def canonical_url_for(path: str, hostname: str) -> str:
    clean = _HTML_EXT_RE.sub("", path.replace("\\", "/"))
    clean = _INDEX_SEGMENT_RE.sub("", clean)
    return join_url(hostname, clean)


def robots_directive(
    *,
    no_index: bool,
    robots: str | None,
    content_type: str | None,
    site: SiteConfig,
) -> str:
    if no_index:
        return NO_INDEX_ROBOTS
    if robots:
        return robots
    if content_type in _INDEXABLE_BY_TYPE:
        return DEFAULT_ROBOTS
    return site.social.default_robots or site.defaults.robots or DEFAULT_ROBOTS


class _Chains:
    """The per-document sources every field chain is assembled from."""

    def __init__(self, frontmatter: Mapping[str, Any], site: SiteConfig) -> None:
        self.root = _mapping(frontmatter)
        self.override = _mapping(self.root.get(site.seo_property))
        self.card = _mapping(self.root.get("card"))
        self.site = site

    def fallback(self, field: FallbackField, *extra: str) -> Source:
        return from_tree(self.root, self.site.fallbacks.path_for(field), *extra)

    def detail(self, *names: str) -> Any:
        return first_present(from_tree(self.override, *names), from_tree(self.root, *names))

    def title(self) -> str:
        value = first_present(
            from_tree(self.override, "title"),
            from_tree(self.card, "title"),
            self.fallback(FallbackField.TITLE, "title"),
            constant(self.site.defaults.title),
        )
        return _text(value) or DEFAULT_TITLE

    def description(self, body: str | None) -> str:
        value = first_present(
            from_tree(self.override, "description"),
            from_tree(self.card, "excerpt"),
            self.fallback(FallbackField.DESCRIPTION, "description"),
            constant(self.site.defaults.description),
        )
        return _text(value) or auto_description(body)

    def image(self) -> str | None:
        value = _text(
            first_present(
                from_tree(self.override, "image", "socialImage"),
                from_tree(self.card, "image"),
                self.fallback(FallbackField.IMAGE, "image"),
                constant(self.site.defaults.social_image),
            )
        )
        if not value:
            return None
        return absolutize_url(self.site.hostname, value)

    def canonical_url(self, path: str) -> str:
        explicit = _text(first_present(from_tree(self.override, "canonicalURL", "canonical")))
        if explicit:
            return absolutize_url(self.site.hostname, explicit)
        return canonical_url_for(path, self.site.hostname)

    def raw_publish_date(self) -> Any:
        return first_present(
            from_tree(self.override, "publishDate"),
            from_tree(self.card, "date"),
            self.fallback(FallbackField.PUBLISH_DATE, "date", "publishDate"),
        )

    def raw_modified_date(self) -> Any:
        return first_present(
            from_tree(self.override, "modifiedDate"),
            from_tree(self.card, "updated"),
            self.fallback(FallbackField.MODIFIED_DATE, "modifiedDate"),
        )

    def explicit_author(self) -> str | None:
        return _author(
            first_present(
                from_tree(self.override, "author"),
                from_tree(self.card, "author"),
                self.fallback(FallbackField.AUTHOR, "author"),
            )
        )

    def author(self) -> str | None:
        return self.explicit_author() or _text(self.site.defaults.site_owner)

    def keywords(self) -> tuple[str, ...]:
        return _keywords(
            first_present(
                from_tree(self.override, "keywords"),
                from_tree(self.card, "tags"),
                self.fallback(FallbackField.KEYWORDS, "keywords"),
            )
        )

    def content_type(self) -> str:
        explicit = _text(self.detail("type"))
        if explicit:
            return explicit.lower()

        has_date = is_present(self.raw_publish_date())
        has_author = self.explicit_author() is not None
        has_tags = is_present(first_present(from_tree(self.root, "tags"), from_tree(self.card, "tags")))
        if has_date and (has_author or has_tags):
            return CONTENT_ARTICLE
        if is_present(self.detail("price")) or is_present(self.detail("sku")):
            return CONTENT_PRODUCT
        if is_present(self.detail("address")) or is_present(self.detail("phone")):
            return CONTENT_LOCAL_BUSINESS
        return CONTENT_PAGE

    def product(self) -> ProductDetails:
        return ProductDetails(
            brand=_text(self.detail("brand")),
            availability=_text(self.detail("availability")),
            condition=_text(self.detail("condition")),
            price=_text(self.detail("price")),
            currency=_text(self.detail("currency")),
            sku=_text(self.detail("sku")),
            rating=_text(self.detail("rating")),
            rating_count=_text(self.detail("ratingCount")),
        )

    def profile(self) -> ProfileDetails:
        return ProfileDetails(
            first_name=_text(self.detail("firstName")),
            last_name=_text(self.detail("lastName")),
            username=_text(self.detail("username")),
        )

    def video(self) -> VideoDetails:
        return VideoDetails(
            url=_text(self.detail("videoUrl")),
            width=_int(self.detail("videoWidth")),
            height=_int(self.detail("videoHeight")),
            stream_url=_text(self.detail("videoStreamUrl")),
        )

    def app(self) -> AppDetails:
        return AppDetails(
            app_id=_text(self.detail("appId")),
            name=_text(self.detail("appName")),
            ios_app_id=_text(self.detail("iosAppId")),
            ios_app_url=_text(self.detail("iosAppUrl")),
            android_app_id=_text(self.detail("androidAppId")),
            android_app_url=_text(self.detail("androidAppUrl")),
        )

    def business(self) -> BusinessDetails:
        hours = self.detail("openingHours")
        if isinstance(hours, (list, tuple)):
            hours = tuple(h for h in (_text(v) for v in hours) if h) or None
        else:
            hours = _text(hours)
        address = self.detail("address")
        return BusinessDetails(
            address=address if isinstance(address, Mapping) else None,
            phone=_text(self.detail("phone")),
            email=_text(self.detail("email")),
            opening_hours=hours,
            latitude=_float(self.detail("latitude")),
            longitude=_float(self.detail("longitude")),
        )


def resolve_metadata(
    path: str,
    frontmatter: Mapping[str, Any] | None,
    site: SiteConfig,
    *,
    contents: bytes | str | None = None,
) -> CanonicalMetadata:
    """
    Resolve one canonical metadata record for a document.

    Each field walks its own chain: override block, card block, root field (configured
    fallback path first), site default, then body-derived generation. Malformed values
    degrade to None/defaults instead of raising.
    """
    chains = _Chains(frontmatter or {}, site)
    if contents is None:
        contents = chains.root.get("contents")
    body = decode_contents(contents)

    content_type = chains.content_type()
    no_index = _flag(chains.detail("noIndex"))
    robots = robots_directive(
        no_index=no_index,
        robots=_text(chains.detail("robots")),
        content_type=content_type,
        site=site,
    )
    word_count = count_words(body) if body else 0

    return CanonicalMetadata(
        title=chains.title(),
        description=chains.description(body),
        image=chains.image(),
        canonical_url=chains.canonical_url(path),
        robots=robots,
        no_index=no_index,
        content_type=content_type,
        publish_date=normalize_date(chains.raw_publish_date()),
        modified_date=normalize_date(chains.raw_modified_date()),
        author=chains.author(),
        keywords=chains.keywords(),
        word_count=word_count,
        reading_time=reading_time(word_count),
        image_alt=_text(chains.detail("imageAlt")),
        section=_text(chains.detail("section")),
        twitter_card=_text(chains.detail("twitterCard")),
        twitter_creator=_text(chains.detail("twitterCreator")),
        product=chains.product(),
        profile=chains.profile(),
        video=chains.video(),
        app=chains.app(),
        business=chains.business(),
    )


def resolve_document(doc: RawDocument, site: SiteConfig) -> CanonicalMetadata:
    return resolve_metadata(doc.path, doc.frontmatter, site, contents=doc.contents)
