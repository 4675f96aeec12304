from __future__ import annotations

from seo_head_core.config import SiteConfig
from seo_head_core.models import CanonicalMetadata, Tag

IMAGE_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
}

OG_TYPES = {
    "article": "article",
    "product": "product",
    "profile": "profile",
    "page": "website",
    "local-business": "business.business",
}


def og_type(content_type: str | None) -> str:
    return OG_TYPES.get(content_type or "", "website")


def image_mime_type(url: str) -> str | None:
    path = url.split("?", 1)[0].split("#", 1)[0]
    if "." not in path:
        return None
    return IMAGE_TYPES.get(path.rsplit(".", 1)[-1].lower())


def _og(prop: str, content: object) -> Tag:
    return Tag.meta("property", prop, content)


def _image_tags(metadata: CanonicalMetadata, site: SiteConfig) -> list[Tag]:
    tags = [
        _og("og:image", metadata.image),
        _og("og:image:width", site.social.og_image_width),
        _og("og:image:height", site.social.og_image_height),
        _og("og:image:alt", metadata.image_alt or metadata.title or "Image"),
    ]
    mime = image_mime_type(metadata.image)
    if mime:
        tags.append(_og("og:image:type", mime))
    return tags


def _article_tags(metadata: CanonicalMetadata) -> list[Tag]:
    tags: list[Tag] = []
    if metadata.publish_date:
        tags.append(_og("article:published_time", metadata.publish_date))
    if metadata.modified_date:
        tags.append(_og("article:modified_time", metadata.modified_date))
    if metadata.author:
        tags.append(_og("article:author", metadata.author))
    if metadata.section:
        tags.append(_og("article:section", metadata.section))
    tags.extend(_og("article:tag", keyword) for keyword in metadata.keywords)
    if metadata.reading_time:
        tags.append(_og("article:reading_time", metadata.reading_time))
    return tags


def _product_tags(metadata: CanonicalMetadata) -> list[Tag]:
    product = metadata.product
    tags: list[Tag] = []
    if product.brand:
        tags.append(_og("product:brand", product.brand))
    if product.availability:
        tags.append(_og("product:availability", product.availability))
    if product.condition:
        tags.append(_og("product:condition", product.condition))
    # A price of "0" is a real (free) price and is emitted.
    if product.price is not None:
        tags.append(_og("product:price:amount", product.price))
    if product.currency:
        tags.append(_og("product:price:currency", product.currency))
    return tags


def _profile_tags(metadata: CanonicalMetadata) -> list[Tag]:
    profile = metadata.profile
    tags: list[Tag] = []
    if profile.first_name:
        tags.append(_og("profile:first_name", profile.first_name))
    if profile.last_name:
        tags.append(_og("profile:last_name", profile.last_name))
    if profile.username:
        tags.append(_og("profile:username", profile.username))
    return tags


def _site_tags(site: SiteConfig) -> list[Tag]:
    social = site.social
    tags: list[Tag] = []
    if social.facebook_app_id:
        tags.append(_og("fb:app_id", social.facebook_app_id))
    admins = social.facebook_admins
    if admins:
        for admin in admins if isinstance(admins, list) else [admins]:
            tags.append(_og("fb:admins", admin))
    return tags


_TYPE_EXTENSIONS = {
    "article": _article_tags,
    "product": _product_tags,
    "profile": _profile_tags,
}


def generate_open_graph_tags(metadata: CanonicalMetadata, site: SiteConfig) -> list[Tag]:
    social = site.social
    tags: list[Tag] = []

    if metadata.title:
        tags.append(_og("og:title", metadata.title))
    tags.append(_og("og:type", og_type(metadata.content_type)))
    if metadata.canonical_url:
        tags.append(_og("og:url", metadata.canonical_url))
    if metadata.description:
        tags.append(_og("og:description", metadata.description))
    if metadata.image:
        tags.extend(_image_tags(metadata, site))
    if social.site_name:
        tags.append(_og("og:site_name", social.site_name))
    tags.append(_og("og:locale", social.locale or social.language or "en_US"))

    extension = _TYPE_EXTENSIONS.get(metadata.content_type)
    if extension is not None:
        tags.extend(extension(metadata))

    tags.extend(_site_tags(site))
    return tags
