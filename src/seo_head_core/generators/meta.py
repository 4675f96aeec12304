from __future__ import annotations

from dataclasses import dataclass

from seo_head_core.config import SiteConfig
from seo_head_core.models import CONTENT_ARTICLE, CanonicalMetadata, Tag
from seo_head_core.resolver import robots_directive

DEFAULT_VIEWPORT = "width=device-width, initial-scale=1.0"


@dataclass(frozen=True)
class MetaTags:
    title: str
    meta: list[Tag]
    links: list[Tag]


def _googlebot_directive(site: SiteConfig) -> str | None:
    social = site.social
    directives: list[str] = []
    if social.max_snippet is not None:
        directives.append(f"max-snippet:{social.max_snippet}")
    if social.max_image_preview:
        directives.append(f"max-image-preview:{social.max_image_preview}")
    if social.max_video_preview is not None:
        directives.append(f"max-video-preview:{social.max_video_preview}")
    return ",".join(directives) or None


def _article_tags(metadata: CanonicalMetadata) -> list[Tag]:
    tags: list[Tag] = []
    if metadata.publish_date:
        tags.append(Tag.meta("name", "article:published_time", metadata.publish_date))
    if metadata.modified_date:
        tags.append(Tag.meta("name", "article:modified_time", metadata.modified_date))
    if metadata.author:
        tags.append(Tag.meta("name", "article:author", metadata.author))
    for keyword in metadata.keywords:
        tags.append(Tag.meta("name", "article:tag", keyword))
    return tags


def generate_meta_tags(metadata: CanonicalMetadata, site: SiteConfig) -> MetaTags:
    social = site.social
    meta: list[Tag] = []
    links: list[Tag] = []

    if metadata.description:
        meta.append(Tag.meta("name", "description", metadata.description))
    if metadata.keywords:
        meta.append(Tag.meta("name", "keywords", ", ".join(metadata.keywords)))

    robots = robots_directive(
        no_index=metadata.no_index,
        robots=metadata.robots,
        content_type=metadata.content_type,
        site=site,
    )
    meta.append(Tag.meta("name", "robots", robots))

    if metadata.author:
        meta.append(Tag.meta("name", "author", metadata.author))
    meta.append(Tag.meta("name", "viewport", social.viewport or DEFAULT_VIEWPORT))

    if metadata.canonical_url:
        links.append(Tag.link("canonical", metadata.canonical_url))

    if social.theme_color:
        meta.append(Tag.meta("name", "theme-color", social.theme_color))
    if social.language:
        meta.append(Tag.meta("http-equiv", "content-language", social.language))
    if social.publisher:
        meta.append(Tag.meta("name", "publisher", social.publisher))
    if social.copyright:
        meta.append(Tag.meta("name", "copyright", social.copyright))

    googlebot = _googlebot_directive(site)
    if googlebot:
        meta.append(Tag.meta("name", "googlebot", googlebot))

    if metadata.content_type == CONTENT_ARTICLE:
        meta.extend(_article_tags(metadata))

    return MetaTags(title=metadata.title, meta=meta, links=links)
