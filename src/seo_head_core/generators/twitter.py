from __future__ import annotations

from seo_head_core.config import SiteConfig
from seo_head_core.models import CanonicalMetadata, Tag
from seo_head_core.util import truncate_text, truncate_title

CARD_SUMMARY = "summary"
CARD_SUMMARY_LARGE_IMAGE = "summary_large_image"
CARD_APP = "app"
CARD_PLAYER = "player"

TITLE_MAX_LENGTH = 70


def _tw(name: str, content: object) -> Tag:
    return Tag.meta("name", name, content)


def twitter_handle(handle: object) -> str:
    cleaned = str(handle).strip()
    return cleaned if cleaned.startswith("@") else f"@{cleaned}"


def card_type(metadata: CanonicalMetadata, site: SiteConfig) -> str:
    if metadata.twitter_card:
        return metadata.twitter_card
    if site.social.twitter_card_type:
        return site.social.twitter_card_type
    if metadata.image:
        return CARD_SUMMARY_LARGE_IMAGE
    if metadata.content_type == "video" or metadata.video.url:
        return CARD_PLAYER
    if metadata.content_type == "app" or metadata.app.app_id:
        return CARD_APP
    return CARD_SUMMARY


def _core_tags(metadata: CanonicalMetadata, site: SiteConfig, card: str) -> list[Tag]:
    social = site.social
    tags = [_tw("twitter:card", card)]
    if social.twitter_site:
        tags.append(_tw("twitter:site", twitter_handle(social.twitter_site)))

    creator = metadata.twitter_creator or metadata.author or social.twitter_creator
    if creator:
        tags.append(_tw("twitter:creator", twitter_handle(creator)))

    if metadata.title:
        tags.append(_tw("twitter:title", truncate_title(metadata.title, TITLE_MAX_LENGTH)))
    if metadata.description:
        description = truncate_text(metadata.description, social.twitter_description_length)
        tags.append(_tw("twitter:description", description))
    return tags


def _summary_tags(metadata: CanonicalMetadata, site: SiteConfig) -> list[Tag]:
    if not metadata.image:
        return []
    return [
        _tw("twitter:image", metadata.image),
        _tw("twitter:image:alt", metadata.image_alt or metadata.title or "Image"),
    ]


def _app_tags(metadata: CanonicalMetadata, site: SiteConfig) -> list[Tag]:
    app = metadata.app
    social = site.social
    tags: list[Tag] = []

    ios_id = app.ios_app_id or social.ios_app_id
    if ios_id:
        tags.append(_tw("twitter:app:id:iphone", ios_id))
    ios_url = app.ios_app_url or social.ios_app_url
    if ios_url:
        tags.append(_tw("twitter:app:url:iphone", ios_url))

    android_id = app.android_app_id or social.android_app_id
    if android_id:
        tags.append(_tw("twitter:app:id:googleplay", android_id))
    android_url = app.android_app_url or social.android_app_url
    if android_url:
        tags.append(_tw("twitter:app:url:googleplay", android_url))

    name = app.name or social.app_name
    if name:
        tags.append(_tw("twitter:app:name:iphone", name))
        tags.append(_tw("twitter:app:name:googleplay", name))
    return tags


def _player_tags(metadata: CanonicalMetadata, site: SiteConfig) -> list[Tag]:
    video = metadata.video
    tags: list[Tag] = []
    if video.url:
        tags.append(_tw("twitter:player", video.url))
    if video.width:
        tags.append(_tw("twitter:player:width", video.width))
    if video.height:
        tags.append(_tw("twitter:player:height", video.height))
    if video.stream_url:
        tags.append(_tw("twitter:player:stream", video.stream_url))
    if metadata.image:
        tags.append(_tw("twitter:image", metadata.image))
    return tags


_CARD_EXTENSIONS = {
    CARD_SUMMARY: _summary_tags,
    CARD_SUMMARY_LARGE_IMAGE: _summary_tags,
    CARD_APP: _app_tags,
    CARD_PLAYER: _player_tags,
}


def generate_twitter_card_tags(metadata: CanonicalMetadata, site: SiteConfig) -> list[Tag]:
    card = card_type(metadata, site)
    tags = _core_tags(metadata, site, card)
    # Unrecognized card types get summary behavior.
    extension = _CARD_EXTENSIONS.get(card, _summary_tags)
    tags.extend(extension(metadata, site))
    return tags
