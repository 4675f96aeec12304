from __future__ import annotations

from seo_head_core.config import SiteConfig
from seo_head_core.generators.jsonld import generate_json_ld, json_ld_script, json_ld_text, validate_schema
from seo_head_core.generators.meta import MetaTags, generate_meta_tags
from seo_head_core.generators.opengraph import generate_open_graph_tags
from seo_head_core.generators.twitter import generate_twitter_card_tags
from seo_head_core.models import CanonicalMetadata, GeneratedTagSet


def generate_all(metadata: CanonicalMetadata, site: SiteConfig, path: str = "") -> GeneratedTagSet:
    meta = generate_meta_tags(metadata, site)
    schemas = generate_json_ld(metadata, site, path)
    return GeneratedTagSet(
        title=meta.title,
        meta=meta.meta,
        links=meta.links,
        open_graph=generate_open_graph_tags(metadata, site),
        twitter=generate_twitter_card_tags(metadata, site),
        json_ld=schemas,
        json_ld_text=json_ld_text(schemas),
    )


__all__ = [
    "MetaTags",
    "generate_all",
    "generate_json_ld",
    "generate_meta_tags",
    "generate_open_graph_tags",
    "generate_twitter_card_tags",
    "json_ld_script",
    "json_ld_text",
    "validate_schema",
]
