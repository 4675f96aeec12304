from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any

from seo_head_core.config import OrganizationConfig, PostalAddress, SiteConfig
from seo_head_core.models import (
    CONTENT_ARTICLE,
    CONTENT_LOCAL_BUSINESS,
    CONTENT_PRODUCT,
    JSON_LD_TYPE,
    CanonicalMetadata,
)
from seo_head_core.resolver import canonical_url_for

SCHEMA_CONTEXT = "https://schema.org"

KNOWN_SCHEMA_TYPES = frozenset(
    {
        "WebSite",
        "Article",
        "Product",
        "LocalBusiness",
        "WebPage",
        "BreadcrumbList",
        "Organization",
    }
)

_REQUIRED_PROPERTIES: dict[str, tuple[str, ...]] = {
    "Article": ("headline", "author"),
    "Product": ("name",),
    "Organization": ("name",),
    "LocalBusiness": ("name",),
    "WebSite": ("name", "url"),
    "WebPage": ("name", "url"),
}

_WORD_START_RE = re.compile(r"\b\w")


def _as_list(value: Any) -> list[Any]:
    return list(value) if isinstance(value, (list, tuple)) else [value]


def _image_object(url: str) -> dict[str, Any]:
    return {"@type": "ImageObject", "url": url}


def _website_schema(site: SiteConfig) -> dict[str, Any] | None:
    name = site.social.site_name
    if not name:
        return None
    schema: dict[str, Any] = {"@type": "WebSite", "name": name, "url": site.hostname}
    if site.json_ld.search_url:
        schema["potentialAction"] = {
            "@type": "SearchAction",
            "target": {
                "@type": "EntryPoint",
                "urlTemplate": f"{site.json_ld.search_url}?q={{search_term_string}}",
            },
            "query-input": "required name=search_term_string",
        }
    if site.json_ld.alternate_names:
        schema["alternateName"] = _as_list(site.json_ld.alternate_names)
    return schema


def _publisher_schema(org: OrganizationConfig) -> dict[str, Any]:
    publisher: dict[str, Any] = {"@type": "Organization", "name": org.name}
    if org.logo:
        publisher["logo"] = _image_object(org.logo)
    return publisher


def _article_schema(metadata: CanonicalMetadata, site: SiteConfig) -> dict[str, Any]:
    schema: dict[str, Any] = {
        "@type": "Article",
        "headline": metadata.title,
        "url": metadata.canonical_url,
    }
    if metadata.description:
        schema["description"] = metadata.description
    if metadata.image:
        schema["image"] = _image_object(metadata.image)
    if metadata.publish_date:
        schema["datePublished"] = metadata.publish_date
    if metadata.modified_date:
        schema["dateModified"] = metadata.modified_date
    if metadata.author:
        schema["author"] = {"@type": "Person", "name": metadata.author}
    if site.json_ld.organization and site.json_ld.organization.name:
        schema["publisher"] = _publisher_schema(site.json_ld.organization)
    if metadata.section:
        schema["articleSection"] = metadata.section
    if metadata.keywords:
        schema["keywords"] = list(metadata.keywords)
    if metadata.word_count:
        schema["wordCount"] = metadata.word_count
    if metadata.reading_time:
        schema["timeRequired"] = metadata.reading_time
    return schema


def _product_schema(metadata: CanonicalMetadata, site: SiteConfig) -> dict[str, Any]:
    product = metadata.product
    schema: dict[str, Any] = {
        "@type": "Product",
        "name": metadata.title,
        "description": metadata.description,
    }
    if metadata.image:
        schema["image"] = metadata.image
    if product.brand:
        schema["brand"] = {"@type": "Brand", "name": product.brand}
    if product.sku:
        schema["sku"] = product.sku
    if product.price is not None:
        schema["offers"] = {
            "@type": "Offer",
            "price": product.price,
            "priceCurrency": product.currency or "USD",
            "availability": f"{SCHEMA_CONTEXT}/{product.availability or 'InStock'}",
            "itemCondition": f"{SCHEMA_CONTEXT}/{product.condition or 'NewCondition'}",
        }
    if product.rating:
        schema["aggregateRating"] = {
            "@type": "AggregateRating",
            "ratingValue": product.rating,
            "ratingCount": product.rating_count or "1",
        }
    return schema


def _postal_address(address: Mapping[str, Any] | PostalAddress) -> dict[str, Any]:
    if isinstance(address, PostalAddress):
        fields = address.model_dump()
    else:
        fields = {
            "street_address": address.get("streetAddress") or address.get("street_address"),
            "city": address.get("city") or address.get("addressLocality"),
            "state": address.get("state") or address.get("addressRegion"),
            "postal_code": address.get("postalCode") or address.get("postal_code"),
            "country": address.get("country") or address.get("addressCountry"),
        }
    schema: dict[str, Any] = {"@type": "PostalAddress"}
    for key, value in (
        ("streetAddress", fields.get("street_address")),
        ("addressLocality", fields.get("city")),
        ("addressRegion", fields.get("state")),
        ("postalCode", fields.get("postal_code")),
        ("addressCountry", fields.get("country")),
    ):
        if value:
            schema[key] = value
    return schema


def _local_business_schema(metadata: CanonicalMetadata, site: SiteConfig) -> dict[str, Any]:
    business = metadata.business
    cfg = site.json_ld
    schema: dict[str, Any] = {
        "@type": "LocalBusiness",
        "name": metadata.title or cfg.business_name,
        "description": metadata.description,
    }
    address = business.address or cfg.address
    if address:
        schema["address"] = _postal_address(address)
    # Coordinates of 0 are valid positions.
    if business.latitude is not None and business.longitude is not None:
        schema["geo"] = {
            "@type": "GeoCoordinates",
            "latitude": business.latitude,
            "longitude": business.longitude,
        }
    phone = business.phone or cfg.phone
    if phone:
        schema["telephone"] = phone
    email = business.email or cfg.email
    if email:
        schema["email"] = email
    hours = business.opening_hours or cfg.opening_hours
    if hours:
        schema["openingHours"] = list(hours) if isinstance(hours, (list, tuple)) else hours
    if metadata.image:
        schema["image"] = metadata.image
    return schema


def _webpage_schema(metadata: CanonicalMetadata, site: SiteConfig) -> dict[str, Any]:
    schema: dict[str, Any] = {
        "@type": "WebPage",
        "name": metadata.title,
        "url": metadata.canonical_url,
    }
    if metadata.description:
        schema["description"] = metadata.description
    if metadata.image:
        schema["image"] = metadata.image
    if site.social.site_name:
        schema["isPartOf"] = {
            "@type": "WebSite",
            "name": site.social.site_name,
            "url": site.hostname,
        }
    return schema


_CONTENT_SCHEMAS = {
    CONTENT_ARTICLE: _article_schema,
    CONTENT_PRODUCT: _product_schema,
    CONTENT_LOCAL_BUSINESS: _local_business_schema,
}


def _segment_name(segment: str) -> str:
    return _WORD_START_RE.sub(lambda m: m.group(0).upper(), segment.replace("-", " "))


def _breadcrumb_schema(path: str, site: SiteConfig) -> dict[str, Any] | None:
    if not path or not site.hostname:
        return None
    base = site.base_url
    trail = canonical_url_for(path, "")
    segments = [s for s in trail.split("/") if s]
    if not segments:
        return None

    items: list[dict[str, Any]] = [
        {"@type": "ListItem", "position": 1, "name": "Home", "item": site.hostname}
    ]
    current = ""
    for index, segment in enumerate(segments):
        current += f"/{segment}"
        items.append(
            {
                "@type": "ListItem",
                "position": index + 2,
                "name": _segment_name(segment),
                "item": f"{base}{current}",
            }
        )
    return {"@type": "BreadcrumbList", "itemListElement": items}


def _organization_schema(site: SiteConfig) -> dict[str, Any] | None:
    org = site.json_ld.organization
    if org is None:
        return None
    schema: dict[str, Any] = {"@type": "Organization"}
    if org.name:
        schema["name"] = org.name
    url = org.url or site.hostname
    if url:
        schema["url"] = url
    if org.logo:
        schema["logo"] = _image_object(org.logo)
    if org.description:
        schema["description"] = org.description
    if org.same_as:
        schema["sameAs"] = _as_list(org.same_as)
    if org.contact_point:
        contact: dict[str, Any] = {"@type": "ContactPoint"}
        if org.contact_point.telephone:
            contact["telephone"] = org.contact_point.telephone
        contact["contactType"] = org.contact_point.contact_type
        schema["contactPoint"] = contact
    return schema


def generate_json_ld(metadata: CanonicalMetadata, site: SiteConfig, path: str = "") -> list[dict[str, Any]]:
    """
    Build the ordered schema list for one document.

    Order: WebSite, the content schema for the document type, BreadcrumbList,
    Organization. `jsonLd.enableSchemas`, when set, limits which types are emitted.
    """
    content_schema = _CONTENT_SCHEMAS.get(metadata.content_type, _webpage_schema)
    candidates = [
        _website_schema(site),
        content_schema(metadata, site),
        _breadcrumb_schema(path, site),
        _organization_schema(site),
    ]
    enabled = site.json_ld.enable_schemas
    schemas: list[dict[str, Any]] = []
    for schema in candidates:
        if schema is None:
            continue
        if enabled is not None and schema["@type"] not in enabled:
            continue
        schemas.append({"@context": SCHEMA_CONTEXT, **schema})
    return schemas


def json_ld_payload(schemas: list[dict[str, Any]]) -> dict[str, Any] | None:
    if not schemas:
        return None
    if len(schemas) == 1:
        return schemas[0]
    return {
        "@context": SCHEMA_CONTEXT,
        "@graph": [{k: v for k, v in s.items() if k != "@context"} for s in schemas],
    }


def json_ld_text(schemas: list[dict[str, Any]]) -> str:
    """Serialized payload, safe to place verbatim inside a script element."""
    payload = json_ld_payload(schemas)
    if payload is None:
        return ""
    text = json.dumps(payload, indent=2, ensure_ascii=False)
    return "\n" + text.replace("</", "<\\/") + "\n"


def json_ld_script(schemas: list[dict[str, Any]]) -> str:
    text = json_ld_text(schemas)
    if not text:
        return ""
    return f'<script type="{JSON_LD_TYPE}">{text}</script>'


def validate_schema(schema: Any) -> bool:
    if not isinstance(schema, Mapping):
        return False
    schema_type = schema.get("@type")
    if not schema_type:
        return False
    return all(schema.get(prop) for prop in _REQUIRED_PROPERTIES.get(schema_type, ()))
