from __future__ import annotations

import json

import pytest

from seo_head_core.config import SiteConfig
from seo_head_core.generators import generate_all
from seo_head_core.generators.jsonld import (
    SCHEMA_CONTEXT,
    generate_json_ld,
    json_ld_payload,
    json_ld_script,
    json_ld_text,
    validate_schema,
)
from seo_head_core.models import BusinessDetails, CanonicalMetadata, ProductDetails

SITE = SiteConfig.model_validate(
    {
        "hostname": "https://ex.com",
        "social": {"siteName": "Example"},
        "jsonLd": {
            "organization": {"name": "Example Inc", "logo": "https://ex.com/logo.png", "sameAs": "https://x.com/ex"},
            "searchUrl": "https://ex.com/search",
        },
    }
)


def _article() -> CanonicalMetadata:
    return CanonicalMetadata(
        title="Post",
        canonical_url="https://ex.com/blog/my-post",
        description="Desc",
        image="https://ex.com/a.png",
        content_type="article",
        publish_date="2025-06-02T00:00:00.000Z",
        author="Ann",
        keywords=("a",),
        word_count=450,
        reading_time="3 min read",
    )


def test_schema_order_and_context() -> None:
    schemas = generate_json_ld(_article(), SITE, "blog/my-post.html")
    assert [s["@type"] for s in schemas] == ["WebSite", "Article", "BreadcrumbList", "Organization"]
    assert all(s["@context"] == SCHEMA_CONTEXT for s in schemas)


def test_article_schema() -> None:
    article = generate_json_ld(_article(), SITE)[1]
    assert article["headline"] == "Post"
    assert article["author"] == {"@type": "Person", "name": "Ann"}
    assert article["publisher"]["name"] == "Example Inc"
    assert article["publisher"]["logo"]["url"] == "https://ex.com/logo.png"
    assert article["datePublished"] == "2025-06-02T00:00:00.000Z"
    assert article["wordCount"] == 450
    assert article["timeRequired"] == "3 min read"


def test_website_search_action() -> None:
    website = generate_json_ld(_article(), SITE)[0]
    target = website["potentialAction"]["target"]["urlTemplate"]
    assert target == "https://ex.com/search?q={search_term_string}"


def test_breadcrumb() -> None:
    schemas = generate_json_ld(_article(), SITE, "blog/my-post.html")
    (crumbs,) = [s for s in schemas if s["@type"] == "BreadcrumbList"]
    items = crumbs["itemListElement"]
    assert [i["name"] for i in items] == ["Home", "Blog", "My Post"]
    assert [i["position"] for i in items] == [1, 2, 3]
    assert items[2]["item"] == "https://ex.com/blog/my-post"


def test_no_breadcrumb_for_site_root() -> None:
    schemas = generate_json_ld(_article(), SITE, "index.html")
    assert "BreadcrumbList" not in [s["@type"] for s in schemas]


def test_minimal_site_emits_only_webpage() -> None:
    md = CanonicalMetadata(title="T", canonical_url="/t")
    assert [s["@type"] for s in generate_json_ld(md, SiteConfig(), "t.html")] == ["WebPage"]


def test_enable_schemas_filters_types() -> None:
    site = SITE.model_copy(update={"json_ld": SITE.json_ld.model_copy(update={"enable_schemas": ["Article"]})})
    assert [s["@type"] for s in generate_json_ld(_article(), site, "blog/my-post.html")] == ["Article"]


def test_product_schema_offer() -> None:
    md = CanonicalMetadata(
        title="Widget",
        canonical_url="https://ex.com/w",
        content_type="product",
        product=ProductDetails(brand="Acme", price="0", sku="W-1", condition="UsedCondition"),
    )
    product = generate_json_ld(md, SiteConfig())[0]
    assert product["brand"] == {"@type": "Brand", "name": "Acme"}
    assert product["offers"]["price"] == "0"
    assert product["offers"]["priceCurrency"] == "USD"
    assert product["offers"]["itemCondition"] == "https://schema.org/UsedCondition"


def test_local_business_schema() -> None:
    md = CanonicalMetadata(
        title="Cafe",
        canonical_url="https://ex.com/cafe",
        content_type="local-business",
        business=BusinessDetails(
            address={"streetAddress": "1 Main St", "city": "Springfield"},
            phone="555-0100",
            opening_hours=("Mo-Fr 08:00-17:00",),
            latitude=0.0,
            longitude=0.0,
        ),
    )
    business = generate_json_ld(md, SiteConfig())[0]
    assert business["address"] == {
        "@type": "PostalAddress",
        "streetAddress": "1 Main St",
        "addressLocality": "Springfield",
    }
    assert business["geo"]["latitude"] == 0.0
    assert business["telephone"] == "555-0100"
    assert business["openingHours"] == ["Mo-Fr 08:00-17:00"]


def test_payload_folding() -> None:
    one = [{"@context": SCHEMA_CONTEXT, "@type": "WebPage", "name": "T", "url": "/t"}]
    assert json_ld_payload(one) == one[0]
    assert json_ld_payload([]) is None

    many = generate_json_ld(_article(), SITE)
    folded = json_ld_payload(many)
    assert folded is not None
    assert folded["@context"] == SCHEMA_CONTEXT
    assert len(folded["@graph"]) == len(many)
    assert all("@context" not in item for item in folded["@graph"])


def test_text_is_safe_inside_script() -> None:
    md = CanonicalMetadata(title="</script><b>x</b>", canonical_url="/t")
    text = json_ld_text(generate_json_ld(md, SiteConfig()))
    assert "</" not in text
    assert json.loads(text)["name"] == "</script><b>x</b>"

    script = json_ld_script(generate_json_ld(md, SiteConfig()))
    assert script.startswith('<script type="application/ld+json">')
    assert script.count("</script>") == 1
    assert json_ld_text([]) == ""


@pytest.mark.parametrize(
    ("schema", "expected"),
    [
        ({"@type": "Article", "headline": "H", "author": {"name": "A"}}, True),
        ({"@type": "Article", "headline": "H"}, False),
        ({"@type": "Thing"}, True),
        ({"name": "no type"}, False),
        ("not a mapping", False),
    ],
)
def test_validate_schema(schema: object, expected: bool) -> None:
    assert validate_schema(schema) is expected


def test_generate_all_collects_every_generator() -> None:
    tags = generate_all(_article(), SITE, "blog/my-post.html")
    assert tags.title == "Post"
    assert tags.open_graph and tags.twitter and tags.links
    assert len(tags.json_ld) == 4
    assert json.loads(tags.json_ld_text)["@graph"][1]["@type"] == "Article"
    ordered = tags.ordered()
    assert [t.key for t in ordered[:3]] == ["description", "robots", "viewport"]
    assert ordered[-1].kind == "script"


def test_organization_omits_unset_fields() -> None:
    site = SiteConfig.model_validate({"hostname": "https://ex.com", "jsonLd": {"organization": {"contactPoint": {}}}})
    (org,) = [s for s in generate_json_ld(_article(), site) if s["@type"] == "Organization"]
    assert "name" not in org
    assert org["url"] == "https://ex.com"
    assert org["contactPoint"] == {"@type": "ContactPoint", "contactType": "customer service"}
    assert "null" not in json_ld_text([org])
