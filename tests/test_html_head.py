from __future__ import annotations

import json

import pytest

from seo_head_core.html_head import (
    HeadMutator,
    add_script,
    extract_html_head_metadata,
    inject_into_head,
    remove_existing_meta_tags,
    update_link_tag,
    update_meta_tag,
    update_title,
)


def test_inject_creates_head_and_title_before_body() -> None:
    out = inject_into_head("<body>Content</body>", '<meta name="test" content="value">')
    assert out == '<head><title></title><meta name="test" content="value"></head><body>Content</body>'


def test_inject_without_head_creation_returns_input() -> None:
    html = "<body>Content</body>"
    assert inject_into_head(html, "<meta name=a content=b>", create_head=False) == html


@pytest.mark.parametrize(
    ("position", "expected"),
    [
        ("end", '<head><meta name="x" content="1"><title>T</title><meta name="new" content="n"></head>'),
        ("start", '<head><meta name="new" content="n"><meta name="x" content="1"><title>T</title></head>'),
        ("before-title", '<head><meta name="x" content="1"><meta name="new" content="n"><title>T</title></head>'),
        ("after-title", '<head><meta name="x" content="1"><title>T</title><meta name="new" content="n"></head>'),
    ],
)
def test_inject_positions(position: str, expected: str) -> None:
    html = '<head><meta name="x" content="1"><title>T</title></head>'
    assert inject_into_head(html, '<meta name="new" content="n">', position=position) == expected


def test_inject_rejects_unknown_position() -> None:
    with pytest.raises(ValueError):
        inject_into_head("<head></head>", "<meta>", position="middle")


@pytest.mark.parametrize(
    ("html", "expected"),
    [
        ("<html><body>x</body></html>", "<html><head></head><body>x</body></html>"),
        ("<!DOCTYPE html><p>x</p>", "<!DOCTYPE html><head></head><p>x</p>"),
        ("", "<head></head>"),
        ("hello", "<head></head>hello"),
    ],
)
def test_ensure_head_placement(html: str, expected: str) -> None:
    mutator = HeadMutator(html)
    mutator.ensure_head()
    assert mutator.serialize() == expected


def test_ensure_head_reuses_existing() -> None:
    mutator = HeadMutator("<html><head><title>T</title></head></html>")
    assert mutator.ensure_head() is mutator.head
    assert mutator.serialize() == "<html><head><title>T</title></head></html>"


def test_update_title_escapes_text() -> None:
    out = update_title("<head><title>Old</title></head>", "A & B <C>")
    assert out == "<head><title>A &amp; B &lt;C&gt;</title></head>"


def test_upsert_meta_replaces_value_in_place() -> None:
    html = '<head><meta name="description" content="old"></head>'
    assert update_meta_tag(html, "description", "new") == '<head><meta name="description" content="new"></head>'


def test_meta_inserted_after_last_meta() -> None:
    html = '<head><title>T</title><meta charset="utf-8"></head>'
    out = update_meta_tag(html, "robots", "index")
    assert out == '<head><title>T</title><meta charset="utf-8"><meta name="robots" content="index"></head>'


def test_meta_inserted_after_title_then_head_start() -> None:
    out = update_meta_tag("<head><title>T</title></head>", "og:title", "X", kind="property")
    assert out == '<head><title>T</title><meta property="og:title" content="X"></head>'

    out = update_meta_tag('<head><link rel="icon" href="/f.ico"></head>', "a", "b")
    assert out == '<head><meta name="a" content="b"><link rel="icon" href="/f.ico"></head>'


def test_attribute_values_are_escaped() -> None:
    out = update_meta_tag("<head></head>", "description", "Tom & \"Jerry\" <3 'x'")
    assert 'content="Tom &amp; &quot;Jerry&quot; &lt;3 &#39;x&#39;"' in out


def test_http_equiv_meta() -> None:
    out = update_meta_tag("<head></head>", "content-language", "en", kind="http-equiv")
    assert out == '<head><meta http-equiv="content-language" content="en"></head>'


def test_unsupported_meta_kind() -> None:
    with pytest.raises(ValueError):
        HeadMutator("<head></head>").upsert_meta_tag("itemprop", "name", "x")


def test_add_meta_tag_repeats_keys() -> None:
    mutator = HeadMutator("<head></head>")
    mutator.upsert_meta_tag("property", "article:tag", "a")
    mutator.add_meta_tag("property", "article:tag", "b")
    assert mutator.serialize() == (
        '<head><meta property="article:tag" content="a"><meta property="article:tag" content="b"></head>'
    )


def test_link_upsert_replaces_by_rel() -> None:
    html = '<head><link rel="canonical" href="/old"><link rel="shortcut icon" href="/f.ico"></head>'
    out = update_link_tag(html, "canonical", "https://ex.com/new")
    assert out == '<head><link rel="canonical" href="https://ex.com/new"><link rel="shortcut icon" href="/f.ico"></head>'


def test_link_insert_positions() -> None:
    out = update_link_tag('<head><meta name="a" content="b"><title>T</title></head>', "canonical", "/c")
    assert out == '<head><meta name="a" content="b"><link rel="canonical" href="/c"><title>T</title></head>'

    out = update_link_tag("<head><title>T</title></head>", "alternate", "/fr", {"hreflang": "fr"})
    assert out == '<head><title>T</title><link rel="alternate" href="/fr" hreflang="fr"></head>'


def test_add_script_keeps_content_verbatim() -> None:
    out = add_script("<head><title>T</title></head>", '{"q": "a&b <x>"}')
    assert out == '<head><title>T</title><script type="application/ld+json">{"q": "a&b <x>"}</script></head>'

    out = add_script("<head><title>T</title></head>", "var a = 1;", type_="text/javascript", position="start")
    assert out.startswith('<head><script type="text/javascript">var a = 1;</script><title>')


def test_remove_default_managed_tags() -> None:
    html = (
        "<html><head>"
        '<meta charset="utf-8">'
        '<meta name="generator" content="ssg">'
        '<meta name="description" content="d">'
        '<meta property="og:title" content="t">'
        '<meta name="twitter:card" content="summary">'
        '<meta property="product:price:amount" content="1">'
        '<meta http-equiv="content-language" content="en">'
        '<link rel="canonical" href="/c">'
        '<link rel="icon" href="/f.ico">'
        '<script type="application/ld+json">{}</script>'
        '<script src="/app.js"></script>'
        "</head><body></body></html>"
    )
    out = remove_existing_meta_tags(html)
    assert out == (
        "<html><head>"
        '<meta charset="utf-8">'
        '<meta name="generator" content="ssg">'
        '<link rel="icon" href="/f.ico">'
        '<script src="/app.js"></script>'
        "</head><body></body></html>"
    )


def test_remove_named_tags_only() -> None:
    html = '<head><meta name="description" content="d"><meta name="author" content="a"></head>'
    assert remove_existing_meta_tags(html, ["description"]) == '<head><meta name="author" content="a"></head>'


def test_extract_html_head_metadata_basic() -> None:
    html = b"""
    <html><head>
      <title>  Hello   World </title>
      <link rel="canonical" href="https://example.com/canonical" />
      <meta name="description" content="desc here" />
      <meta property="og:image" content="https://example.com/img.png" />
      <script type="application/ld+json">{"@type": "WebPage"}</script>
    </head><body>ok</body></html>
    """
    meta = extract_html_head_metadata(html)
    assert meta.title == "Hello World"
    assert meta.canonical_url == "https://example.com/canonical"
    assert meta.description == "desc here"
    assert meta.meta_by_name["description"] == "desc here"
    assert meta.open_graph["og:image"] == "https://example.com/img.png"
    assert [json.loads(block) for block in meta.json_ld] == [{"@type": "WebPage"}]


def test_extract_ignores_tags_outside_head() -> None:
    meta = extract_html_head_metadata('<head></head><body><meta name="description" content="x"></body>')
    assert meta.description is None
    assert meta.title is None


LOOSE_BODY = "<body><p>One<p>Two<ul><li>a<li>b</ul><p>&copy; 2025 &amp; more</body>"


def test_body_with_omitted_end_tags_is_kept_verbatim() -> None:
    html = "<!doctype html>\n<html lang=en><head><title>T</title></head>\n" + LOOSE_BODY + "\n</html>"
    out = update_meta_tag(html, "description", "d")
    assert out == (
        '<!doctype html>\n<html lang=en><head><title>T</title><meta name="description" content="d"></head>\n'
        + LOOSE_BODY
        + "\n</html>"
    )


def test_remove_managed_tags_leaves_body_alone() -> None:
    html = '<head><meta name="description" content="old"></head><body><meta name="description" content="b"></body>'
    assert remove_existing_meta_tags(html) == '<head></head><body><meta name="description" content="b"></body>'


def test_unclosed_head_ends_at_body() -> None:
    out = update_title("<html><head><title>T</title><body>x</body></html>", "New")
    assert out == "<html><head><title>New</title></head><body>x</body></html>"


def test_extract_limits_text_input_to_max_bytes() -> None:
    html = "<head><title>Hi</title>" + " " * 100 + '<meta name="description" content="late"></head>'
    meta = extract_html_head_metadata(html, max_bytes=40)
    assert meta.title == "Hi"
    assert meta.description is None
    assert extract_html_head_metadata(html).description == "late"
