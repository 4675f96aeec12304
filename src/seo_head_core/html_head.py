from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from bs4 import BeautifulSoup
from bs4.dammit import EntitySubstitution
from bs4.element import Tag as SoupTag
from bs4.formatter import HTMLFormatter

from seo_head_core.models import JSON_LD_TYPE
from seo_head_core.util import escape_attribute

META_KEY_ATTRIBUTES = ("name", "property", "http-equiv")
POSITIONS = ("start", "end", "before-title", "after-title")

# Every key the generators can emit; removed before re-injection so rebuilds never duplicate.
DEFAULT_MANAGED_META = frozenset(
    {
        "description",
        "keywords",
        "robots",
        "author",
        "viewport",
        "theme-color",
        "publisher",
        "copyright",
        "googlebot",
    }
)
MANAGED_META_PREFIXES = ("og:", "twitter:", "article:", "product:", "profile:", "fb:")
MANAGED_HTTP_EQUIV = frozenset({"content-language"})

_BODY_OPEN_RE = re.compile(r"<body\b", re.IGNORECASE)
_HEAD_OPEN_RE = re.compile(r"<head\b[^>]*>", re.IGNORECASE)
_HEAD_CLOSE_RE = re.compile(r"</head\s*>", re.IGNORECASE)
_HTML_OPEN_RE = re.compile(r"<html\b[^>]*>", re.IGNORECASE)
_PROLOG_RE = re.compile(r"(?:\s*(?:<\?xml[^>]*>|<!DOCTYPE[^>]*>))*", re.IGNORECASE)
_WS_RE = re.compile(r"\s+")


class _HeadFormatter(HTMLFormatter):
    """Minimal text escaping; attribute values go through `escape_attribute` in source order."""

    def __init__(self) -> None:
        super().__init__(
            entity_substitution=EntitySubstitution.substitute_xml,
            void_element_close_prefix=None,
        )

    def attribute_value(self, value: str) -> str:
        return escape_attribute(value)

    def attributes(self, tag: SoupTag) -> Iterable[tuple[str, Any]]:
        if not tag.attrs:
            return []
        return list(tag.attrs.items())


_FORMATTER = _HeadFormatter()


def _attr_text(tag: SoupTag, name: str) -> str | None:
    value = tag.get(name)
    if isinstance(value, list):
        return " ".join(value)
    return value


def _is_managed_meta(tag: SoupTag, tags: frozenset[str] | None) -> bool:
    equiv = (_attr_text(tag, "http-equiv") or "").lower()
    keys = [k for k in (_attr_text(tag, "name"), _attr_text(tag, "property")) if k]
    if tags is not None:
        return any(k in tags for k in keys)
    if equiv in MANAGED_HTTP_EQUIV:
        return True
    return any(k in DEFAULT_MANAGED_META or k.startswith(MANAGED_META_PREFIXES) for k in keys)


def _locate_head(html: str) -> tuple[int, int] | None:
    """Span of the document's `<head>` element; an unclosed head ends where `<body>` starts."""
    body = _BODY_OPEN_RE.search(html)
    limit = body.start() if body else len(html)
    opening = _HEAD_OPEN_RE.search(html, 0, limit)
    if opening is None:
        return None
    closing = _HEAD_CLOSE_RE.search(html, opening.end())
    if closing is not None and (body is None or closing.start() <= limit):
        return opening.start(), closing.end()
    return opening.start(), limit


def _head_insertion_point(html: str) -> int:
    body = _BODY_OPEN_RE.search(html)
    limit = body.start() if body else len(html)
    root = _HTML_OPEN_RE.search(html, 0, limit)
    if root is not None:
        return root.end()
    if body is not None:
        return body.start()
    return _PROLOG_RE.match(html).end()


class HeadMutator:
    """
    Idempotent edits to one HTML document's head.

    Only the `<head>` region is parsed (BeautifulSoup, `html.parser` builder) and written
    back; every character outside it is kept exactly as it was. A missing head is created
    inside `<html>`, else right before `<body>`, else at the start after any doctype.
    Call `serialize()` to get the edited text back.
    """

    def __init__(self, html: str) -> None:
        self.source = html or ""
        self._span = _locate_head(self.source)
        if self._span is None:
            point = _head_insertion_point(self.source)
            self._span = (point, point)
            self.soup = BeautifulSoup("", "html.parser")
        else:
            start, end = self._span
            self.soup = BeautifulSoup(self.source[start:end], "html.parser")

    @property
    def head(self) -> SoupTag | None:
        return self.soup.find("head")

    def ensure_head(self) -> SoupTag:
        head = self.head
        if head is None:
            head = self.soup.new_tag("head")
            self.soup.append(head)
        return head

    def ensure_title(self) -> SoupTag:
        head = self.ensure_head()
        title = head.find("title")
        if title is None:
            title = self.soup.new_tag("title")
            head.insert(0, title)
        return title

    def set_title(self, text: str) -> None:
        self.ensure_title().string = text

    def upsert_meta_tag(self, kind: str, key: str, value: Any) -> SoupTag:
        if kind not in META_KEY_ATTRIBUTES:
            raise ValueError(f"unsupported meta attribute: {kind}")
        head = self.ensure_head()
        existing = head.find_all("meta", attrs={kind: key})
        if not existing:
            return self.add_meta_tag(kind, key, value)
        for tag in existing:
            tag["content"] = str(value)
        return existing[0]

    def add_meta_tag(self, kind: str, key: str, value: Any) -> SoupTag:
        """Insert without replacing; used for keys that legitimately repeat (article:tag)."""
        if kind not in META_KEY_ATTRIBUTES:
            raise ValueError(f"unsupported meta attribute: {kind}")
        head = self.ensure_head()
        tag = self.soup.new_tag("meta", attrs={kind: key, "content": str(value)})
        metas = head.find_all("meta")
        if metas:
            metas[-1].insert_after(tag)
        else:
            title = head.find("title")
            if title is not None:
                title.insert_after(tag)
            else:
                head.insert(0, tag)
        return tag

    def upsert_link_tag(self, rel: str, href: str, extra: Mapping[str, Any] | None = None) -> SoupTag:
        head = self.ensure_head()
        attrs = {"rel": rel, "href": href}
        for key, value in (extra or {}).items():
            if key not in attrs:
                attrs[key] = str(value)
        tag = self.soup.new_tag("link", attrs=attrs)

        existing = [t for t in head.find_all("link") if _attr_text(t, "rel") == rel]
        if existing:
            existing[0].replace_with(tag)
            for stale in existing[1:]:
                stale.decompose()
            return tag

        links = head.find_all("link")
        metas = head.find_all("meta")
        if links:
            links[-1].insert_after(tag)
        elif metas:
            metas[-1].insert_after(tag)
        else:
            head.append(tag)
        return tag

    def append_script(self, content: str, type_: str = JSON_LD_TYPE, position: str = "end") -> SoupTag:
        head = self.ensure_head()
        tag = self.soup.new_tag("script", attrs={"type": type_})
        tag.string = content
        if position == "start":
            head.insert(0, tag)
        else:
            head.append(tag)
        return tag

    def remove_managed_tags(self, tags: Iterable[str] | None = None) -> int:
        """
        Remove head tags injected by a previous build: the given meta keys (matched on name or
        property) or the default managed set, the canonical link and every JSON-LD script.
        """
        selected = frozenset(tags) if tags else None
        doomed: list[SoupTag] = [m for m in self.soup.find_all("meta") if _is_managed_meta(m, selected)]
        doomed.extend(t for t in self.soup.find_all("link") if _attr_text(t, "rel") == "canonical")
        doomed.extend(
            s for s in self.soup.find_all("script") if (_attr_text(s, "type") or "").lower() == JSON_LD_TYPE
        )
        for tag in doomed:
            tag.decompose()
        return len(doomed)

    def insert_fragment(self, content: str, position: str = "end") -> None:
        if position not in POSITIONS:
            raise ValueError(f"unsupported position: {position}")
        head = self.ensure_head()
        nodes = [node.extract() for node in list(BeautifulSoup(content, "html.parser").contents)]
        title = head.find("title")

        if position == "start" or (position == "before-title" and title is None):
            for index, node in enumerate(nodes):
                head.insert(index, node)
        elif position == "before-title":
            for node in nodes:
                title.insert_before(node)
        elif position == "after-title" and title is not None:
            anchor = title
            for node in nodes:
                anchor.insert_after(node)
                anchor = node
        else:
            for node in nodes:
                head.append(node)

    def serialize(self) -> str:
        if self.head is None:
            return self.source
        start, end = self._span
        return self.source[:start] + self.soup.decode(formatter=_FORMATTER) + self.source[end:]


def inject_into_head(
    html: str,
    content: str,
    *,
    create_head: bool = True,
    ensure_title: bool = True,
    position: str = "end",
) -> str:
    mutator = HeadMutator(html)
    if mutator.head is None and not create_head:
        return html
    if ensure_title:
        mutator.ensure_title()
    mutator.insert_fragment(content, position)
    return mutator.serialize()


def update_title(html: str, title: str) -> str:
    mutator = HeadMutator(html)
    mutator.set_title(title)
    return mutator.serialize()


def update_meta_tag(html: str, key: str, content: Any, kind: str = "name") -> str:
    mutator = HeadMutator(html)
    mutator.upsert_meta_tag(kind, key, content)
    return mutator.serialize()


def update_link_tag(html: str, rel: str, href: str, attributes: Mapping[str, Any] | None = None) -> str:
    mutator = HeadMutator(html)
    mutator.upsert_link_tag(rel, href, attributes)
    return mutator.serialize()


def add_script(html: str, content: str, type_: str = JSON_LD_TYPE, position: str = "end") -> str:
    mutator = HeadMutator(html)
    mutator.append_script(content, type_, position)
    return mutator.serialize()


def remove_existing_meta_tags(html: str, tags: Iterable[str] | None = None) -> str:
    mutator = HeadMutator(html)
    mutator.remove_managed_tags(tags)
    return mutator.serialize()


@dataclass(frozen=True)
class HtmlHeadMetadata:
    title: str | None
    canonical_url: str | None
    description: str | None
    open_graph: dict[str, str]
    meta_by_name: dict[str, str]
    json_ld: list[str] = field(default_factory=list)


def _norm(s: str | None) -> str:
    return (s or "").strip()


def extract_html_head_metadata(body: bytes | str, *, max_bytes: int = 262144) -> HtmlHeadMetadata:
    """
    Read back what a document's <head> declares: title, canonical URL, meta tags keyed by
    name, property-keyed tags (Open Graph, article:, product:, ...) and JSON-LD payloads.

    Safe for dirty HTML: bytes are decoded with replacement and only the first
    `max_bytes` are parsed (characters, for text input).
    """
    if isinstance(body, str):
        text = body[:max_bytes]
    else:
        text = body[:max_bytes].decode("utf-8", errors="replace")

    head = HeadMutator(text).head
    if head is None:
        return HtmlHeadMetadata(title=None, canonical_url=None, description=None, open_graph={}, meta_by_name={})

    title_tag = head.find("title")
    title = _WS_RE.sub(" ", title_tag.get_text()).strip() if title_tag is not None else ""

    canonical_url: str | None = None
    for link in head.find_all("link"):
        href = _norm(_attr_text(link, "href"))
        if _norm(_attr_text(link, "rel")).lower() == "canonical" and href:
            canonical_url = href
            break

    description: str | None = None
    open_graph: dict[str, str] = {}
    meta_by_name: dict[str, str] = {}
    for meta in head.find_all("meta"):
        content = _norm(_attr_text(meta, "content"))
        if not content:
            continue
        name = _norm(_attr_text(meta, "name")).lower()
        prop = _norm(_attr_text(meta, "property")).lower()
        if name:
            if name == "description" and description is None:
                description = content
            meta_by_name.setdefault(name, content)
        if prop:
            open_graph.setdefault(prop, content)

    json_ld = [
        _norm(script.string)
        for script in head.find_all("script")
        if _norm(_attr_text(script, "type")).lower() == JSON_LD_TYPE
    ]

    return HtmlHeadMetadata(
        title=title or None,
        canonical_url=canonical_url,
        description=description,
        open_graph=open_graph,
        meta_by_name=meta_by_name,
        json_ld=json_ld,
    )
