from __future__ import annotations

import asyncio
import logging
import re
import threading
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from seo_head_core.config import SiteConfig
from seo_head_core.generators import generate_all
from seo_head_core.html_head import HeadMutator
from seo_head_core.models import JSON_LD_TYPE, BatchResult, DocumentResult, GeneratedTagSet, RawDocument
from seo_head_core.resolver import resolve_document
from seo_head_core.util import decode_contents

logger = logging.getLogger(__name__)

STATUS_OPTIMIZED = "optimized"
STATUS_SKIPPED = "skipped"
STATUS_EXCLUDED = "excluded"
STATUS_FAILED = "failed"
STATUS_CANCELLED = "cancelled"

DEFAULT_BATCH_SIZE = 10

_HTML_PATH_RE = re.compile(r"\.html?$", re.IGNORECASE)


class DocumentTimeoutError(TimeoutError):
    def __init__(self, path: str, timeout_s: float) -> None:
        super().__init__(f"{path}: not optimized within {timeout_s}s")
        self.path = path
        self.timeout_s = timeout_s


def is_html_path(path: str) -> bool:
    return bool(_HTML_PATH_RE.search(path or ""))


def apply_tags(html: str, tags: GeneratedTagSet) -> str:
    """
    Write a generated tag set into a document head.

    Tags from a previous build are removed first, so applying the same set twice yields
    identical output. The first tag for a key replaces any survivor; repeats are added.
    """
    mutator = HeadMutator(html)
    mutator.remove_managed_tags()
    mutator.ensure_head()
    mutator.set_title(tags.title)

    seen: set[tuple[str, str]] = set()
    for tag in tags.ordered():
        if tag.kind == "meta":
            kind, key = tag.key_attribute, tag.key
            if kind is None or key is None:
                continue
            if (kind, key) in seen:
                mutator.add_meta_tag(kind, key, tag.content or "")
            else:
                seen.add((kind, key))
                mutator.upsert_meta_tag(kind, key, tag.content or "")
        elif tag.kind == "link":
            extra = {k: v for k, v in tag.attrs.items() if k not in ("rel", "href")}
            mutator.upsert_link_tag(tag.attrs["rel"], tag.attrs["href"], extra)
        elif tag.kind == "script":
            mutator.append_script(tag.text or "", tag.attrs.get("type", JSON_LD_TYPE))
    return mutator.serialize()


def optimize_document(doc: RawDocument, site: SiteConfig) -> DocumentResult:
    if not is_html_path(doc.path) or not isinstance(doc.contents, (bytes, bytearray, str)):
        logger.debug("skipping non-html document path=%s", doc.path)
        return DocumentResult(path=doc.path, status=STATUS_SKIPPED, contents=doc.contents)

    metadata = resolve_document(doc, site)
    if metadata.no_index and not site.generate_sitemap:
        logger.debug("excluding noindex document path=%s", doc.path)
        return DocumentResult(path=doc.path, status=STATUS_EXCLUDED, contents=doc.contents, metadata=metadata)

    tags = generate_all(metadata, site, doc.path)
    html = decode_contents(doc.contents) or ""
    rendered = apply_tags(html, tags)
    contents: bytes | str = rendered if isinstance(doc.contents, str) else rendered.encode("utf-8")
    return DocumentResult(
        path=doc.path,
        status=STATUS_OPTIMIZED,
        contents=contents,
        metadata=metadata,
        tags=tags,
    )


async def _optimize_one(
    executor: ThreadPoolExecutor, doc: RawDocument, site: SiteConfig, timeout_s: float | None
) -> DocumentResult:
    # Each document has its own worker, so the deadline starts when the work does.
    work = asyncio.get_running_loop().run_in_executor(executor, optimize_document, doc, site)
    try:
        if timeout_s is None:
            return await work
        return await asyncio.wait_for(work, timeout=timeout_s)
    except asyncio.TimeoutError:
        logger.warning("document timed out path=%s timeout_s=%s", doc.path, timeout_s)
        return DocumentResult(
            path=doc.path,
            status=STATUS_FAILED,
            contents=doc.contents,
            error=DocumentTimeoutError(doc.path, timeout_s or 0.0),
        )
    except Exception as e:
        logger.exception("document failed path=%s", doc.path)
        return DocumentResult(path=doc.path, status=STATUS_FAILED, contents=doc.contents, error=e)


async def _optimize_wave(
    wave: list[RawDocument], site: SiteConfig, timeout_s: float | None
) -> list[DocumentResult]:
    executor = ThreadPoolExecutor(max_workers=len(wave), thread_name_prefix="seo-head")
    try:
        return list(await asyncio.gather(*(_optimize_one(executor, doc, site, timeout_s) for doc in wave)))
    finally:
        # Timed-out workers finish in the background; nothing waits on them.
        executor.shutdown(wait=False, cancel_futures=True)


async def optimize_batch(
    documents: Mapping[str, Any],
    site: SiteConfig,
    *,
    batch_size: int | None = None,
    document_timeout_s: float | None = None,
    cancel_event: threading.Event | None = None,
) -> BatchResult:
    """
    Optimize every document, in waves of `batch_size` run concurrently in worker threads.

    Waves run strictly one after another in input order. A failure or timeout is recorded
    against its own document and never stops the batch. `cancel_event` is checked before
    each wave; documents not yet started are reported as cancelled.
    """
    size = batch_size if batch_size is not None else (site.batch_size or DEFAULT_BATCH_SIZE)
    if size <= 0:
        raise ValueError(f"batch_size must be positive, got {size}")
    timeout_s = document_timeout_s if document_timeout_s is not None else site.document_timeout_s

    docs = [RawDocument.from_entry(path, entry) for path, entry in documents.items()]
    keys = list(documents.keys())
    results: dict[str, DocumentResult] = {}
    cancelled = False

    for start in range(0, len(docs), size):
        if cancel_event is not None and cancel_event.is_set():
            cancelled = True
            for key, doc in zip(keys[start:], docs[start:]):
                results[key] = DocumentResult(path=doc.path, status=STATUS_CANCELLED, contents=doc.contents)
            logger.info("batch cancelled remaining=%d", len(docs) - start)
            break
        wave = docs[start : start + size]
        outcomes = await _optimize_wave(wave, site, timeout_s)
        for key, outcome in zip(keys[start : start + size], outcomes):
            results[key] = outcome

    batch = BatchResult(results=results, cancelled=cancelled)
    logger.info(
        "batch complete documents=%d optimized=%d failed=%d cancelled=%s",
        len(docs),
        sum(1 for r in results.values() if r.status == STATUS_OPTIMIZED),
        len(batch.failures),
        cancelled,
    )
    return batch


def optimize_batch_sync(documents: Mapping[str, Any], site: SiteConfig, **kwargs: Any) -> BatchResult:
    """
    Blocking `optimize_batch`. Returns once every document has finished or timed out; a
    timed-out document keeps its worker thread until the work itself ends, without holding
    up the result.
    """
    return asyncio.run(optimize_batch(documents, site, **kwargs))
