from seo_head_core.config import Settings, SiteConfig, load_settings
from seo_head_core.generators import generate_all
from seo_head_core.html_head import HeadMutator, extract_html_head_metadata, inject_into_head
from seo_head_core.models import BatchResult, CanonicalMetadata, DocumentResult, GeneratedTagSet, RawDocument, Tag
from seo_head_core.pipeline import DocumentTimeoutError, optimize_batch, optimize_batch_sync, optimize_document
from seo_head_core.resolver import first_present, resolve_metadata
from seo_head_core.validation import ValidationIssue, validate_site_config

__all__ = [
    "__version__",
    "BatchResult",
    "CanonicalMetadata",
    "DocumentResult",
    "DocumentTimeoutError",
    "GeneratedTagSet",
    "HeadMutator",
    "RawDocument",
    "Settings",
    "SiteConfig",
    "Tag",
    "ValidationIssue",
    "extract_html_head_metadata",
    "first_present",
    "generate_all",
    "inject_into_head",
    "load_settings",
    "optimize_batch",
    "optimize_batch_sync",
    "optimize_document",
    "resolve_metadata",
    "validate_site_config",
]

__version__ = "0.0.0"
