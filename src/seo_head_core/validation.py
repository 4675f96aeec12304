from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlparse

from seo_head_core.config import SiteConfig
from seo_head_core.generators.jsonld import KNOWN_SCHEMA_TYPES


@dataclass(frozen=True)
class ValidationIssue:
    code: str
    message: str
    details: dict[str, object] | None = None


def validate_site_config(site: SiteConfig) -> list[ValidationIssue]:
    """
    Sanity-check a site configuration before a build.

    Issues are advisory: the pipeline still runs with a config that has them, it just
    produces weaker output (relative canonical URLs, missing handles, dropped schemas).
    """
    issues: list[ValidationIssue] = []

    if not site.hostname:
        issues.append(ValidationIssue(code="hostname_missing", message="Site hostname is not set."))
    else:
        parsed = urlparse(site.hostname)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            issues.append(
                ValidationIssue(
                    code="hostname_invalid",
                    message="Site hostname must be an absolute http(s) URL.",
                    details={"hostname": site.hostname},
                )
            )

    handle = site.social.twitter_site
    if handle and not handle.strip().startswith("@"):
        issues.append(
            ValidationIssue(
                code="twitter_site_no_at",
                message="Twitter site handle should start with '@'.",
                details={"twitter_site": handle},
            )
        )

    org = site.json_ld.organization
    if org is not None and not org.name:
        issues.append(
            ValidationIssue(code="organization_name_missing", message="Organization is configured without a name.")
        )

    unknown = sorted(set(site.json_ld.enable_schemas or ()) - KNOWN_SCHEMA_TYPES)
    if unknown:
        issues.append(
            ValidationIssue(
                code="schema_type_unknown",
                message="enableSchemas lists schema types that are never generated.",
                details={"unknown": unknown, "known": sorted(KNOWN_SCHEMA_TYPES)},
            )
        )

    if site.batch_size <= 0:
        issues.append(
            ValidationIssue(
                code="batch_size_invalid",
                message="Batch size must be positive.",
                details={"batch_size": site.batch_size},
            )
        )

    return issues
