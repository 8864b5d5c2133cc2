"""
Per-element results of walking a KMZ document graph.

Links and overlays that cannot be used never abort a walk; they are recorded
as skipped with a reason so callers can introspect what was left out.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


class LinkStatus(str, Enum):
    """Outcome status of one NetworkLink or GroundOverlay."""

    SUCCESS = "success"
    SKIPPED = "skipped"


class SkipReason(str, Enum):
    """Why an element contributed nothing."""

    MISSING_HREF = "missing_href"
    NOT_FOUND = "not_found"
    PARSE_FAILED = "parse_failed"
    CYCLE = "cycle"
    DEPTH_LIMIT = "depth_limit"
    ALREADY_RENDERED = "already_rendered"
    MISSING_ICON = "missing_icon"
    MISSING_BOUNDS = "missing_bounds"
    INVALID_BOUNDS = "invalid_bounds"


class ElementKind(str, Enum):
    NETWORK_LINK = "NetworkLink"
    GROUND_OVERLAY = "GroundOverlay"


@dataclass(frozen=True)
class LinkOutcome:
    """
    Result for one element of a document.

    Attributes:
        kind: Element type that produced the outcome
        source: Archive path of the document containing the element
        status: Whether the element was used
        reason: Skip reason (None on success)
        href: Raw href (link target or overlay icon), if present
        resolved_path: Archive path the href resolved to, if resolved
    """

    kind: ElementKind
    source: str
    status: LinkStatus
    reason: Optional[SkipReason] = None
    href: Optional[str] = None
    resolved_path: Optional[str] = None

    @classmethod
    def success(
        cls, kind: ElementKind, source: str, href: str, resolved_path: str
    ) -> "LinkOutcome":
        return cls(kind, source, LinkStatus.SUCCESS, None, href, resolved_path)

    @classmethod
    def skipped(
        cls,
        kind: ElementKind,
        source: str,
        reason: SkipReason,
        href: Optional[str] = None,
        resolved_path: Optional[str] = None,
    ) -> "LinkOutcome":
        return cls(kind, source, LinkStatus.SKIPPED, reason, href, resolved_path)

    @property
    def is_skipped(self) -> bool:
        return self.status == LinkStatus.SKIPPED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "source": self.source,
            "status": self.status.value,
            "reason": self.reason.value if self.reason else None,
            "href": self.href,
            "resolved_path": self.resolved_path,
        }


def skipped_only(outcomes: List[LinkOutcome]) -> List[LinkOutcome]:
    """Filter outcomes down to the skipped ones."""
    return [outcome for outcome in outcomes if outcome.is_skipped]
