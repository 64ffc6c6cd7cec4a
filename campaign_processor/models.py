"""Data models shared by the campaign pipeline stages."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


ERROR_PREFIX = "ERROR:"


# --- Input Models ---

@dataclass(frozen=True, slots=True)
class Prospect:
    """One outreach target derived from a valid input row."""

    id: str
    company: str
    city: str
    phone: str
    business_type: str
    original_row: int
    used_fallback_type: bool = False


# --- Link Models ---

@dataclass(frozen=True, slots=True)
class LinkMetadata:
    """Provenance of a personalised link."""

    prospect_id: str
    business_type: str
    site_index: int
    site_display_name: str
    company: str


@dataclass(frozen=True, slots=True)
class LinkMapping:
    """A personalised demo-site link for one prospect."""

    original_url: str
    metadata: LinkMetadata


@dataclass(slots=True)
class GroupedLink:
    """Link entry inside a :class:`ProspectLinkGroup`.

    ``short_url`` stays ``None`` until the result joiner resolves it.
    """

    original_url: str
    display_name: str
    site_index: int
    short_url: Optional[str] = None


@dataclass(slots=True)
class ProspectLinkGroup:
    """All links generated for a single prospect, in site order."""

    prospect_id: str
    company: str
    business_type: str
    urls: List[GroupedLink] = field(default_factory=list)


# --- Shortener Models ---

@dataclass(slots=True)
class ShortUrlData:
    """The ``data`` object of a successful shortener result."""

    short_url: str
    short_code: Optional[str] = None
    original_url: Optional[str] = None
    expires_at: Optional[int] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ShortUrlData":
        return cls(
            short_url=str(payload["shortUrl"]),
            short_code=payload.get("shortCode"),
            original_url=payload.get("originalUrl"),
            expires_at=payload.get("expiresAt"),
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "shortUrl": self.short_url,
            "shortCode": self.short_code,
            "originalUrl": self.original_url,
            "expiresAt": self.expires_at,
        }


@dataclass(slots=True)
class ShortenResult:
    """Outcome of shortening one link."""

    success: bool
    original_url: str
    data: Optional[ShortUrlData] = None
    error: Optional[str] = None
    fallback: bool = False
    metadata: Optional[LinkMetadata] = None

    @property
    def short_url(self) -> Optional[str]:
        if self.success and self.data is not None:
            return self.data.short_url
        return None


# --- Rendered Output ---

@dataclass(frozen=True, slots=True)
class DemoLink:
    display_name: str
    short_url: str


@dataclass(frozen=True, slots=True)
class RenderedProspect:
    """A prospect together with its rendered WhatsApp message."""

    prospect: Prospect
    whatsapp_message: str
    demo_urls: List[DemoLink] = field(default_factory=list)

    @property
    def has_error(self) -> bool:
        return self.whatsapp_message.startswith(ERROR_PREFIX)

    def as_export_row(self) -> Dict[str, str]:
        """Return the columns written to the campaign export."""
        return {
            "company": self.prospect.company,
            "city": self.prospect.city,
            "phone": self.prospect.phone,
            "business_type": self.prospect.business_type,
            "whatsapp_message": self.whatsapp_message,
        }

    def as_detailed_dict(self) -> Dict[str, Any]:
        """Return every intermediate field, for the diagnostic sidecar file."""
        record = asdict(self.prospect)
        record["whatsapp_message"] = self.whatsapp_message
        record["demo_urls"] = [asdict(link) for link in self.demo_urls]
        return record
