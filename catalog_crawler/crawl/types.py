"""Data types shared by the crawl engine, the reconciler and the orchestrator."""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Category:
    """A catalog category: display name plus listing URL."""

    name: str
    url: str


@dataclass(kw_only=True)
class ScrapedRecord:
    """
    Base class for a product extracted from a listing page.

    Records are built once by the extractor (after optional detail-page
    enrichment) and are not mutated afterwards.
    """

    product_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    category: str
    source: str = ""
    scraped_timestamp: datetime = field(default_factory=_utcnow)

    @property
    def display_name(self) -> str:
        raise NotImplementedError

    def to_document(self) -> Dict[str, Any]:
        """Return the dict persisted to the document store."""
        return asdict(self)

    def to_json(self) -> Dict[str, Any]:
        """Return a JSON-serializable dict (timestamps as ISO strings)."""
        doc = self.to_document()
        for key, value in doc.items():
            if isinstance(value, datetime):
                doc[key] = value.isoformat()
        return doc


@dataclass(kw_only=True)
class CaterChoiceProduct(ScrapedRecord):
    """Cater Choice product (listing fields plus detail-page code and description)."""

    product_code: Optional[str] = None
    product_name: str
    product_description: Optional[str] = None
    product_size: Optional[str] = None
    product_single_price: Optional[str] = None
    product_case_price: Optional[str] = None
    product_url: Optional[str] = None
    original_image_url: Optional[str] = None
    local_image_filename: Optional[str] = None
    local_image_filepath: Optional[str] = None
    source: str = "CaterChoice_Standalone_Mongo"

    @property
    def display_name(self) -> str:
        return self.product_name


@dataclass(kw_only=True)
class AdamsProduct(ScrapedRecord):
    """Adams Food Service product."""

    name: str
    sku: Optional[str] = None
    image_url_scraped: Optional[str] = None
    image_filename_local: Optional[str] = None
    product_page_url: Optional[str] = None
    scraped_from_category_page_url: Optional[str] = None
    source: str = "AdamsFoodService_Standalone_Mongo"

    @property
    def display_name(self) -> str:
        return self.name


@dataclass(kw_only=True)
class MetroProduct(ScrapedRecord):
    """Metro product. Listing pages carry no code or size; enrichment happens later."""

    product_code: Optional[str] = None
    product_name: str
    product_description: Optional[str] = None
    product_size: Optional[str] = None
    product_price: str = "Price not available"
    product_url: Optional[str] = None
    image_name: Optional[str] = None
    image_url: Optional[str] = None
    image_location: Optional[str] = None
    needs_enrichment: bool = True
    source: str = "metro"

    @property
    def display_name(self) -> str:
        return self.product_name


@dataclass(frozen=True)
class JobOptions:
    """Options for one crawl job. Immutable once the job starts."""

    email: Optional[str] = None
    password: Optional[str] = None
    use_credentials: bool = False
    headless: bool = True
    download_images: bool = False
    persist_to_store: bool = False
    output_file: str = "products.json"

    def for_category(self) -> "JobOptions":
        """Copy handed to each per-category crawl."""
        return replace(self)

    def masked(self) -> Dict[str, Any]:
        """Log-safe view of the options."""
        data = asdict(self)
        data["password"] = "<provided>" if self.password else "<empty>"
        if self.email:
            data["email"] = self.email[:3] + "***"
        return data
