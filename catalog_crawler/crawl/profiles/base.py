"""Site profile base classes."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from catalog_crawler.config import settings
from catalog_crawler.crawl.images import ImageDownload
from catalog_crawler.crawl.selectors import Candidate, SelectorSpec, parse_candidates
from catalog_crawler.crawl.types import Category, ScrapedRecord

if TYPE_CHECKING:
    from catalog_crawler.crawl.navigator import Navigator


class UnknownCategoryError(Exception):
    """Requested category is not configured for the site."""
    def __init__(self, name: str, available: List[str]):
        self.name = name
        self.available = available
        super().__init__(f"Category '{name}' not found")


@dataclass(frozen=True)
class ItemLocator:
    """Container to wait for, then item selectors queried in order (first non-empty wins)."""

    container: Optional[str]
    items: List[str]


@dataclass(frozen=True)
class FieldRule:
    """Ordered candidates for one extracted field."""

    candidates: List[Candidate]
    attribute: Optional[str] = None
    transform: Optional[Callable[[str], str]] = None


@dataclass(frozen=True)
class DetailPageConfig:
    """Fields resolved on the product detail page."""

    fields: Dict[str, FieldRule]


@dataclass(frozen=True)
class LoginConfig:
    """Login page description and the submit strategies' selectors."""

    url: str
    email_selector: str = 'input[type="email"]'
    password_selector: str = 'input[type="password"]'
    url_pattern: str = "login"
    button_locator: Optional[str] = None
    form_submit_script: str = (
        "() => { const form = document.querySelector('form'); "
        "if (form) { form.submit(); return true; } return false; }"
    )
    submit_selectors: List[str] = field(default_factory=list)


class SiteProfile:
    """
    Static description of one catalog site.

    Subclasses provide categories, selectors, the navigation policy and
    persistence keys. All behavior that varies per site lives here so the
    extractor and engine stay site-agnostic.
    """

    key: str = "generic"
    display_name: str = "Generic"
    base_url: str = ""
    image_dir: str = ""
    viewport: Dict[str, int] = {"width": 1280, "height": 720}
    browser_args: List[str] = []

    categories: List[Category] = []

    # Listing page
    grid_selector: Optional[str] = None
    item_locators: List[ItemLocator] = []
    xpath_fallback: Optional[str] = None
    name_rule: FieldRule = FieldRule([])
    url_rule: Optional[FieldRule] = None  # None: href read from the name element
    image_rule: Optional[FieldRule] = None
    listing_rules: Dict[str, FieldRule] = {}

    detail_page: Optional[DetailPageConfig] = None
    login: Optional[LoginConfig] = None

    # Persistence
    update_fields: List[str] = []

    def make_navigator(self) -> "Navigator":
        raise NotImplementedError

    def natural_key(self, record: ScrapedRecord) -> Dict[str, Any]:
        """Filter identifying the persisted document for a record."""
        raise NotImplementedError

    def build_record(
        self,
        category: Category,
        fields: Dict[str, Optional[str]],
        image: Optional[ImageDownload],
    ) -> ScrapedRecord:
        """Create the site's record from resolved field values."""
        raise NotImplementedError

    @property
    def image_folder(self) -> Path:
        return Path(settings.image_root) / (self.image_dir or self.key)

    @property
    def category_names(self) -> List[str]:
        return [c.name for c in self.categories]

    def get_category(self, name: str) -> Category:
        """
        Look up a category by name (case-insensitive).

        Raises:
            UnknownCategoryError: If the name is not configured
        """
        for category in self.categories:
            if category.name.lower() == name.lower():
                return category
        raise UnknownCategoryError(name, self.category_names)

    def describe(self) -> Dict[str, Any]:
        """Configuration summary exposed by the API."""

        def selectors(rule: Optional[FieldRule]) -> List[str]:
            if rule is None:
                return []
            return [spec.selector for spec in parse_candidates(rule.candidates)]

        return {
            "site": self.key,
            "name": self.display_name,
            "base_url": self.base_url,
            "total_categories": len(self.categories),
            "viewport": self.viewport,
            "requires_login": self.login is not None,
            "detail_pages": self.detail_page is not None,
            "selectors": {
                "grid": self.grid_selector,
                "items": [item for locator in self.item_locators for item in locator.items],
                "name": selectors(self.name_rule),
                "url": selectors(self.url_rule),
                "image": selectors(self.image_rule),
                **{name: selectors(rule) for name, rule in self.listing_rules.items()},
            },
        }


def attr(selector: str, attribute: str, pattern: Optional[str] = None) -> SelectorSpec:
    """Shorthand for an attribute-reading candidate."""
    return SelectorSpec(selector, attribute=attribute, pattern=pattern)
