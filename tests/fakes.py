"""In-memory stand-ins for Playwright objects and the document store."""

from contextlib import asynccontextmanager
from typing import Any, Callable, Dict, List, Optional

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from catalog_crawler.crawl.types import AdamsProduct, CaterChoiceProduct, MetroProduct


class FakeElement:
    """Element handle with fixed text, attributes and child elements."""

    def __init__(
        self,
        text: Optional[str] = None,
        attrs: Optional[Dict[str, str]] = None,
        children: Optional[Dict[str, Any]] = None,
        errors: Optional[List[str]] = None,
    ):
        self.text = text
        self.attrs = attrs or {}
        # selector -> element or list of elements
        self.children = children or {}
        self.errors = errors or []
        self.queried: List[str] = []
        self.clicks = 0
        self.on_click: Optional[Callable[[], None]] = None

    def _all(self, selector: str) -> List[Any]:
        found = self.children.get(selector, [])
        return list(found) if isinstance(found, list) else [found]

    async def query_selector(self, selector: str):
        self.queried.append(selector)
        if selector in self.errors:
            raise ValueError(f"Unsupported selector: {selector}")
        found = self._all(selector)
        return found[0] if found else None

    async def query_selector_all(self, selector: str):
        self.queried.append(selector)
        if selector in self.errors:
            raise ValueError(f"Unsupported selector: {selector}")
        return self._all(selector)

    async def text_content(self):
        return self.text

    async def get_attribute(self, name: str):
        return self.attrs.get(name)

    async def click(self, **kwargs):
        self.clicks += 1
        if self.on_click:
            self.on_click()


def product_card(name: Optional[str], href: str = "", **fields: Any) -> FakeElement:
    """Listing card with a ``h6 a`` name link plus optional child fields keyed by selector."""
    children: Dict[str, Any] = {}
    if name is not None:
        children["h6 a"] = FakeElement(text=name, attrs={"href": href})
    for selector, value in fields.items():
        children[selector] = value
    return FakeElement(children=children)


class FakeLocator:
    def __init__(self, page: "FakePage", selector: str):
        self.page = page
        self.selector = selector

    @property
    def first(self) -> "FakeLocator":
        return self

    async def is_visible(self) -> bool:
        return self.selector in self.page.visible

    async def click(self, **kwargs):
        self.page.clicked.append(self.selector)
        action = self.page.click_actions.get(self.selector)
        if action:
            action()


class FakeKeyboard:
    def __init__(self, page: "FakePage"):
        self.page = page
        self.pressed: List[str] = []

    async def press(self, key: str):
        self.pressed.append(key)
        if self.page.on_enter:
            self.page.on_enter()


class FakeContext:
    """Browser context handing out pages from a factory."""

    def __init__(self, page_factory: Optional[Callable[[], "FakePage"]] = None):
        self.page_factory = page_factory or FakePage
        self.pages: List["FakePage"] = []
        self.closed = False

    async def new_page(self):
        page = self.page_factory()
        page.context = self
        self.pages.append(page)
        return page

    async def close(self):
        self.closed = True


class FakePage(FakeElement):
    """
    Page whose DOM is chosen by URL.

    Args:
        listings: URL -> {selector: elements} shown after ``goto``
        children: DOM used before any navigation (or when the URL is unknown)
    """

    def __init__(
        self,
        listings: Optional[Dict[str, Dict[str, Any]]] = None,
        children: Optional[Dict[str, Any]] = None,
        url: str = "about:blank",
        html: str = "<html></html>",
    ):
        super().__init__(children=children)
        self.listings = listings or {}
        self.url = url
        self.html = html
        self.context: Any = None
        self.visited: List[str] = []
        self.goto_errors: Dict[str, Exception] = {}
        self.reload_error: Optional[Exception] = None
        self.reloads = 0
        self.screenshots: List[str] = []
        self.closed = False
        self.filled: Dict[str, str] = {}
        self.visible: set = set()
        self.clicked: List[str] = []
        self.click_actions: Dict[str, Callable[[], None]] = {}
        self.evaluate_result: Any = False
        self.on_evaluate: Optional[Callable[[], None]] = None
        self.on_enter: Optional[Callable[[], None]] = None
        self.focused: List[str] = []
        self.focus_error: Optional[Exception] = None
        self.keyboard = FakeKeyboard(self)

    async def goto(self, url: str, **kwargs):
        self.visited.append(url)
        if url in self.goto_errors:
            raise self.goto_errors[url]
        self.url = url
        if url in self.listings:
            self.children = self.listings[url]

    async def reload(self, **kwargs):
        self.reloads += 1
        if self.reload_error:
            raise self.reload_error

    async def wait_for_load_state(self, state: str = "load", **kwargs):
        return None

    async def wait_for_selector(self, selector: str, **kwargs):
        found = self._all(selector)
        if not found:
            raise PlaywrightTimeoutError(f"Timeout waiting for {selector}")
        return found[0]

    async def screenshot(self, path: Optional[str] = None, **kwargs):
        self.screenshots.append(path)
        return b""

    async def content(self):
        return self.html

    async def fill(self, selector: str, value: str):
        self.filled[selector] = value

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)

    async def evaluate(self, script: str):
        if self.on_evaluate:
            self.on_evaluate()
        return self.evaluate_result

    async def focus(self, selector: str):
        if self.focus_error:
            raise self.focus_error
        self.focused.append(selector)

    async def close(self):
        self.closed = True


class InMemoryStore:
    """DocumentStore backed by a list of dicts."""

    def __init__(self, fail_on: Optional[str] = None, connect_error: Optional[Exception] = None):
        self.documents: List[Dict[str, Any]] = []
        self.fail_on = fail_on
        self.connect_error = connect_error
        self.connected = False
        self.disconnected = False

    @staticmethod
    def _matches(document: Dict[str, Any], filter: Dict[str, Any]) -> bool:
        return all(document.get(k) == v for k, v in filter.items())

    async def connect(self):
        if self.connect_error:
            raise self.connect_error
        self.connected = True

    async def find_one(self, filter):
        if self.fail_on and self.fail_on in filter.values():
            raise RuntimeError("store unavailable")
        for document in self.documents:
            if self._matches(document, filter):
                return dict(document)
        return None

    async def insert_one(self, document):
        self.documents.append(dict(document))

    async def update_one(self, filter, fields):
        for document in self.documents:
            if self._matches(document, filter):
                changed = any(document.get(k) != v for k, v in fields.items())
                document.update(fields)
                return 1 if changed else 0
        return 0

    async def disconnect(self):
        self.disconnected = True


class FakeEngine:
    """CrawlEngine stand-in: per-category results or exceptions."""

    def __init__(self, results: Optional[Dict[str, Any]] = None):
        self.results = results or {}
        self.calls: List[tuple] = []
        self.sessions = 0

    @asynccontextmanager
    async def _session(self):
        self.sessions += 1
        yield "browser"

    def session(self, headless: bool):
        return self._session()

    async def crawl_category(self, category, options, browser=None):
        self.calls.append((category.name, options, browser))
        result = self.results.get(category.name, [])
        if isinstance(result, Exception):
            raise result
        return result


def adams_record(name: str, sku: Optional[str] = None, category: str = "drinks", **fields) -> AdamsProduct:
    return AdamsProduct(name=name, sku=sku, category=category, **fields)


def cater_record(name: str, code: str = "", category: str = "bakery", **fields) -> CaterChoiceProduct:
    return CaterChoiceProduct(product_name=name, product_code=code, category=category, **fields)


def metro_record(name: str, category: str = "drinks", **fields) -> MetroProduct:
    return MetroProduct(product_name=name, product_description=name, category=category, **fields)
