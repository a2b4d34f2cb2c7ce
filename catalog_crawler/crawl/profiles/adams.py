"""Adams Food Service site profile."""

from __future__ import annotations

from catalog_crawler.config import settings
from catalog_crawler.crawl.navigator import LoadMoreNavigator
from catalog_crawler.crawl.profiles.base import FieldRule, ItemLocator, SiteProfile
from catalog_crawler.crawl.types import AdamsProduct, Category

BASE_URL = "https://adamsfoodservice.com/"

CATEGORY_SLUGS = [
    "appetizers",
    "burgers-kebabs",
    "chips-potatoes",
    "cleaning-hygiene",
    "cooking-ingredients",
    "dairy-eggs",
    "desserts",
    "drinks",
    "flour-breading",
    "fruit-veg",
    "meats",
    "packaging",
    "pastry-bread",
    "poultry",
    "rice-lentils",
    "sauces-dressings",
    "seafood",
]

PRODUCT_ITEM = "ul.wc-block-product-template__responsive li.wc-block-product"
LOAD_MORE_BUTTON = "A.wp-block-query-pagination-next"

CONTAINER_SELECTORS = [
    "ul.wc-block-product-template__responsive.wc-block-product-template",
    "ul.wp-block-post-template",
    ".wp-block-woocommerce-product-collection",
    ".products",
    ".woocommerce-loop-product",
    "li.wc-block-product",
]

ITEM_SELECTORS = [
    PRODUCT_ITEM,
    "li.wc-block-product",
    ".woocommerce-loop-product",
    "li.product",
]


class AdamsProfile(SiteProfile):
    key = "adams"
    display_name = "Adams Food Service"
    base_url = BASE_URL
    image_dir = "adams"
    viewport = {"width": 1280, "height": 720}

    categories = [
        Category(name=slug, url=f"{BASE_URL}product-category/{slug}/") for slug in CATEGORY_SLUGS
    ]

    item_locators = [ItemLocator(container=c, items=ITEM_SELECTORS) for c in CONTAINER_SELECTORS]

    name_rule = FieldRule([
        "h6 a",
        ".wc-block-components-product-name a",
        "h3 a",
        'a[href*="/product/"]',
    ])
    image_rule = FieldRule(["img", ".wc-block-components-product-image img"], attribute="src")
    listing_rules = {
        "sku": FieldRule([
            ".wc-block-components-product-sku span.sku",
            ".sku",
            '[class*="sku"]',
        ]),
    }

    update_fields = [
        "image_url_scraped",
        "image_filename_local",
        "product_page_url",
        "scraped_from_category_page_url",
        "scraped_timestamp",
    ]

    def make_navigator(self):
        return LoadMoreNavigator(
            button_selector=LOAD_MORE_BUTTON,
            item_selector=PRODUCT_ITEM,
            max_clicks=settings.max_load_more_clicks,
            site=self.key,
        )

    def natural_key(self, record):
        if record.sku:
            return {"sku": record.sku, "category": record.category}
        return {"name": record.name, "category": record.category}

    def build_record(self, category, fields, image):
        return AdamsProduct(
            name=fields["name"],
            sku=fields.get("sku"),
            image_url_scraped=fields.get("image_url"),
            image_filename_local=image.filename if image else None,
            product_page_url=fields.get("url"),
            scraped_from_category_page_url=category.url,
            category=category.name,
        )
