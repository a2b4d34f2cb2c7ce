"""Cater Choice site profile."""

from __future__ import annotations

from catalog_crawler.config import settings
from catalog_crawler.crawl.navigator import NumberedPagesNavigator
from catalog_crawler.crawl.profiles.base import (
    DetailPageConfig,
    FieldRule,
    ItemLocator,
    LoginConfig,
    SiteProfile,
)
from catalog_crawler.crawl.types import CaterChoiceProduct, Category

BASE_URL = "https://cater-choice.com/"

CATEGORY_SLUGS = [
    "appetizers-and-sides",
    "bakery",
    "breading-batter",
    "burger",
    "chicken-and-poultry",
    "chocolates-and-snacks",
    "cooking-ingredients",
    "dairy-egg",
    "dessert-and-ice-cream",
    "doners-kebabs",
    "drinks",
    "fish-and-seafood",
    "flour",
    "fruits-and-nuts",
    "honey-and-spread",
    "hygiene",
    "kitchen-equipments",
    "latest-product",
    "meat",
    "ms-frozen-and-chilled",
    "new-products",
    "oil",
    "packaging",
    "pastry",
    "potato",
    "rice-pasta-dried-foods",
    "sandwich-filings",
    "sauces-dressings-and-relishes",
    "sealing-materials",
    "stationery",
    "sugar-and-sweeteners",
    "vegetables",
    "vegetarian-and-vegan",
]

CONTAINER_SELECTORS = [
    ".gridcontroll",
    "div.gridcontroll",
    "[class*='gridcontroll']",
    ".product-item",
    ".product",
]


def clean_product_code(text: str) -> str:
    """Strip the "Product Code:" label and all spaces."""
    return text.replace("Product Code:", "").replace(" ", "").strip()


class CaterChoiceProfile(SiteProfile):
    key = "caterchoice"
    display_name = "Cater Choice"
    base_url = BASE_URL
    image_dir = "cater-choice"
    viewport = {"width": 1280, "height": 720}
    browser_args = ["--ignore-certificate-errors"]

    categories = [
        Category(name=slug, url=f"{BASE_URL}product-category/{slug}") for slug in CATEGORY_SLUGS
    ]

    grid_selector = r".grid.md\:grid-cols-12.sm\:grid-cols-1.gap-4"
    item_locators = [ItemLocator(container=s, items=[s]) for s in CONTAINER_SELECTORS]
    xpath_fallback = "/html/body/main/form/section/div/div/div[2]/div[2]/div"

    name_rule = FieldRule([".text-center h3 a", "h3 a", ".text-center a", "a[href*='/product/']"])
    image_rule = FieldRule(
        [r".mb-\[15px\] img", "img", ".product-image img", "[class*='mb-'] img"],
        attribute="src",
    )
    listing_rules = {
        "pack_size": FieldRule([
            ".text-center div.truncate strong",
            "div.truncate strong",
            ".truncate strong",
            ".pack-size",
        ]),
        "case_price": FieldRule([
            ".custom_design_hm > div:nth-of-type(1) strong",
            ".custom_design_hm div:first-child strong",
            ".price-case strong",
            ".case-price",
        ]),
        "single_price": FieldRule([
            ".custom_design_hm > div:nth-of-type(2) strong",
            ".custom_design_hm div:nth-child(2) strong",
            ".price-single strong",
            ".single-price",
        ]),
    }

    detail_page = DetailPageConfig(fields={
        "code": FieldRule(
            [
                r"body > main > section.py-\[40px\] > div > div > "
                r"div.xl\:col-span-8.lg\:col-span-7 > h5:nth-child(2)",
                ".product-code",
                ".sku_wrapper .sku",
                ".product_meta .sku",
                "span.sku",
            ],
            transform=clean_product_code,
        ),
        "description": FieldRule([
            ".woocommerce-product-details__short-description",
            ".product-description",
            "div[itemprop='description']",
            ".entry-summary .summary",
        ]),
    })

    login = LoginConfig(
        url=f"{BASE_URL.rstrip('/')}/customer/login",
        button_locator="xpath=/html/body/main/div[2]/div/div/form/button",
        submit_selectors=[
            'button[type="submit"]',
            "form button",
            ".login",
            "button.login",
            "button.btn-primary",
            'button:text("Login")',
            'button:text("Sign In")',
            'input[type="submit"]',
        ],
    )

    update_fields = [
        "product_description",
        "product_size",
        "product_single_price",
        "product_case_price",
        "product_url",
        "original_image_url",
        "local_image_filename",
        "local_image_filepath",
        "scraped_timestamp",
    ]

    def make_navigator(self):
        return NumberedPagesNavigator(max_pages=settings.max_numbered_pages, site=self.key)

    def natural_key(self, record):
        # Records without a detail-page code share the empty key within a category
        return {"product_code": record.product_code or "", "category": record.category}

    def build_record(self, category, fields, image):
        return CaterChoiceProduct(
            product_code=fields.get("code") or "",
            product_name=fields["name"],
            product_description=fields.get("description") or "",
            product_size=fields.get("pack_size") or "",
            product_single_price=fields.get("single_price") or "",
            product_case_price=fields.get("case_price") or "",
            product_url=fields.get("url") or "",
            original_image_url=fields.get("image_url") or "",
            local_image_filename=image.filename if image else None,
            local_image_filepath=image.path if image else None,
            category=category.name,
        )
