"""Metro Cash & Carry (Hull) site profile."""

from __future__ import annotations

from catalog_crawler.config import settings
from catalog_crawler.crawl.navigator import OffsetPagesNavigator
from catalog_crawler.crawl.profiles.base import FieldRule, ItemLocator, SiteProfile, attr
from catalog_crawler.crawl.types import Category, MetroProduct

BASE_URL = "https://www.metro.co.uk/"
PRODUCTS_URL = "https://metrocashandcarryhull.com/products/"

CATEGORY_PATHS = {
    "packaging": "Packaging-c161316305",
    "drinks": "Drinks-c161318810",
    "Bakery": "Bakery-c161314552",
    "cooking-ingredients": "Cooking-Ingredients-c161312041",
    "dairy": "Dairy-c161312042",
    "fruit-vegetables": "Fruit-&-Vegetables-c161314553",
    "hygiene": "Hygiene-c161312043",
    "meat-poultry": "Meat-&-Poultry-c161309066",
    "oils": "Oils-c161315052",
    "potato-products-sides": "Potato-Products-&-Sides-c161315815",
    "sauces-condiments": "Sauces-&-Condiments-c161316793",
    "spices-herbs": "Spices-&-Herbs-c161312044",
    "desserts": "Desserts-c163075752",
    "rice-flour": "Rice-&-Flour-c168699321",
}

PRODUCT_GRID = "div.grid__products"
PRODUCT_ITEM = "div.grid-product__wrap"
NEXT_PAGE = "a.pager__button.pager__button--next"
BACKGROUND_IMAGE_PATTERN = r'url\("(?P<url>[^"]+)"\)'


class MetroProfile(SiteProfile):
    key = "metro"
    display_name = "Metro"
    base_url = BASE_URL
    image_dir = "metro"
    viewport = {"width": 1920, "height": 1080}

    categories = [Category(name=name, url=PRODUCTS_URL + path) for name, path in CATEGORY_PATHS.items()]

    grid_selector = PRODUCT_GRID
    item_locators = [ItemLocator(container=PRODUCT_GRID, items=[PRODUCT_ITEM])]

    name_rule = FieldRule([".grid-product__title", "a.grid-product__title"])
    url_rule = FieldRule(["a.grid-product__title"], attribute="href")
    image_rule = FieldRule([
        attr(".grid-product__image-wrap img", "src"),
        attr(".grid-product__image-wrap", "style", pattern=BACKGROUND_IMAGE_PATTERN),
    ])
    listing_rules = {
        "price": FieldRule([".grid-product__price", ".ec-price-item", ".price"]),
    }

    update_fields = [
        "product_description",
        "product_size",
        "product_price",
        "product_url",
        "image_name",
        "image_url",
        "image_location",
        "source",
        "needs_enrichment",
        "scraped_timestamp",
    ]

    def make_navigator(self):
        return OffsetPagesNavigator(
            page_size=settings.offset_page_size,
            max_pages=settings.max_offset_pages,
            grid_selector=PRODUCT_GRID,
            next_selector=NEXT_PAGE,
            site=self.key,
        )

    def natural_key(self, record):
        return {"product_name": record.product_name, "category": record.category}

    def build_record(self, category, fields, image):
        name = fields["name"]
        return MetroProduct(
            product_name=name,
            product_description=name,
            product_price=fields.get("price") or "Price not available",
            product_url=fields.get("url"),
            image_name=image.filename if image else None,
            image_url=fields.get("image_url"),
            image_location=f"{settings.image_root}/{self.image_dir}/{image.filename}" if image else None,
            category=category.name,
        )
