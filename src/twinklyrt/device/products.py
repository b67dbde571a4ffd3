"""
Product catalog: maps a controller's product code to its product line.

The catalog is declarative. Supporting a new SKU means adding its code to
products.json, no code change. Unknown codes fall back to a generic
"Twinkly Device" entry so the engine never depends on the lookup.
"""

import logging
from pathlib import Path

from .schema import ProductCatalogSchema, ProductFamily

logger = logging.getLogger(__name__)

UNKNOWN_PRODUCT = ProductFamily(
    family="Twinkly Device",
    image="https://assets.signalrgb.com/brands/twinkly/logo.png",
)


class ProductCatalog:
    """Lookup of product families by SKU, loaded from products.json."""

    def __init__(self, catalog_path: Path | None = None):
        if catalog_path is None:
            catalog_path = Path(__file__).parent / "products.json"

        self.catalog_path = catalog_path
        self.schema = ProductCatalogSchema.from_json_file(catalog_path)
        self._by_code: dict[str, ProductFamily] = {}

        for family in self.schema.families:
            for code in family.product_codes:
                if code in self._by_code:
                    logger.warning(
                        f"Product code {code} listed under both "
                        f"{self._by_code[code].family} and {family.family}"
                    )
                self._by_code[code] = family

        logger.debug(f"Loaded {len(self._by_code)} product codes from {catalog_path}")

    def lookup(self, product_code: str | None) -> ProductFamily:
        """Return the family for a SKU, or the generic entry if unknown."""
        if not product_code:
            return UNKNOWN_PRODUCT
        return self._by_code.get(product_code.strip().upper(), UNKNOWN_PRODUCT)

    def is_known(self, product_code: str | None) -> bool:
        return bool(product_code) and product_code.strip().upper() in self._by_code

    @property
    def families(self) -> list[ProductFamily]:
        return list(self.schema.families)


_catalog: ProductCatalog | None = None


def get_product_catalog() -> ProductCatalog:
    """Shared catalog instance loaded from the packaged products.json."""
    global _catalog
    if _catalog is None:
        _catalog = ProductCatalog()
    return _catalog
