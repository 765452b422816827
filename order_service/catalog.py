"""
Product catalog sources for discount campaigns.

The campaign worker only needs `list_discounted()`. The static catalog
serves a fixed promotion list; the HTTP catalog asks a catalog service.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List, Optional, Sequence

import aiohttp
import structlog

from order_service.domain.entities import DiscountProduct
from order_service.domain.exceptions import CatalogUnavailableError, ValidationError

logger = structlog.get_logger()

DEFAULT_DISCOUNT_PRODUCTS = (
    DiscountProduct(
        name="Premium Headphones",
        original_price=Decimal("199.99"),
        discount_price=Decimal("149.99"),
        description="Noise-cancelling wireless headphones with superior sound quality.",
    ),
    DiscountProduct(
        name="Smart Watch",
        original_price=Decimal("299.99"),
        discount_price=Decimal("239.99"),
        description="Track your fitness and stay connected with our latest smart watch.",
    ),
)


class IProductCatalog(ABC):
    """Source of currently promoted products."""

    @abstractmethod
    async def list_discounted(self) -> List[DiscountProduct]:
        """
        Get today's discounted products, top offer first.

        Raises:
            CatalogUnavailableError: the catalog could not be queried
        """
        pass


class StaticProductCatalog(IProductCatalog):
    """Catalog backed by a fixed list."""

    def __init__(self, products: Optional[Sequence[DiscountProduct]] = None):
        self.products = list(DEFAULT_DISCOUNT_PRODUCTS if products is None else products)

    async def list_discounted(self) -> List[DiscountProduct]:
        return list(self.products)


class HttpProductCatalog(IProductCatalog):
    """Catalog fetched from `GET {base_url}/api/v1/products/discounted`."""

    def __init__(self, base_url: str, timeout_seconds: float = 10):
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    async def list_discounted(self) -> List[DiscountProduct]:
        url = f"{self.base_url}/api/v1/products/discounted"
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(
                    url, timeout=aiohttp.ClientTimeout(total=self.timeout_seconds)
                ) as response:
                    if response.status != 200:
                        logger.warning(
                            "Failed to fetch discounted products",
                            url=url,
                            status=response.status,
                        )
                        raise CatalogUnavailableError(f"HTTP {response.status}")
                    data = await response.json()
        except CatalogUnavailableError:
            raise
        except Exception as e:
            logger.error("Catalog fetch error", url=url, error=str(e))
            raise CatalogUnavailableError(str(e)) from e

        items = data.get("products", data) if isinstance(data, dict) else data
        if not isinstance(items, list):
            raise CatalogUnavailableError("unexpected catalog payload")

        products = []
        for item in items:
            try:
                products.append(DiscountProduct.from_mapping(item))
            except (ValidationError, AttributeError) as e:
                logger.warning("Skipping malformed catalog item", item=item, error=str(e))
        return products
