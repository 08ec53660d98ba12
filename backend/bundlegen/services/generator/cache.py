"""Per-batch lookup cache keyed by reconstructed product title. One instance per request; never global."""
import logging

from bundlegen.services.shopify.types import ProductNode

logger = logging.getLogger(__name__)


class LookupCache:
    """Title -> ProductNode (or None for a confirmed miss). A cache miss just means a fresh lookup."""

    def __init__(self) -> None:
        self._products: dict[str, ProductNode | None] = {}
        self.hits = 0

    def __contains__(self, title: str) -> bool:
        return title in self._products

    def get(self, title: str) -> ProductNode | None:
        self.hits += 1
        logger.debug("Lookup cache hit: %r", title)
        return self._products.get(title)

    def put(self, title: str, product: ProductNode | None) -> None:
        self._products[title] = product

    def forget(self, title: str) -> None:
        self._products.pop(title, None)

    def __len__(self) -> int:
        return len(self._products)
