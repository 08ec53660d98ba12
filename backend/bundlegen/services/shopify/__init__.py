"""Shopify Admin/Storefront access: client (transport), catalog (operations), types (response schemas)."""
from bundlegen.services.shopify.base import Catalog
from bundlegen.services.shopify.catalog import ShopifyCatalog, parse_holidays, to_gid
from bundlegen.services.shopify.client import ShopifyClient
from bundlegen.services.shopify.config import ShopifyConfig

__all__ = ["Catalog", "ShopifyCatalog", "ShopifyClient", "ShopifyConfig", "parse_holidays", "to_gid"]
