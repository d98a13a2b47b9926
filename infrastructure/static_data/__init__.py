from .item_catalog import ItemCatalog, fetch_item_catalog

__all__ = ["ItemCatalog", "fetch_item_catalog"]
