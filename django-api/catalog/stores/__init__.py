from catalog.stores.interfaces import CatalogStore

__all__ = ["CatalogStore"]
