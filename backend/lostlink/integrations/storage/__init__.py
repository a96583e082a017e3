from .object_store import ObjectStore, StoredImage

__all__ = ["ObjectStore", "StoredImage"]
