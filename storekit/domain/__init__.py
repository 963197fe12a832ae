from .key_paths import KeyPathMapper, unique_in_order
from .metadata_cache import MetadataCache

__all__ = ["KeyPathMapper", "MetadataCache", "unique_in_order"]
