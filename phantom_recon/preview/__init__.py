"""Sample preview loading."""

from .preview_cache import PreviewCache, FILE_NOT_FOUND

__all__ = ["PreviewCache", "FILE_NOT_FOUND"]
