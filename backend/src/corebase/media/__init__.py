"""Media metadata collaborator."""

from corebase.media.store import MediaItem, MediaStore

__all__ = ["MediaItem", "MediaStore"]
