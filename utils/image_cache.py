"""
Image resolution for message attachments.
Resolves image paths to base64 payloads, either by parsing data URIs directly
or through an explicitly constructed cache of previously fetched images.
"""
import re
from typing import Iterable

from models.api_models import MessageImage
from models.chat_models import ImageAttachment
from utils.logger import app_logger

DEFAULT_IMAGE_MIME_TYPE = "image/jpeg"

DATA_URL_PATTERN = re.compile(r'^data:(?P<mime>[^;,]*)(?P<params>(?:;[^;,]*)*?);base64,(?P<data>.*)$', re.DOTALL)


def is_data_url(path: str) -> bool:
    """Check if a path is an inline data URI."""
    return path.startswith("data:")


def parse_data_url(url: str) -> ImageAttachment | None:
    """Split a base64 data URI into payload and MIME type. Returns None when it is not one."""
    match = DATA_URL_PATTERN.match(url)
    if not match:
        return None

    mime_type = match.group('mime') or DEFAULT_IMAGE_MIME_TYPE
    return ImageAttachment(base64=match.group('data'), mime_type=mime_type)


class ImageCache:
    """
    Path -> image lookup owned by the call site.
    Built from the images the client already resolved; reload() replaces the
    whole mapping and invalidate() drops entries.
    """

    def __init__(self, images: Iterable[MessageImage] = ()):
        self._images: dict[str, MessageImage] = {}
        self.reload(images)

    def reload(self, images: Iterable[MessageImage]) -> None:
        """Replace the cached images."""
        self._images = {image.path: image for image in images}

    def add(self, image: MessageImage) -> None:
        """Add or replace a single image."""
        self._images[image.path] = image

    def invalidate(self, path: str | None = None) -> None:
        """Drop one cached path, or everything when no path is given."""
        if path is None:
            self._images.clear()
        else:
            self._images.pop(path, None)

    def get(self, path: str) -> MessageImage | None:
        return self._images.get(path)

    def resolve(self, path: str) -> ImageAttachment | None:
        """
        Resolve an image path.

        Data URIs are parsed directly; other paths are looked up in the cache.
        Unknown paths resolve to None so the caller can drop the image.
        """
        if is_data_url(path):
            attachment = parse_data_url(path)
            if attachment is None:
                app_logger.debug("Dropping malformed data URL image")
            return attachment

        image = self._images.get(path)
        if image is None:
            app_logger.debug(f"Image not in cache, dropping: {path}")
            return None

        if is_data_url(image.base64):
            attachment = parse_data_url(image.base64)
            if attachment is None:
                app_logger.debug(f"Dropping cached image with malformed data URL: {path}")
            return attachment

        return ImageAttachment(base64=image.base64, mime_type=image.mime_type or DEFAULT_IMAGE_MIME_TYPE)

    def __contains__(self, path: str) -> bool:
        return path in self._images

    def __len__(self) -> int:
        return len(self._images)
