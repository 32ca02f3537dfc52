"""Turn uploaded bytes or public image URLs into inline attachments."""

import base64
import mimetypes
from urllib.parse import urlparse

from curl_cffi import CurlError
from curl_cffi import requests as curl_requests

from studylens.config import get_settings
from studylens.exceptions import IntegrationError, RateLimitError
from studylens.models.study import ImageAttachment


def attachment_from_bytes(data: bytes, mime_type: str) -> ImageAttachment:
    return ImageAttachment(mime_type=mime_type, data=base64.b64encode(data).decode("ascii"))


def attachment_from_file(filename: str | None, content_type: str | None, data: bytes) -> ImageAttachment:
    """Attachment for a user-selected file; the type falls back to the file extension."""
    return attachment_from_bytes(data, _guess_mime_type(filename or "", content_type))


def _guess_mime_type(url: str, content_type: str | None) -> str:
    if content_type:
        mime_type = content_type.split(";")[0].strip()
        if mime_type and mime_type != "application/octet-stream":
            return mime_type
    return mimetypes.guess_type(urlparse(url).path)[0] or "application/octet-stream"


def download_attachment(url: str, timeout: int | None = None) -> ImageAttachment:
    """Fetch a public image and return it base64 encoded."""
    if timeout is None:
        timeout = get_settings().download_timeout
    try:
        resp = curl_requests.get(url, impersonate="chrome", allow_redirects=True, timeout=timeout)
    except CurlError as e:
        raise IntegrationError(f"Image download failed: {url} ({e})") from e
    if resp.status_code == 429:
        raise RateLimitError(f"Image host rate limited the download: {url}")
    if resp.status_code >= 400:
        raise IntegrationError(f"Image download failed (HTTP {resp.status_code}): {url}")
    return attachment_from_bytes(resp.content, _guess_mime_type(url, resp.headers.get("content-type")))


def collect_attachments(
    images: list[ImageAttachment], image_urls: list[str] | None = None,
) -> list[ImageAttachment]:
    """Inline images first, then downloaded ones, each group in the given order."""
    collected = list(images)
    for url in image_urls or []:
        collected.append(download_attachment(url))
    return collected
