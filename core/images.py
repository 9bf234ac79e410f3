# =============================================================================
# core/images.py  —  Image reference classification
# =============================================================================
#
# The tools accept a single string for the image.  Whether the gateway
# uploads a file or forwards a URL depends ONLY on the string's prefix:
#
#   "/tmp/q.png"          →  LocalPath("/tmp/q.png")
#   "./q.png"             →  LocalPath("./q.png")
#   "file:///tmp/q.png"   →  LocalPath("/tmp/q.png")
#   anything else         →  RemoteUrl(...)
#
# Classification never touches the filesystem.  The existence check happens
# later, in the upload branch of core/backend.py.
# =============================================================================

from core.models import ImageReference, LocalPath, RemoteUrl

FILE_SCHEME = "file://"
_LOCAL_PREFIXES = ("/", "./", FILE_SCHEME)


def is_local_path(image_url: str) -> bool:
    """True when the string names a file on this machine."""
    return image_url.startswith(_LOCAL_PREFIXES)


def classify_image(image_url: str) -> ImageReference:
    """Tag a raw image string as LocalPath or RemoteUrl."""
    if is_local_path(image_url):
        return LocalPath(path=image_url.removeprefix(FILE_SCHEME))
    return RemoteUrl(url=image_url)
