"""Remote URL normalisation."""

from __future__ import annotations

from urllib.parse import urlsplit

from repoinfo.core.errors import InvalidRemoteURLError

HTTP_SCHEMES = ("http://", "https://")


def clean_remote_url(raw: str) -> str:
    """Drop ``user:token@`` credentials from an http(s) remote URL.

    Scheme, host (with port) and path are kept; query and fragment are not.
    scp-style (``git@host:path``) and other URLs are returned unchanged.
    The raw URL is never echoed into error messages since it may hold a token.
    """

    url = raw.strip()
    if not url.lower().startswith(HTTP_SCHEMES):
        return url
    try:
        parts = urlsplit(url)
        # Accessing .port validates it; a token glued to the host lands here.
        parts.port
    except ValueError as exc:
        raise InvalidRemoteURLError("couldn't parse remote URL: invalid host or port") from exc
    host = parts.netloc.rpartition("@")[2]
    if not host:
        raise InvalidRemoteURLError("couldn't parse remote URL: missing host")
    return f"{parts.scheme}://{host}{parts.path}"
