from __future__ import annotations
import os, logging
from typing import Any, Optional, Tuple
from pathlib import Path

import requests
from dotenv import load_dotenv

from errors import FetchFailed

# Load env from a local .env (works whether launched from the project dir or by an MCP host)
load_dotenv()
load_dotenv(dotenv_path=Path(__file__).parent / ".env", override=False)

# ------------------------------------------------------------------------------
# Environment / Config
# ------------------------------------------------------------------------------

# Release listing for the framework repository
RELEASES_URL = os.getenv(
    "XMLUI_RELEASES_URL", "https://api.github.com/repos/xmlui-org/xmlui/releases"
).rstrip("/")

# Tag archives live under <ARCHIVE_ROOT>/<tag>.zip
ARCHIVE_ROOT = os.getenv(
    "XMLUI_ARCHIVE_ROOT", "https://github.com/xmlui-org/xmlui/archive/refs/tags"
).rstrip("/")

LIST_TIMEOUT = float(os.getenv("XMLUI_LIST_TIMEOUT_SECONDS", "10"))
DOWNLOAD_TIMEOUT = float(os.getenv("XMLUI_DOWNLOAD_TIMEOUT_SECONDS", "300"))

TAG_PREFIX = "xmlui@"

# Known-good release used whenever the listing cannot be resolved
FALLBACK_TAG = "xmlui@0.11.4"

log = logging.getLogger("xmlui-mcp")

session = requests.Session()
# The listing endpoint rejects requests without a User-Agent.
session.headers.update({
    "User-Agent": "xmlui-mcp",
    "Accept": "application/vnd.github+json",
})

# ------------------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------------------

def _url(root: str, path: str) -> str:
    return f"{root}/{path.lstrip('/')}"

def _handle(r: requests.Response) -> Any:
    """Uniform HTTP handler: raise FetchFailed on non-2xx, decode JSON when possible."""
    try:
        r.raise_for_status()
    except requests.HTTPError as e:
        body = (r.text or "")[:2000]
        raise FetchFailed(f"HTTP {r.status_code} from {r.url}: {body}") from e
    if not r.text:
        return None
    try:
        return r.json()
    except ValueError:
        return r.text

def normalize_tag(version: str) -> str:
    """Accept either 'xmlui@0.11.4' or '0.11.4'."""
    version = version.strip()
    return version if version.startswith(TAG_PREFIX) else TAG_PREFIX + version

def archive_url_for(tag: str) -> str:
    return _url(ARCHIVE_ROOT, f"{tag}.zip")

# ------------------------------------------------------------------------------
# Releases
# ------------------------------------------------------------------------------

def latest_release() -> Tuple[str, str]:
    """
    GET /releases and return (tag, archive_url) for the first framework release.

    Raises FetchFailed when the endpoint fails or lists no matching release.
    """
    try:
        r = session.get(RELEASES_URL, timeout=LIST_TIMEOUT)
    except requests.RequestException as e:
        raise FetchFailed(f"release listing failed: {e}") from e
    releases = _handle(r)
    if not isinstance(releases, list):
        raise FetchFailed("release listing returned an unexpected payload")
    for release in releases:
        tag = release.get("tag_name", "") if isinstance(release, dict) else ""
        if tag.startswith(TAG_PREFIX):
            return tag, archive_url_for(tag)
    raise FetchFailed(f"no {TAG_PREFIX}* releases found")

def resolve_release(version: Optional[str] = None) -> Tuple[str, str]:
    """
    Pick the release to install.

    A pinned version skips the listing. Otherwise the latest release is used and
    any upstream failure falls back to FALLBACK_TAG.
    """
    if version:
        tag = normalize_tag(version)
        return tag, archive_url_for(tag)
    try:
        return latest_release()
    except FetchFailed as e:
        log.warning("Could not resolve latest release (%s); falling back to %s", e, FALLBACK_TAG)
        return FALLBACK_TAG, archive_url_for(FALLBACK_TAG)

def download_archive(url: str, dest: Path) -> Path:
    """Stream the archive at *url* into *dest*."""
    log.info("Downloading %s", url)
    try:
        with session.get(url, stream=True, timeout=DOWNLOAD_TIMEOUT) as r:
            _check_status(r)
            with open(dest, "wb") as fh:
                for chunk in r.iter_content(chunk_size=64 * 1024):
                    if chunk:
                        fh.write(chunk)
    except requests.RequestException as e:
        raise FetchFailed(f"download failed: {e}") from e
    except OSError as e:
        raise FetchFailed(f"could not write archive to {dest}: {e}") from e
    return dest

def _check_status(r: requests.Response) -> None:
    try:
        r.raise_for_status()
    except requests.HTTPError as e:
        raise FetchFailed(f"HTTP {r.status_code} downloading {r.url}") from e
