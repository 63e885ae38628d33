"""
Registry of documentation URL paths that actually exist on the docs site.

Built from the snapshot: `<Page url="...">` declarations in the docs app's
Main.xmlui, component reference pages and extension package pages. Links are
only ever emitted through `validate()` / `doc_url_for()`, so a path that is
not in the registry never reaches a caller.
"""
from __future__ import annotations

import logging
import posixpath
import re
from pathlib import Path
from typing import FrozenSet, Iterable, Optional

log = logging.getLogger("xmlui-mcp")

DEFAULT_BASE_URL = "https://docs.xmlui.org"

COMPONENTS_DIR = "docs/content/components"
MAIN_LAYOUT = "docs/src/Main.xmlui"
PAGES_DIRS = ("docs/content/pages", "docs/public/pages")

_PAGE_RE = re.compile(r'<Page\s+url="([^"]+)"')
_DOC_EXTS = (".md", ".mdx")


def _strip_doc_ext(name: str) -> str:
    for ext in _DOC_EXTS:
        if name.endswith(ext):
            return name[: -len(ext)]
    return name


class URLRegistry:
    """Immutable set of URL paths such as '/components/Button' or '/howto/paginate-a-list'."""

    def __init__(self, paths: Iterable[str], base_url: str = DEFAULT_BASE_URL):
        self._paths: FrozenSet[str] = frozenset(paths)
        self.base_url = base_url.rstrip("/")

    def __len__(self) -> int:
        return len(self._paths)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and self.is_valid(path)

    @property
    def paths(self) -> FrozenSet[str]:
        return self._paths

    # ------------------------------------------------------------------
    def is_valid(self, path: str) -> bool:
        """Membership test; a '#fragment' or '?query' suffix is ignored."""
        path = path.split("#", 1)[0].split("?", 1)[0]
        if not path:
            path = "/"
        return path in self._paths

    def validate(self, full_url: str) -> Optional[str]:
        """Return *full_url* unchanged if its path is registered, else None."""
        path = full_url
        if full_url.startswith(self.base_url):
            path = full_url[len(self.base_url):]
        if not path:
            path = "/"
        return full_url if self.is_valid(path) else None

    def url_for(self, path: str) -> Optional[str]:
        """Full URL for a registered *path*, else None."""
        return self.base_url + path if self.is_valid(path) else None

    def doc_url_for(self, rel_path: str) -> Optional[str]:
        """
        Map a snapshot-relative file path to its documentation URL.

        Component pages map to /components/<Name> (or /extensions/<pkg>/<Name>),
        how-to articles to /howto/<name>; other pages try /<rel>, then
        /guides/<name>, then /<name>. Returns None when no candidate is
        registered.
        """
        p = rel_path.replace("\\", "/")
        name = _strip_doc_ext(posixpath.basename(p))

        if p.startswith(COMPONENTS_DIR + "/"):
            sub = p[len(COMPONENTS_DIR) + 1:]
            parts = sub.split("/")
            if len(parts) == 2 and parts[0].startswith("xmlui-"):
                return self.url_for(f"/extensions/{parts[0]}/{name}")
            return self.url_for(f"/components/{name}")

        for pages in PAGES_DIRS:
            if p.startswith(pages + "/howto/"):
                return self.url_for(f"/howto/{name}")
            if p.startswith(pages + "/"):
                rel = _strip_doc_ext(p[len(pages) + 1:])
                for candidate in (f"/{rel}", f"/guides/{name}", f"/{name}"):
                    url = self.url_for(candidate)
                    if url:
                        return url
                return None
        return None

    # ------------------------------------------------------------------
    @classmethod
    def build(cls, home: Path, base_url: str = DEFAULT_BASE_URL) -> "URLRegistry":
        home = Path(home)
        paths = set(_page_urls(home))
        paths.update(_component_urls(home))
        registry = cls(paths, base_url)
        log.info("URL registry built with %d valid paths", len(registry))
        return registry


def _page_urls(home: Path) -> Iterable[str]:
    main = home / MAIN_LAYOUT
    try:
        text = main.read_text(encoding="utf-8")
    except OSError as e:
        log.warning("URL registry: cannot read %s: %s", main, e)
        return []

    urls = []
    for m in _PAGE_RE.finditer(text):
        url = m.group(1)
        if "*" in url or url == "/404":
            continue
        tag_end = text.find(">", m.end())
        self_closing = tag_end > 0 and text[tag_end - 1] == "/"
        if not self_closing:
            close = text.find("</Page>", m.start())
            body = text[m.start():close] if close >= 0 else ""
            if "<Redirect" in body:
                continue
        urls.append(url)
    return urls


def _component_urls(home: Path) -> Iterable[str]:
    comp_dir = home / COMPONENTS_DIR
    if not comp_dir.is_dir():
        log.warning("URL registry: %s missing", comp_dir)
        return []

    urls = []
    for entry in sorted(comp_dir.iterdir()):
        if entry.is_file():
            if entry.suffix == ".md" and not entry.name.startswith("_"):
                urls.append(f"/components/{entry.stem}")
        elif entry.is_dir() and entry.name.startswith("xmlui-"):
            for f in sorted(entry.iterdir()):
                if f.is_file() and f.suffix == ".md" and not f.name.startswith("_"):
                    urls.append(f"/extensions/{entry.name}/{f.stem}")
    return urls
