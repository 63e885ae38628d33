"""
Corpus provisioning.

Makes sure a valid, version-marked snapshot of the XMLUI repository exists
under the cache root. Installs are staged in a sibling `.tmp/` directory and
renamed into place, so `repo/` is never observed half-installed. Concurrent
starts (threads or processes) serialize on an advisory lock file.
"""
from __future__ import annotations
import os, sys, shutil, zipfile, threading, logging, contextlib
from pathlib import Path
from typing import Iterator, Optional, Union

import release_client as rc
from errors import ExtractFailed, IllegalPath, InstallFailed

if os.name == "nt":
    import msvcrt
else:
    import fcntl

log = logging.getLogger("xmlui-mcp")

MARKER_FILE = ".xmlui-version"
REPO_DIRNAME = "repo"
TMP_DIRNAME = ".tmp"
LOCK_FILENAME = "repo.lock"
ANALYTICS_FILENAME = "xmlui-mcp-analytics.jsonl"
SERVER_LOG_FILENAME = "xmlui-mcp-server.log"

PathLike = Union[str, Path]

# flock() does not exclude threads sharing a process reliably, so pair it
# with an in-process lock.
_process_lock = threading.Lock()


# ------------------------------------------------------------------------------
# Cache location
# ------------------------------------------------------------------------------

def default_cache_root() -> Path:
    """Platform cache directory plus xmlui/xmlui-mcp (XMLUI_MCP_CACHE_DIR overrides)."""
    override = os.getenv("XMLUI_MCP_CACHE_DIR")
    if override:
        return Path(override).expanduser()

    if sys.platform == "win32":
        local = os.getenv("LOCALAPPDATA")
        if local:
            base = Path(local)
        else:
            base = Path(os.getenv("USERPROFILE") or Path.home()) / "AppData" / "Local"
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Caches"
    else:
        xdg = os.getenv("XDG_CACHE_HOME")
        base = Path(xdg) if xdg else Path.home() / ".cache"
    return base / "xmlui" / "xmlui-mcp"


# ------------------------------------------------------------------------------
# Snapshot checks
# ------------------------------------------------------------------------------

def read_marker(path: PathLike) -> str:
    """Return the release tag recorded in the snapshot, or '' if absent."""
    try:
        return (Path(path) / MARKER_FILE).read_text(encoding="utf-8").strip()
    except OSError:
        return ""

def is_valid_snapshot(path: PathLike) -> bool:
    p = Path(path)
    return bool(read_marker(p)) and (p / "docs").is_dir() and (p / "xmlui").is_dir()

def _is_usable(dest: Path, pinned: Optional[str]) -> bool:
    if not is_valid_snapshot(dest):
        return False
    return pinned is None or read_marker(dest) == pinned


# ------------------------------------------------------------------------------
# Locking
# ------------------------------------------------------------------------------

@contextlib.contextmanager
def _file_lock(path: Path) -> Iterator[None]:
    """Exclusive, blocking advisory lock on *path*; released on exit."""
    with open(path, "a+b") as fh:
        if os.name == "nt":
            fh.seek(0)
            while True:
                try:
                    msvcrt.locking(fh.fileno(), msvcrt.LK_LOCK, 1)
                    break
                except OSError:
                    # LK_LOCK gives up after ~10 seconds; keep waiting
                    continue
            try:
                yield
            finally:
                fh.seek(0)
                msvcrt.locking(fh.fileno(), msvcrt.LK_UNLCK, 1)
        else:
            fcntl.flock(fh.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(fh.fileno(), fcntl.LOCK_UN)


# ------------------------------------------------------------------------------
# Provisioning
# ------------------------------------------------------------------------------

def ensure_corpus(cache_root: Optional[PathLike] = None, version: Optional[str] = None) -> Path:
    """
    Return the absolute path of a valid corpus snapshot, installing one if needed.

    `version` pins a release ('xmlui@X' or 'X'); an installed snapshot with a
    different marker is replaced. Raises a ProvisioningError subclass when no
    valid snapshot can be produced.
    """
    root = Path(cache_root) if cache_root else default_cache_root()
    dest = root / REPO_DIRNAME
    pinned = rc.normalize_tag(version) if version else None

    if _is_usable(dest, pinned):
        return dest.resolve()

    try:
        root.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise InstallFailed(f"cannot create cache root {root}: {e}") from e

    with _process_lock, _file_lock(root / LOCK_FILENAME):
        # Another starter may have finished while we waited.
        if _is_usable(dest, pinned):
            log.info("Using snapshot installed by a concurrent start: %s", dest)
            return dest.resolve()
        _install(root, dest, pinned)

    if not is_valid_snapshot(dest):
        raise InstallFailed(f"installed snapshot at {dest} is not valid")
    return dest.resolve()

def _install(root: Path, dest: Path, version: Optional[str]) -> None:
    tmp = root / TMP_DIRNAME
    if tmp.exists():
        log.info("Removing stale temp directory %s", tmp)
        shutil.rmtree(tmp, ignore_errors=True)

    try:
        tmp.mkdir(parents=True)
        tag, url = rc.resolve_release(version)
        log.info("Installing %s into %s", tag, dest)

        archive = rc.download_archive(url, tmp / "xmlui.zip")
        top = _extract(archive, tmp / "extract")

        final = tmp / "final"
        final.mkdir()
        for child in top.iterdir():
            shutil.move(str(child), str(final / child.name))
        (final / MARKER_FILE).write_text(tag + "\n", encoding="utf-8")

        if dest.exists():
            shutil.rmtree(dest)
        os.replace(final, dest)
    except OSError as e:
        raise InstallFailed(f"could not install snapshot into {dest}: {e}") from e
    finally:
        shutil.rmtree(tmp, ignore_errors=True)

    log.info("Installed %s", tag)

def _extract(archive: Path, target: Path) -> Path:
    """
    Extract *archive* into *target* and return the directory holding the tree.

    Release archives wrap everything in one synthetic top-level directory;
    when that is the case, that directory is returned.
    """
    target.mkdir(parents=True, exist_ok=True)
    base = target.resolve()
    try:
        with zipfile.ZipFile(archive) as zf:
            for member in zf.infolist():
                resolved = (base / member.filename).resolve()
                if resolved != base and base not in resolved.parents:
                    raise IllegalPath(member.filename)
            zf.extractall(base)
    except zipfile.BadZipFile as e:
        raise ExtractFailed(f"not a zip archive: {archive}") from e
    except OSError as e:
        raise ExtractFailed(f"could not extract {archive}: {e}") from e

    entries = list(base.iterdir())
    if not entries:
        raise ExtractFailed(f"archive {archive} is empty")
    if len(entries) == 1 and entries[0].is_dir():
        return entries[0]
    return base
