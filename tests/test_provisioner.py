"""
Tests for corpus provisioning
"""
import io
import multiprocessing
import threading
import time
import zipfile
from pathlib import Path
import pytest
import requests_mock

import provisioner as pv
import release_client as rc
from errors import ExtractFailed, IllegalPath, InstallFailed


def make_archive(tag="xmlui@0.12.0", extra=()):
    """Zip shaped like a tag archive: one synthetic top-level directory."""
    top = f"xmlui-{tag.replace('@', '-')}/"
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr(top + "docs/content/components/Button.md", "# Button\n")
        zf.writestr(top + "docs/src/Main.xmlui", '<App><Page url="/"/></App>\n')
        zf.writestr(top + "xmlui/src/components/Button/Button.tsx", "export {}\n")
        for name, data in extra:
            zf.writestr(name, data)
    return buf.getvalue()


def mock_release(m, tag="xmlui@0.12.0", archive=None):
    m.get(rc.RELEASES_URL, json=[{"tag_name": tag}])
    m.get(rc.archive_url_for(tag), content=archive if archive is not None else make_archive(tag))


class TestEnsureCorpus:

    @pytest.mark.client
    def test_fresh_install(self, tmp_path):
        cache = tmp_path / "cache"
        with requests_mock.Mocker() as m:
            mock_release(m)
            repo = pv.ensure_corpus(cache)
        assert repo == (cache / "repo").resolve()
        assert pv.read_marker(repo) == "xmlui@0.12.0"
        assert pv.is_valid_snapshot(repo)
        assert (repo / "docs/content/components/Button.md").is_file()
        assert not (cache / ".tmp").exists()

    @pytest.mark.client
    def test_valid_snapshot_is_reused_without_network(self, tmp_path):
        cache = tmp_path / "cache"
        with requests_mock.Mocker() as m:
            mock_release(m)
            pv.ensure_corpus(cache)
        with requests_mock.Mocker() as m:
            repo = pv.ensure_corpus(cache)
            assert m.call_count == 0
        assert pv.read_marker(repo) == "xmlui@0.12.0"

    @pytest.mark.client
    def test_pinned_version_replaces_other_marker(self, tmp_path):
        cache = tmp_path / "cache"
        with requests_mock.Mocker() as m:
            mock_release(m, "xmlui@0.12.0")
            pv.ensure_corpus(cache)
        with requests_mock.Mocker() as m:
            m.get(rc.archive_url_for("xmlui@0.11.4"), content=make_archive("xmlui@0.11.4"))
            repo = pv.ensure_corpus(cache, version="0.11.4")
            assert m.call_count == 1
        assert pv.read_marker(repo) == "xmlui@0.11.4"

    @pytest.mark.client
    def test_listing_failure_installs_fallback(self, tmp_path):
        with requests_mock.Mocker() as m:
            m.get(rc.RELEASES_URL, status_code=500)
            m.get(rc.archive_url_for(rc.FALLBACK_TAG), content=make_archive(rc.FALLBACK_TAG))
            repo = pv.ensure_corpus(tmp_path / "cache")
        assert pv.read_marker(repo) == rc.FALLBACK_TAG

    @pytest.mark.client
    def test_stale_temp_dir_is_removed(self, tmp_path):
        cache = tmp_path / "cache"
        stale = cache / ".tmp" / "extract" / "half-written"
        stale.mkdir(parents=True)
        with requests_mock.Mocker() as m:
            mock_release(m)
            repo = pv.ensure_corpus(cache)
        assert pv.is_valid_snapshot(repo)
        assert not (cache / ".tmp").exists()

    @pytest.mark.client
    def test_marker_less_snapshot_is_replaced(self, tmp_path):
        cache = tmp_path / "cache"
        (cache / "repo" / "docs").mkdir(parents=True)
        (cache / "repo" / "xmlui").mkdir()
        with requests_mock.Mocker() as m:
            mock_release(m)
            repo = pv.ensure_corpus(cache)
        assert pv.read_marker(repo) == "xmlui@0.12.0"


class TestFailures:

    @pytest.mark.client
    def test_path_escape_is_rejected(self, tmp_path):
        cache = tmp_path / "cache"
        evil = make_archive(extra=[("../evil.txt", "x")])
        with requests_mock.Mocker() as m:
            mock_release(m, archive=evil)
            with pytest.raises(IllegalPath) as exc:
                pv.ensure_corpus(cache)
        assert exc.value.member == "../evil.txt"
        assert not (tmp_path / "evil.txt").exists()
        assert not (cache / "repo").exists()
        assert not (cache / ".tmp").exists()

    @pytest.mark.client
    def test_bad_archive(self, tmp_path):
        with requests_mock.Mocker() as m:
            mock_release(m, archive=b"this is not a zip")
            with pytest.raises(ExtractFailed):
                pv.ensure_corpus(tmp_path / "cache")

    @pytest.mark.client
    def test_archive_without_snapshot_layout(self, tmp_path):
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w") as zf:
            zf.writestr("top/README.md", "nothing here\n")
        with requests_mock.Mocker() as m:
            mock_release(m, archive=buf.getvalue())
            with pytest.raises(InstallFailed):
                pv.ensure_corpus(tmp_path / "cache")

    @pytest.mark.client
    def test_crash_before_rename_leaves_no_partial_snapshot(self, tmp_path, mocker):
        cache = tmp_path / "cache"
        mocker.patch("provisioner.os.replace", side_effect=OSError("power cut"))
        with requests_mock.Mocker() as m:
            mock_release(m)
            with pytest.raises(InstallFailed):
                pv.ensure_corpus(cache)
        assert not (cache / "repo").exists()

        mocker.stopall()
        with requests_mock.Mocker() as m:
            mock_release(m)
            repo = pv.ensure_corpus(cache)
        assert pv.is_valid_snapshot(repo)


def _provision_in_child(cache, out):
    """Runs in a spawned process: provision against a slow mocked archive and report."""
    def slow_archive(request, context):
        time.sleep(0.5)
        return make_archive()

    with requests_mock.Mocker() as m:
        m.get(rc.RELEASES_URL, json=[{"tag_name": "xmlui@0.12.0"}])
        m.get(rc.archive_url_for("xmlui@0.12.0"), content=slow_archive)
        repo = pv.ensure_corpus(cache)
        downloads = sum(1 for r in m.request_history if r.url.endswith(".zip"))
    Path(out).write_text(f"{downloads}\n{repo}", encoding="utf-8")


class TestConcurrency:

    @pytest.mark.client
    def test_concurrent_starts_download_once(self, tmp_path):
        cache = tmp_path / "cache"
        results, errors = [], []

        def start():
            try:
                results.append(pv.ensure_corpus(cache))
            except Exception as e:
                errors.append(e)

        with requests_mock.Mocker() as m:
            mock_release(m)
            threads = [threading.Thread(target=start) for _ in range(2)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()
            downloads = [r for r in m.request_history if r.url.endswith(".zip")]

        assert errors == []
        assert len(downloads) == 1
        assert len(results) == 2 and results[0] == results[1]
        assert pv.is_valid_snapshot(results[0])

    @pytest.mark.client
    def test_concurrent_processes_download_once(self, tmp_path):
        cache = tmp_path / "cache"
        outs = [tmp_path / f"out{i}.txt" for i in range(2)]
        spawn = multiprocessing.get_context("spawn")
        procs = [spawn.Process(target=_provision_in_child, args=(str(cache), str(o))) for o in outs]
        for p in procs:
            p.start()
        for p in procs:
            p.join(timeout=120)
        assert [p.exitcode for p in procs] == [0, 0]

        reports = [o.read_text(encoding="utf-8").split("\n") for o in outs]
        assert sum(int(downloads) for downloads, _ in reports) == 1
        assert reports[0][1] == reports[1][1]
        assert pv.is_valid_snapshot(Path(reports[0][1]))


class TestCacheRoot:

    @pytest.mark.unit
    def test_env_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("XMLUI_MCP_CACHE_DIR", str(tmp_path / "custom"))
        assert pv.default_cache_root() == tmp_path / "custom"

    @pytest.mark.unit
    def test_platform_default_ends_with_app_dirs(self, monkeypatch):
        monkeypatch.delenv("XMLUI_MCP_CACHE_DIR", raising=False)
        root = pv.default_cache_root()
        assert root.parts[-2:] == ("xmlui", "xmlui-mcp")
