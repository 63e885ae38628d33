"""
Tests for the JSONL analytics stream
"""
import json
import threading
import pytest
from analytics import Analytics


@pytest.fixture
def analytics(tmp_path):
    return Analytics(tmp_path / "nested" / "analytics.jsonl")


class TestRecords:

    @pytest.mark.unit
    def test_tool_invocation_layout(self, analytics):
        analytics.log_tool_invocation("search", {"query": "x"}, True, 42)
        (line,) = analytics.path.read_text(encoding="utf-8").splitlines()
        record = json.loads(line)
        assert record["entry_type"] == "tool_invocation"
        assert record["tool_name"] == "search"
        assert record["arguments"] == {"query": "x"}
        assert record["success"] is True
        assert record["result_size_chars"] == 42
        assert "timestamp" in record

    @pytest.mark.unit
    def test_search_query_layout(self, analytics):
        analytics.log_search_query("search", "button", 3, True, ["/a"], ["https://docs.xmlui.org/components/Button"])
        record = analytics.read_records()[0]
        assert record["entry_type"] == "search_query"
        assert record["result_count"] == 3
        assert record["search_paths"] == ["/a"]
        assert record["found_urls"] == ["https://docs.xmlui.org/components/Button"]

    @pytest.mark.unit
    def test_append_only(self, analytics):
        for i in range(3):
            analytics.log_tool_invocation("t", {}, True, i)
        assert [r["result_size_chars"] for r in analytics.read_records()] == [0, 1, 2]

    @pytest.mark.unit
    def test_concurrent_writes_are_whole_lines(self, analytics):
        def work(n):
            for i in range(50):
                analytics.log_tool_invocation(f"t{n}", {"i": i}, True, i)
        threads = [threading.Thread(target=work, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        lines = analytics.path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 200
        assert all(json.loads(l)["entry_type"] == "tool_invocation" for l in lines)

    @pytest.mark.unit
    def test_write_failure_is_swallowed(self, tmp_path, caplog):
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")
        analytics = Analytics(blocker / "analytics.jsonl")
        analytics.log_tool_invocation("t", {}, True, 1)
        assert "analytics write failed" in caplog.text

    @pytest.mark.unit
    def test_corrupt_lines_are_skipped(self, analytics):
        analytics.log_tool_invocation("t", {}, True, 1)
        with open(analytics.path, "a", encoding="utf-8") as fh:
            fh.write("not json\n[1, 2]\n")
        assert len(analytics.read_records()) == 1


class TestSummary:

    @pytest.mark.unit
    def test_summary(self, analytics):
        analytics.log_tool_invocation("search", {}, True, 100)
        analytics.log_tool_invocation("search", {}, False, 51)
        analytics.log_tool_invocation("read_file", {}, True, 10)
        analytics.log_search_query("search", "Table sorting", 4, True, [], [])
        analytics.log_search_query("search", "table of contents", 0, False, [], [])
        s = analytics.summary()
        assert s["total_invocations"] == 3
        assert s["total_searches"] == 2
        assert s["tool_usage"] == {"search": 2, "read_file": 1}
        assert s["tool_success_rates"] == {"search": 50.0, "read_file": 100.0}
        assert s["avg_result_sizes"] == {"search": 75, "read_file": 10}
        assert s["search_success_rate"] == 50.0
        assert s["popular_terms"][0] == "table"
        assert "of" not in s["popular_terms"]

    @pytest.mark.unit
    def test_empty_summary(self, analytics):
        s = analytics.summary()
        assert s["total_invocations"] == 0
        assert s["search_success_rate"] == 0.0
        assert s["popular_terms"] == []
