"""
Append-only JSONL analytics stream.

Every tool invocation produces one `tool_invocation` record; search-like tools
add a `search_query` record. Writes never raise: an analytics failure must not
turn a successful tool call into an error.
"""
from __future__ import annotations
import json, logging, threading
from collections import Counter, defaultdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

log = logging.getLogger("xmlui-mcp")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class Analytics:
    """Serialized JSONL writer; the file is opened in append mode per record."""

    def __init__(self, path: Optional[Path]):
        self.path = Path(path) if path else None
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    def _append(self, record: Dict[str, Any]) -> None:
        if self.path is None:
            return
        try:
            line = json.dumps(record, ensure_ascii=False, default=str)
            with self._lock:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with open(self.path, "a", encoding="utf-8") as fh:
                    fh.write(line + "\n")
        except (OSError, TypeError, ValueError) as e:
            log.warning("analytics write failed: %s", e)

    def log_tool_invocation(
        self,
        tool_name: str,
        arguments: Dict[str, Any],
        success: bool,
        result_size_chars: int,
        error_msg: str = "",
    ) -> None:
        record: Dict[str, Any] = {
            "entry_type": "tool_invocation",
            "timestamp": _now(),
            "tool_name": tool_name,
            "arguments": arguments,
            "success": success,
            "result_size_chars": result_size_chars,
        }
        if error_msg:
            record["error_msg"] = error_msg
        self._append(record)

    def log_search_query(
        self,
        tool_name: str,
        query: str,
        result_count: int,
        success: bool,
        search_paths: List[str],
        found_urls: List[str],
    ) -> None:
        self._append({
            "entry_type": "search_query",
            "timestamp": _now(),
            "tool_name": tool_name,
            "query": query,
            "result_count": result_count,
            "success": success,
            "search_paths": list(search_paths),
            "found_urls": list(found_urls),
        })

    # ------------------------------------------------------------------
    def read_records(self) -> List[Dict[str, Any]]:
        """Parse the log, skipping lines that are not valid JSON objects."""
        if self.path is None or not self.path.exists():
            return []
        records: List[Dict[str, Any]] = []
        with self._lock, open(self.path, encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if not line:
                    continue
                try:
                    obj = json.loads(line)
                except ValueError:
                    continue
                if isinstance(obj, dict):
                    records.append(obj)
        return records

    def summary(self, top_terms: int = 10) -> Dict[str, Any]:
        """
        Aggregate the log: invocation counts, per-tool success rates (percent),
        average result sizes, search success rate and the most common query terms.
        """
        records = self.read_records()
        tools = [r for r in records if r.get("entry_type") == "tool_invocation"]
        searches = [r for r in records if r.get("entry_type") == "search_query"]

        counts: Counter = Counter()
        successes: Counter = Counter()
        sizes: Dict[str, List[int]] = defaultdict(list)
        for r in tools:
            name = r.get("tool_name", "")
            counts[name] += 1
            if r.get("success"):
                successes[name] += 1
            sizes[name].append(int(r.get("result_size_chars") or 0))

        terms: Counter = Counter()
        search_ok = 0
        for r in searches:
            if r.get("success"):
                search_ok += 1
            for term in str(r.get("query", "")).lower().split():
                if len(term) > 2:
                    terms[term] += 1

        return {
            "total_invocations": len(tools),
            "total_searches": len(searches),
            "tool_usage": dict(counts),
            "tool_success_rates": {
                name: round(100.0 * successes[name] / n, 1) for name, n in counts.items()
            },
            "avg_result_sizes": {
                name: sum(v) // len(v) for name, v in sizes.items() if v
            },
            "search_success_rate": round(100.0 * search_ok / len(searches), 1) if searches else 0.0,
            "popular_terms": [t for t, _ in terms.most_common(top_terms)],
        }
