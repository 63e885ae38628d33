"""
Prompt catalogue and per-session prompt injection bookkeeping.
"""
from __future__ import annotations
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

DEFAULT_SESSION = "default"
SESSION_MAX_IDLE = timedelta(hours=24)


@dataclass(frozen=True)
class Prompt:
    name: str
    title: str
    description: str
    content: str


XMLUI_RULES = Prompt(
    name="xmlui_rules",
    title="XMLUI Development Rules and Guidelines",
    description="Essential rules and guidelines for XMLUI development",
    content="""You are assisting with XMLUI development. Follow these essential rules:

1 don't write any code without my permission, always preview proposed changes, discuss, and only proceed with approval

2 don't add any xmlui styling, let the theme and layout engine do its job

3 proceed in small increments, write the absolute minimum amount of xmlui markup necessary and no script if possible

4 do not invent any xmlui syntax, only use constructs for which you can find examples in the docs and sample apps, and always cite your sources.

5 never touch the dom, we only work within xmlui abstractions inside the <App> realm, with help from vars and functions defined on the window variable in index.html

6 keep complex functions and expressions out of xmlui, then can live in index.html or (if scoping requires) in code-behind

7 use this xmlui-mcp server to list and show component docs but also search xmlui source, docs, examples, and howto articles

8 always do the simplest thing possible

9 use a neutral tone, do not say "Perfect!" etc, in fact never use exclamation marks at all

10 when creating examples for live playgrounds, observe the conventions for ---app, ---comp and --api

11 VStack is the default, don't use it unless necessary

12 prioritize XMLUI tools, especially list_howto and search_howto, and always cite the urls of found articles

13 prioritize xmlui-pg examples in .md files under src/components

These rules ensure clean, maintainable XMLUI applications that follow best practices.""",
)

PROMPTS: Dict[str, Prompt] = {XMLUI_RULES.name: XMLUI_RULES}


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Session:
    id: str
    created_at: datetime = field(default_factory=_now)
    last_activity: datetime = field(default_factory=_now)
    injected_prompts: List[str] = field(default_factory=list)
    context: List[str] = field(default_factory=list)

    def touch(self) -> None:
        self.last_activity = _now()


class SessionManager:
    """
    Flat map of sessions keyed by id, guarded by a lock.

    Opening a new session first drops sessions idle for longer than
    *max_idle*. The default session is never dropped.
    """

    def __init__(self, prompts: Optional[Dict[str, Prompt]] = None, max_idle: timedelta = SESSION_MAX_IDLE):
        self.prompts = prompts if prompts is not None else PROMPTS
        self.max_idle = max_idle
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def get_or_create(self, session_id: str = DEFAULT_SESSION) -> Session:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                self._drop_idle(_now() - self.max_idle)
                session = Session(id=session_id)
                self._sessions[session_id] = session
            session.touch()
            return session

    def get(self, session_id: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(session_id)

    def inject_prompt(self, session_id: str, prompt_name: str) -> Tuple[bool, str]:
        """Add a prompt's content to a session; returns (success, message)."""
        prompt = self.prompts.get(prompt_name)
        if prompt is None:
            return False, f"prompt '{prompt_name}' not found"
        session = self.get_or_create(session_id)
        with self._lock:
            if prompt_name in session.injected_prompts:
                return False, f"prompt '{prompt_name}' already injected into session '{session_id}'"
            session.injected_prompts.append(prompt_name)
            session.context.append(prompt.content)
            session.touch()
        return True, f"prompt '{prompt_name}' injected into session '{session_id}'"

    def _drop_idle(self, cutoff: datetime) -> int:
        stale = [
            sid for sid, s in self._sessions.items()
            if sid != DEFAULT_SESSION and s.last_activity < cutoff
        ]
        for sid in stale:
            del self._sessions[sid]
        return len(stale)
