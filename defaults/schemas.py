from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


# ------------------------------------------------------------------------------
# Schemas
# ------------------------------------------------------------------------------

class _Args(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


class NoArgs(_Args):
    pass

class QueryArgs(_Args):
    query: str = Field(..., min_length=1, description="Search terms, e.g. 'Button', 'form validation'")

class SearchArgs(QueryArgs):
    pass

class ExamplesArgs(QueryArgs):
    query: str = Field(..., min_length=1, description="Component or concept to find usage examples for")

class SearchHowtoArgs(QueryArgs):
    query: str = Field(..., min_length=1, description="Keyword or phrase to look for in how-to articles")

class PatternArgs(QueryArgs):
    query: str = Field(..., min_length=1, description="Pattern to find, e.g. 'conditional rendering', 'dark mode'")

class ComponentDocsArgs(_Args):
    component: str = Field(..., min_length=1, description="Component name, e.g. 'Button' or 'Group/Name'")

    @field_validator("component")
    @classmethod
    def _no_traversal(cls, v: str) -> str:
        if "\x00" in v:
            raise ValueError("component must not contain NUL characters")
        if ".." in v.split("/") or v.startswith("/") or "\\" in v:
            raise ValueError("component must be a component name, not a path")
        return v

class ReadFileArgs(_Args):
    path: str = Field(..., min_length=1, description="Snapshot-relative path, e.g. 'docs/content/components/Button.md'")

    @field_validator("path")
    @classmethod
    def _no_nul(cls, v: str) -> str:
        if "\x00" in v:
            raise ValueError("path must not contain NUL characters")
        return v

class InjectPromptArgs(_Args):
    prompt_name: str = Field(..., min_length=1, description="Name of the prompt to inject, e.g. 'xmlui_rules'")
    session_id: Optional[str] = Field("default", description="Session ID (defaults to 'default')")

class GetPromptArgs(_Args):
    prompt_name: str = Field(..., min_length=1, description="Name of the prompt to retrieve, e.g. 'xmlui_rules'")

class SessionArgs(_Args):
    session_id: Optional[str] = Field("default", description="Session ID (defaults to 'default')")
