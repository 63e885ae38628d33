"""
Tests for tool argument schemas
"""
import pytest
from pydantic import ValidationError
from defaults.schemas import (
    ComponentDocsArgs,
    InjectPromptArgs,
    NoArgs,
    QueryArgs,
    ReadFileArgs,
    SessionArgs,
)


class TestQueryArgs:

    @pytest.mark.unit
    def test_whitespace_is_stripped(self):
        assert QueryArgs(query="  Button  ").query == "Button"

    @pytest.mark.unit
    def test_empty_query_rejected(self):
        with pytest.raises(ValidationError):
            QueryArgs(query="")

    @pytest.mark.unit
    def test_blank_query_rejected_after_strip(self):
        with pytest.raises(ValidationError):
            QueryArgs(query="   ")

    @pytest.mark.unit
    def test_missing_query_rejected(self):
        with pytest.raises(ValidationError):
            QueryArgs()

    @pytest.mark.unit
    def test_unknown_fields_are_ignored(self):
        args = QueryArgs(query="x", limit=5)
        assert not hasattr(args, "limit")

    @pytest.mark.unit
    def test_no_args_accepts_anything(self):
        NoArgs(whatever=1)


class TestComponentDocsArgs:

    @pytest.mark.unit
    @pytest.mark.parametrize("name", ["Button", "xmlui-charts/BarChart", "App"])
    def test_component_names(self, name):
        assert ComponentDocsArgs(component=name).component == name

    @pytest.mark.unit
    @pytest.mark.parametrize("name", ["../secrets", "Group/../../x", "/etc/passwd", "a\\b"])
    def test_paths_rejected(self, name):
        with pytest.raises(ValidationError) as exc:
            ComponentDocsArgs(component=name)
        assert "not a path" in str(exc.value)

    @pytest.mark.unit
    def test_nul_rejected(self):
        with pytest.raises(ValidationError) as exc:
            ComponentDocsArgs(component="Button\x00")
        assert "NUL" in str(exc.value)


class TestSessionDefaults:

    @pytest.mark.unit
    def test_inject_defaults_to_default_session(self):
        args = InjectPromptArgs(prompt_name="xmlui_rules")
        assert args.session_id == "default"

    @pytest.mark.unit
    def test_session_args_default(self):
        assert SessionArgs().session_id == "default"

    @pytest.mark.unit
    def test_read_file_requires_path(self):
        with pytest.raises(ValidationError):
            ReadFileArgs()

    @pytest.mark.unit
    def test_read_file_rejects_nul(self):
        with pytest.raises(ValidationError):
            ReadFileArgs(path="docs/content/components/Button.md\x00.txt")
