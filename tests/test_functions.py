"""
Function executor tests.
Tests every operation, duplicate suppression and error results.
"""
import json

import pytest

from patent_service.document_store import render_skeleton
from patent_service.errors import InvalidArgumentsError, UnknownOperationError
from patent_service.functions import FUNCTION_SPECS, decode_arguments, tool_definitions


def _assert_result_shape(result):
    assert isinstance(result["success"], bool)
    assert isinstance(result["message"], str) and result["message"]


class TestCreateTemplate:
    """Test create_template."""

    def test_creates_session_and_document(self, executor, registry, store):
        result = executor.execute("create_template", json.dumps({"title": "Widget"}))

        _assert_result_shape(result)
        assert result["success"] is True
        assert result["content"] == render_skeleton("Widget")
        assert registry.current().session_id == result["session_id"]
        assert store.exists(result["session_id"])
        assert '"Widget"' in result["message"]

    def test_duplicate_within_window(self, executor, store, clock):
        first = executor.execute("create_template", '{"title": "Widget"}')
        clock.advance_ms(500)
        second = executor.execute("create_template", '{"title": "Widget"}')

        assert first["success"] is True
        assert second["success"] is False
        assert second["message"] == "duplicate"
        assert second["duplicate"] is True
        assert len(list(store.base_dir.iterdir())) == 1

    def test_accepted_again_after_window(self, executor, store, clock):
        executor.execute("create_template", '{"title": "Widget"}')
        clock.advance_ms(1000)
        executor.execute("create_template", '{"title": "Widget"}')
        clock.advance_ms(1100)
        third = executor.execute("create_template", '{"title": "Widget"}')

        assert third["success"] is True
        assert len(list(store.base_dir.iterdir())) == 2

    def test_missing_title(self, executor, registry):
        result = executor.execute("create_template", {})

        _assert_result_shape(result)
        assert result["success"] is False
        assert "title" in result["message"]
        assert registry.current() is None

    def test_storage_failure_reported(self, executor, store):
        store.base_dir.parent.mkdir(parents=True, exist_ok=True)
        store.base_dir.write_text("not a directory")

        result = executor.execute("create_template", {"title": "Widget"})

        _assert_result_shape(result)
        assert result["success"] is False
        assert result["error"]


class TestResume:
    """Test resume_patent_creation."""

    def test_without_session(self, executor):
        result = executor.execute("resume_patent_creation", "{}")

        assert result["success"] is False
        assert result["message"].startswith("No active patent session found")

    def test_returns_document(self, executor, clock):
        created = executor.execute("create_template", {"title": "Widget"})
        executor.execute("send_user_response", {"message": "A widget with a hinge."})

        result = executor.execute("resume_patent_creation", "{}")

        assert result["success"] is True
        assert result["session"]["id"] == created["session_id"]
        assert result["content"].endswith("\n\nA widget with a hinge.")

    def test_duplicate_resume_suppressed(self, executor, clock):
        executor.execute("create_template", {"title": "Widget"})
        executor.execute("resume_patent_creation", "{}")
        result = executor.execute("resume_patent_creation", "{}")

        assert result["success"] is False
        assert result["message"] == "duplicate"

    def test_missing_file(self, executor, store):
        created = executor.execute("create_template", {"title": "Widget"})
        store.path_for(created["session_id"]).unlink()

        result = executor.execute("resume_patent_creation", "{}")

        assert result == {
            "success": False,
            "message": "Patent file not found",
            "error_category": "document.not_found",
            "error": f"no document for session {created['session_id']}",
        }


class TestDisplayAndExport:
    """Test display_patent and export_as_pdf."""

    def test_display_without_session(self, executor):
        result = executor.execute("display_patent", "{}")

        assert result["success"] is False
        assert result["message"] == "No active patent session found"

    def test_display_returns_content(self, executor):
        executor.execute("create_template", {"title": "Widget"})
        result = executor.execute("display_patent", "")

        assert result["success"] is True
        assert "# Widget" in result["content"]

    def test_display_is_not_deduplicated(self, executor):
        executor.execute("create_template", {"title": "Widget"})

        assert executor.execute("display_patent", "{}")["success"] is True
        assert executor.execute("display_patent", "{}")["success"] is True

    def test_undecodable_document_reported(self, executor, store):
        created = executor.execute("create_template", {"title": "Widget"})
        store.path_for(created["session_id"]).write_bytes(b"# Widget\n\xff\xfe bad")

        result = executor.execute("display_patent", "{}")

        _assert_result_shape(result)
        assert result["success"] is False
        assert result["error_category"] == "document.storage_failed"
        assert result["message"].startswith("Could not read patent document")

    def test_export_without_session(self, executor):
        result = executor.execute("export_as_pdf", None)
        assert result["success"] is False

    def test_export_placeholder(self, executor, store):
        created = executor.execute("create_template", {"title": "Widget"})
        result = executor.execute("export_as_pdf", "{}")

        assert result["success"] is True
        assert result["message"] == "PDF export will be implemented in a future update"
        assert result["path"].endswith("patent.pdf")
        assert not (store.session_dir(created["session_id"]) / "patent.pdf").exists()


class TestSendUserResponse:
    """Test send_user_response."""

    def test_without_session(self, executor):
        result = executor.execute("send_user_response", {"message": "text"})

        assert result["success"] is False
        assert result["message"] == "No active patent session found"

    def test_appends_and_touches(self, executor, registry, store):
        executor.execute("create_template", {"title": "Widget"})
        session = registry.current()
        before = session.last_modified

        result = executor.execute("send_user_response", '{"message": "claim 1 text"}')

        assert result["success"] is True
        assert store.read(session.session_id).endswith("\n\nclaim 1 text")
        assert session.last_modified >= before

    def test_identical_messages_both_appended(self, executor, registry, store):
        executor.execute("create_template", {"title": "Widget"})
        executor.execute("send_user_response", {"message": "same"})
        executor.execute("send_user_response", {"message": "same"})

        assert store.read(registry.current().session_id).endswith("\n\nsame\n\nsame")

    def test_missing_message(self, executor):
        executor.execute("create_template", {"title": "Widget"})
        result = executor.execute("send_user_response", {})

        assert result["success"] is False
        assert "message" in result["message"]


class TestDispatch:
    """Test the dispatch boundary."""

    def test_unknown_function_raises(self, executor, registry):
        with pytest.raises(UnknownOperationError, match="Unknown function: delete_everything"):
            executor.execute("delete_everything", "{}")
        assert registry.current() is None

    def test_invalid_json_arguments(self, executor):
        result = executor.execute("create_template", "{not json")

        assert result["success"] is False
        assert result["error_category"] == "function.invalid_arguments"

    def test_function_names(self, executor):
        assert set(executor.function_names) == set(FUNCTION_SPECS)

    def test_emits_call_events(self, executor, capsys):
        executor.execute("display_patent", "{}", call_id="call_1")

        out = capsys.readouterr().out
        assert "function.call_received" in out
        assert "function.call_completed" in out
        assert "call_1" in out

    @pytest.mark.asyncio
    async def test_async_caller_maps_unknown_function(self, executor):
        call = executor.as_caller()

        result = await call("delete_everything", "{}", "call_9")

        assert result["success"] is False
        assert result["message"] == "Unknown function: delete_everything"

    @pytest.mark.asyncio
    async def test_async_caller_executes(self, executor):
        call = executor.as_caller()

        result = await call("create_template", '{"title": "Widget"}', "call_1")

        assert result["success"] is True


def test_decode_arguments_forms():
    assert decode_arguments(None) == {}
    assert decode_arguments("") == {}
    assert decode_arguments('{"a": 1}') == {"a": 1}
    assert decode_arguments({"a": 1}) == {"a": 1}
    with pytest.raises(InvalidArgumentsError):
        decode_arguments("[1, 2]")


def test_tool_definitions_cover_all_functions():
    tools = {tool["name"]: tool for tool in tool_definitions()}

    assert set(tools) == set(FUNCTION_SPECS)
    assert tools["create_template"]["parameters"]["required"] == ["title"]
    assert tools["display_patent"]["parameters"]["properties"] == {}
    assert all(tool["type"] == "function" for tool in tools.values())
