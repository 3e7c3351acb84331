"""
Unit Tests for CLI

Tests the Chat AI CLI commands against an in-memory store and a fake client.
"""

import logging
from datetime import UTC, datetime
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from chatai import cli as cli_module
from chatai.cli import (
    TranscriptPrinter,
    _mask_key,
    ask,
    build_storage,
    chat,
    clear,
    cli,
    configure_cli_logging,
    history,
    set_key,
    status,
)
from chatai.config import get_settings
from chatai.llm import BaseInferenceClient, ProtocolError
from chatai.models import Message, SessionSnapshot
from chatai.session import API_KEY_KEY, MESSAGES_KEY, MISSING_API_KEY_NOTICE
from chatai.storage import InMemoryStore, JsonFileStore


class _FakeClient(BaseInferenceClient):
    def __init__(self, reply="hi there", error=None):
        super().__init__(provider_name="fake", model="fake-model")
        self.reply = reply
        self.error = error
        self.prompts = []
        self.closed = False

    async def complete(self, prompt, api_key):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply

    async def aclose(self):
        self.closed = True


@pytest.fixture
def runner():
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def storage():
    return InMemoryStore()


@pytest.fixture
def fake_client():
    return _FakeClient()


@pytest.fixture(autouse=True)
def wire_session(monkeypatch, storage, fake_client):
    """Route every command to the shared in-memory store and fake client."""
    monkeypatch.setattr(cli_module, "configure_cli_logging", lambda verbose=False: None)
    monkeypatch.setattr(cli_module, "build_storage", lambda settings, ephemeral=False: storage)
    monkeypatch.setattr(cli_module, "build_client", lambda settings: fake_client)


def _seed(storage, *messages, api_key="AIza-test-key-123456"):
    storage.write(API_KEY_KEY, api_key)
    storage.write(MESSAGES_KEY, [m.to_record() for m in messages])


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_cli_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Chat AI" in result.output
        for command in ("chat", "ask", "set-key", "clear", "history", "status"):
            assert command in result.output

    def test_cli_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_chat_command_exists(self, runner):
        result = runner.invoke(cli, ["chat", "--help"])
        assert result.exit_code == 0
        assert "Interactive REPL mode" in result.output


class TestSetKey:
    """Test the set-key command."""

    def test_key_argument(self, runner, storage):
        result = runner.invoke(set_key, ["AIza-from-arg"])

        assert result.exit_code == 0
        assert "API key saved" in result.output
        assert storage.read(API_KEY_KEY) == "AIza-from-arg"

    def test_key_prompted_without_echo(self, runner, storage):
        result = runner.invoke(set_key, [], input="AIza-from-prompt\n")

        assert result.exit_code == 0
        assert storage.read(API_KEY_KEY) == "AIza-from-prompt"
        assert "AIza-from-prompt" not in result.output

    def test_empty_key_removes(self, runner, storage):
        storage.write(API_KEY_KEY, "AIza-old")

        result = runner.invoke(set_key, [""])

        assert result.exit_code == 0
        assert "API key removed" in result.output
        assert storage.read(API_KEY_KEY) == ""

    def test_key_does_not_touch_messages(self, runner, storage):
        _seed(storage, Message.user("keep me"))

        runner.invoke(set_key, ["AIza-other"])

        assert [r["text"] for r in storage.read(MESSAGES_KEY)] == ["keep me"]


class TestAsk:
    """Test the ask command."""

    def test_reply_printed_and_saved(self, runner, storage, fake_client):
        _seed(storage)

        result = runner.invoke(ask, ["hi"])

        assert result.exit_code == 0
        assert "hi there" in result.output
        assert fake_client.prompts == ["hi"]
        assert fake_client.closed is True
        assert [(r["text"], r["isUser"]) for r in storage.read(MESSAGES_KEY)] == [
            ("hi", True),
            ("hi there", False),
        ]

    def test_missing_key_exits_with_notice(self, runner, storage, fake_client):
        result = runner.invoke(ask, ["hi"])

        assert result.exit_code == 1
        assert "Please set an API key" in result.output
        assert fake_client.prompts == []
        assert storage.read(MESSAGES_KEY)[0]["text"] == MISSING_API_KEY_NOTICE

    def test_failure_exits_with_error_text(self, runner, storage, fake_client):
        _seed(storage)
        fake_client.error = ProtocolError(500, "server error")

        result = runner.invoke(ask, ["hi"])

        assert result.exit_code == 1
        assert "Something went wrong" in result.output
        assert "server error" in result.output

    def test_blank_message_rejected(self, runner, fake_client):
        result = runner.invoke(ask, ["   "])

        assert result.exit_code == 1
        assert "Message is empty" in result.output
        assert fake_client.prompts == []


class TestClear:
    """Test the clear command."""

    def test_clear_with_yes(self, runner, storage):
        _seed(storage, Message.user("one"), Message.assistant("two"), api_key="AIza-keep")

        result = runner.invoke(clear, ["--yes"])

        assert result.exit_code == 0
        assert "All messages deleted" in result.output
        assert storage.read(MESSAGES_KEY) == []
        assert storage.read(API_KEY_KEY) == "AIza-keep"

    def test_clear_declined(self, runner, storage):
        _seed(storage, Message.user("one"))

        result = runner.invoke(clear, [], input="n\n")

        assert result.exit_code == 1
        assert [r["text"] for r in storage.read(MESSAGES_KEY)] == ["one"]

    def test_clear_confirmed(self, runner, storage):
        _seed(storage, Message.user("one"))

        result = runner.invoke(clear, [], input="y\n")

        assert result.exit_code == 0
        assert storage.read(MESSAGES_KEY) == []


class TestHistory:
    """Test the history command."""

    def test_empty_history_shows_key_hint(self, runner):
        result = runner.invoke(history, [])

        assert result.exit_code == 0
        assert "No messages yet" in result.output
        assert "No API key set" in result.output

    def test_history_lists_messages(self, runner, storage):
        stamp = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)
        _seed(storage, Message.user("first question", stamp), Message.assistant("first answer", stamp))

        result = runner.invoke(history, [])

        assert result.exit_code == 0
        assert "first question" in result.output
        assert "first answer" in result.output
        assert stamp.astimezone().strftime("%H:%M") in result.output

    def test_history_limit(self, runner, storage):
        _seed(storage, Message.user("older"), Message.assistant("newer"))

        result = runner.invoke(history, ["--limit", "1"])

        assert "newer" in result.output
        assert "older" not in result.output


class TestStatus:
    """Test the status command."""

    def test_status_without_key(self, runner):
        result = runner.invoke(status, [])

        assert result.exit_code == 0
        assert "gemini-2.0-flash-exp" in result.output
        assert "not set" in result.output

    def test_status_masks_key(self, runner, storage):
        _seed(storage, Message.user("one"), api_key="AIzaSECRETVALUE9876")

        result = runner.invoke(status, [])

        assert result.exit_code == 0
        assert "SECRETVALUE" not in result.output
        assert "AIza" in result.output


class TestChat:
    """Test the interactive REPL."""

    def test_chat_round_trip(self, runner, storage, fake_client):
        _seed(storage)

        result = runner.invoke(chat, [], input="hi\nexit\n")

        assert result.exit_code == 0
        assert "hi there" in result.output
        assert "Goodbye" in result.output
        assert fake_client.prompts == ["hi"]
        assert len(storage.read(MESSAGES_KEY)) == 2

    def test_chat_ends_on_eof(self, runner, storage):
        _seed(storage)

        result = runner.invoke(chat, [], input="")

        assert result.exit_code == 0
        assert "Goodbye" in result.output

    def test_chat_skips_blank_lines(self, runner, storage, fake_client):
        _seed(storage)

        result = runner.invoke(chat, [], input="\n   \nexit\n")

        assert result.exit_code == 0
        assert fake_client.prompts == []

    def test_chat_clear_command(self, runner, storage):
        _seed(storage, Message.user("old"), Message.assistant("reply"))

        result = runner.invoke(chat, [], input="/clear\nexit\n")

        assert result.exit_code == 0
        assert "Loaded 2 earlier messages" in result.output
        assert "Conversation cleared" in result.output
        assert storage.read(MESSAGES_KEY) == []

    def test_chat_key_command_then_send(self, runner, storage, fake_client):
        result = runner.invoke(chat, [], input="/key\nAIza-typed\nhello\nquit\n")

        assert result.exit_code == 0
        assert "No API key set" in result.output
        assert "API key saved" in result.output
        assert storage.read(API_KEY_KEY) == "AIza-typed"
        assert fake_client.prompts == ["hello"]

    def test_chat_ephemeral_flag_passed_to_storage(self, runner, monkeypatch):
        seen = []

        def _build(settings, ephemeral=False):
            seen.append(ephemeral)
            return InMemoryStore()

        monkeypatch.setattr(cli_module, "build_storage", _build)

        result = runner.invoke(chat, ["--ephemeral"], input="exit\n")

        assert result.exit_code == 0
        assert seen == [True]


class TestHelpers:
    """Test rendering helpers."""

    def test_mask_key(self):
        assert _mask_key("") == "not set"
        assert _mask_key("short") == "****"
        assert _mask_key("AIzaSyABCDEFGH1234") == "AIza…1234"

    def test_transcript_printer_skips_user_and_resets_on_clear(self):
        printed = []
        printer = TranscriptPrinter()
        stamp = datetime(2026, 10, 19, tzinfo=UTC)
        user = Message.user("q", stamp)
        reply = Message.assistant("a", stamp)

        with patch.object(cli_module, "print_message", printed.append):
            printer(SessionSnapshot(messages=(user, reply)))
            printer(SessionSnapshot(messages=()))
            printer(SessionSnapshot(messages=(reply,)))

        assert printed == [reply, reply]
        assert printer.shown == 1

    def test_build_storage_selects_backend(self, tmp_path):
        settings = get_settings()

        assert isinstance(build_storage(settings, ephemeral=True), InMemoryStore)
        file_store = build_storage(settings)
        assert isinstance(file_store, JsonFileStore)
        assert file_store.data_dir == tmp_path / "chatai-data"


def test_configure_cli_logging_quiets_library_loggers():
    with patch("logging.basicConfig"):
        configure_cli_logging(verbose=False)

    assert logging.getLogger("chatai").level == logging.WARNING
    assert logging.getLogger("httpx").level == logging.WARNING


def test_configure_cli_logging_verbose_keeps_levels():
    with patch("logging.basicConfig"):
        configure_cli_logging(verbose=True)

    assert logging.getLogger("chatai").level == logging.NOTSET
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("httpcore").level == logging.WARNING


@pytest.mark.asyncio
async def test_verbose_logging_does_not_leak_api_key(make_gemini_client, caplog):
    with patch("logging.basicConfig"):
        configure_cli_logging(verbose=True)
    client, _ = make_gemini_client(
        status_code=200,
        json={"candidates": [{"content": {"parts": [{"text": "hi there"}]}}]},
    )

    await client.complete("hi", "AIza-SECRET-KEY")

    assert any(record.name.startswith("chatai") for record in caplog.records)
    assert "AIza-SECRET-KEY" not in caplog.text
