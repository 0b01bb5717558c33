from __future__ import annotations

import logging
from pathlib import Path

import pytest

from queuecast.logging_utils import _coerce_level, _stringify, configure_logging, render_fields_block


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


class TestStringify:
    """Tests for stringify."""

    def test_none_is_blank(self):
        """Test none is blank."""
        assert _stringify(None) == ""

    def test_sequences_are_joined(self):
        """Test sequences are joined."""
        assert _stringify(["a", 1, None]) == "a, 1, "

    def test_strings_are_stripped(self):
        """Test strings are stripped."""
        assert _stringify("  padded  ") == "padded"


class TestRenderFieldsBlock:
    """Tests for render fields block."""

    def test_title_underline_and_alignment(self):
        """Test title underline and alignment."""
        block = render_fields_block("Program Added", {"Id": "3fa9c2e1", "Episodes": 12}, pad_top=False)
        lines = block.splitlines()

        assert lines[0] == "Program Added"
        assert lines[1] == "-" * len("Program Added")
        assert lines[2] == "    Id      : 3fa9c2e1"
        assert lines[3] == "    Episodes: 12"

    def test_pad_top_adds_blank_line(self):
        """Test pad top adds blank line."""
        assert render_fields_block("Title", {}).startswith("\nTitle")

    def test_accepts_sequence_of_pairs(self):
        """Test accepts sequence of pairs."""
        block = render_fields_block("T", [("b", 1), ("a", 2)], pad_top=False)
        assert block.splitlines()[2:] == ["    b       : 1", "    a       : 2"]

    def test_long_values_wrap(self):
        """Test long values wrap."""
        block = render_fields_block("T", {"Path": "word " * 40}, pad_top=False, wrap_width=60)
        lines = block.splitlines()[2:]
        assert len(lines) > 1
        assert all(len(line) <= 60 for line in lines)
        assert lines[1].startswith(" " * (4 + 8 + 2))


class TestCoerceLevel:
    """Tests for coerce level."""

    def test_names_and_numbers(self):
        """Test names and numbers."""
        assert _coerce_level("debug", logging.INFO) == logging.DEBUG
        assert _coerce_level(logging.ERROR, logging.INFO) == logging.ERROR
        assert _coerce_level(None, logging.WARNING) == logging.WARNING

    def test_unknown_name(self):
        """Test unknown name."""
        with pytest.raises(ValueError):
            _coerce_level("chatty", logging.INFO)


class TestConfigureLogging:
    """Tests for configure logging."""

    def test_replaces_existing_handlers(self, restore_root_logger):
        """Test replaces existing handlers."""
        configure_logging("INFO")
        configure_logging("INFO")

        assert len(restore_root_logger.handlers) == 1

    def test_console_level_can_differ(self, restore_root_logger):
        """Test console level can differ."""
        configure_logging("DEBUG", console_level="WARNING")

        [handler] = restore_root_logger.handlers
        assert handler.level == logging.WARNING
        assert restore_root_logger.level == logging.DEBUG

    def test_file_handler_writes_records(self, restore_root_logger, tmp_path: Path):
        """Test file handler writes records."""
        log_file = tmp_path / "logs" / "queuecast.log"
        configure_logging("INFO", console_level="CRITICAL", log_file=log_file)

        logging.getLogger("queuecast.test").info("hello from the test")
        for handler in restore_root_logger.handlers:
            handler.flush()

        contents = log_file.read_text(encoding="utf-8")
        assert "INFO" in contents
        assert "queuecast.test" in contents
        assert "hello from the test" in contents
