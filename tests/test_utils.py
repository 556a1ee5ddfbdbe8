"""Tests for logging setup and path validation."""

import logging

import pytest

from tirpsim.utils import setup_logger, validate_input_exists, validate_output_path


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    logging.getLogger("tirpsim_test").handlers.clear()


class TestLogging:

    def test_setup_logger_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        logger = setup_logger("tirpsim_test", log_file=str(log_file), level=logging.DEBUG)
        logger.debug("hello")
        for handler in logger.handlers:
            handler.flush()

        assert len(logger.handlers) == 2
        assert "DEBUG - hello" in log_file.read_text()

    def test_setup_logger_replaces_handlers(self):
        setup_logger("tirpsim_test")
        logger = setup_logger("tirpsim_test")
        assert len(logger.handlers) == 1


class TestValidation:

    def test_input_exists(self, tmp_path):
        path = tmp_path / "in.fna"
        path.write_text(">a\nA\n")
        assert validate_input_exists(str(path)) == path

    def test_input_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Genome not found"):
            validate_input_exists(tmp_path / "nope.fna", "Genome")

    def test_output_parent_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            validate_output_path(tmp_path / "missing" / "out.tirp")

    def test_output_is_directory(self, tmp_path):
        with pytest.raises(IsADirectoryError):
            validate_output_path(tmp_path)

    def test_output_ok(self, tmp_path):
        assert validate_output_path(tmp_path / "out.tirp") == tmp_path / "out.tirp"
