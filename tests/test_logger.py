import logging

from mindful_reflections.utils.logger import setup_logger


def test_level_applies_to_every_handler(tmp_path) -> None:
    log_file = tmp_path / "logs" / "app.log"
    logger = setup_logger("mindful_reflections.test_debug", level="debug", log_file=str(log_file))

    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 2
    assert all(h.level == logging.DEBUG for h in logger.handlers)
    assert log_file.parent.is_dir()


def test_messages_reach_the_log_file(tmp_path) -> None:
    log_file = tmp_path / "app.log"
    logger = setup_logger("mindful_reflections.test_file", level="WARNING", log_file=str(log_file))

    logger.info("not written")
    logger.warning("Check-in not found for deletion: abc")
    for handler in logger.handlers:
        handler.flush()

    text = log_file.read_text(encoding="utf-8")
    assert "WARNING - Check-in not found for deletion: abc" in text
    assert "not written" not in text


def test_setup_is_idempotent(tmp_path) -> None:
    log_file = str(tmp_path / "app.log")
    setup_logger("mindful_reflections.test_again", log_file=log_file)
    logger = setup_logger("mindful_reflections.test_again", log_file=log_file)
    assert len(logger.handlers) == 2
