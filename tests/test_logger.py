import logging
import pytest
from logger import configure_file_logging, log


@pytest.fixture(autouse=True)
def drop_file_handlers():
    yield
    for handler in [h for h in log.handlers if isinstance(h, logging.FileHandler)]:
        log.removeHandler(handler)
        handler.close()


def _file_handlers():
    return [h for h in log.handlers if isinstance(h, logging.FileHandler)]


def test_writes_to_configured_file(tmp_path):
    path = tmp_path / "quickstart.log"
    assert configure_file_logging(str(path)) == str(path)
    log.debug("repository created")
    _file_handlers()[0].flush()
    assert "repository created" in path.read_text()


def test_unwritable_path_falls_back(tmp_path):
    fallback = tmp_path / "fallback.log"
    used = configure_file_logging(str(tmp_path / "missing" / "quickstart.log"),
                                  fallback=str(fallback))
    assert used == str(fallback)
    assert fallback.exists()


def test_reconfigure_replaces_file_handler(tmp_path):
    configure_file_logging(str(tmp_path / "a.log"))
    configure_file_logging(str(tmp_path / "b.log"))
    handlers = _file_handlers()
    assert len(handlers) == 1
    assert handlers[0].baseFilename == str(tmp_path / "b.log")


def test_console_handler_only_shows_warnings():
    console = [h for h in log.handlers if not isinstance(h, logging.FileHandler)]
    assert len(console) == 1
    assert console[0].level == logging.WARNING
