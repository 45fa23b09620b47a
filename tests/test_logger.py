import logging

from carwash.core.logger import logger, setup_logging


def test_stdlib_logging_is_routed_to_loguru(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    setup_logging(level="DEBUG", error_file="")
    messages = []
    sink_id = logger.add(lambda message: messages.append(message.record), level="DEBUG")
    try:
        logging.getLogger("uvicorn.error").warning("port already in use")
        logging.getLogger("httpx").info("HTTP Request: GET /api/bookings")
    finally:
        logger.remove(sink_id)

    assert [(r["level"].name, r["message"]) for r in messages] == [("WARNING", "port already in use")]
    # no error file sink when disabled
    assert not (tmp_path / "logs").exists()


def test_error_file_sink(tmp_path):
    error_file = tmp_path / "errors.log"
    try:
        setup_logging(level="INFO", error_file=str(error_file))
        assert error_file.exists()
    finally:
        setup_logging(error_file="")
