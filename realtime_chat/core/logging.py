import logging

_CHATTY_LOGGERS = ("httpx", "httpcore", "openai")


def configure_logging(log_level: str) -> None:
    """Configure process-wide logging for the chat service.

    Inference client libraries log every request at INFO; they are capped at WARNING
    unless the service itself runs at DEBUG.
    """

    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    client_level = level if level <= logging.DEBUG else logging.WARNING
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(client_level)
