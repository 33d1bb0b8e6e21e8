import logging

QUIET_LOGGERS = ("httpx", "httpcore", "asyncio")


def configure_logging(debug: bool = False) -> None:
    """Console logging for CLI runs: bare messages, DEBUG only when asked for."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(message)s",
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
