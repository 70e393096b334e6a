import logging
import sys

LOGGER_NAME = "jinwechat"


def setup_logging(debug: bool = False) -> logging.Logger:
    """Attach a stderr handler to the package logger.

    Calling it again only adjusts the level; handlers are never duplicated.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)

    if not any(getattr(h, "_jinwechat", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        )
        handler._jinwechat = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    return logger
