import logging
import sys


def setup_logging(level: str = "INFO") -> None:
    """
    One stdout handler on the root logger.
    Safe to call more than once (handlers are replaced, not stacked).
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    root.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.INFO)
    logging.getLogger("pymongo").setLevel(
        logging.DEBUG if level.upper() == "DEBUG" else logging.WARNING
    )
