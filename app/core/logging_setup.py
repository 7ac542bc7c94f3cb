import logging
import sys


def setup_logging(level: str = "INFO") -> None:
    """
    Configure le logger racine: un seul handler console.

    A appeler une fois, avant le premier logger.info.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    # Evite les doublons si l'app est recréée (tests, reload)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(fmt)
    root.addHandler(handler)

    logging.captureWarnings(True)
