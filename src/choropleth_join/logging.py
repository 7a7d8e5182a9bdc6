from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Geometry and plotting stacks log per-file chatter at INFO/DEBUG.
CHATTY_LIBRARY_LOGGERS = ("matplotlib", "PIL", "pyogrio", "fiona", "shapely")


def configure_logging(level: str = "INFO", *, quiet_libraries: bool = True) -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    if quiet_libraries:
        for name in CHATTY_LIBRARY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
