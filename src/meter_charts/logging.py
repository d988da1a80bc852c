from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Font discovery and PNG encoding chatter drowns out chart timings at DEBUG.
_NOISY_LOGGERS = ("matplotlib", "PIL")


def configure_logging(level: str = "INFO", *, quiet_libraries: bool = True) -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    if quiet_libraries:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
