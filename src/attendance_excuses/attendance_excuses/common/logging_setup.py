from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Configure root logging once; safe to call repeatedly.

    Modules log through ``logging.getLogger(__name__)``.
    """

    resolved = getattr(logging, str(level).upper(), logging.INFO)
    logging.basicConfig(level=resolved, format=LOG_FORMAT)

    root = logging.getLogger()
    root.setLevel(resolved)

    # mysql-connector and urllib3 are noisy below INFO
    logging.getLogger("mysql.connector").setLevel(max(resolved, logging.INFO))
    logging.getLogger("urllib3").setLevel(max(resolved, logging.INFO))
    return root
