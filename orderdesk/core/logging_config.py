"""
Central logging setup for the order service.

Every module logs through ``logging.getLogger(__name__)``; this module only
decides where records go and how they look.
"""

import logging
import sys

from orderdesk.core.config import LOG_LEVEL

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: str = LOG_LEVEL):
    """
    Configures the root logger once for the whole process.

    - Console output on stdout (container friendly)
    - Shared format for application, uvicorn and ORM records
    - Reduced verbosity for chatty third-party libraries
    """
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("tortoise").setLevel(logging.WARNING)
