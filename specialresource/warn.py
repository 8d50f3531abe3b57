"""Log problems that are reported but do not stop processing."""

import logging

logger = logging.getLogger(__name__)


def on_error_or_not_found(found, err):
    """Log a warning when a lookup failed or found nothing."""
    if not found or err is not None:
        detail = str(err) if err is not None else "not found"
        logger.warning("OnErrorOrNotFound: %s", detail)


def on_error(err):
    """Log a warning for an error, if there is one."""
    if err is not None:
        logger.warning("OnError: %s", err)