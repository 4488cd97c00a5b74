"""Booking reference logging context for tracing a quote across modules.

Every record that passes through the handler built by ``build_log_handler``
carries the booking being priced, so one estimate can be followed from
catalog lookup through surge evaluation to the final total:

    2025-06-02 10:00:01 [homecare.pricing.calculator] [QUOTE-4F2A91] INFO: Priced 2 task(s) ...

Usage:
    from homecare.logging_context import get_booking_logger, new_booking_ref

    new_booking_ref("QUOTE")
    logger = get_booking_logger(__name__)
    logger.info("Pricing booking")  # record.booking_ref == "QUOTE-4F2A91"
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Optional, TextIO

NO_BOOKING_REF = "NO_BOOKING_REF"
LOG_FORMAT = "%(asctime)s [%(name)s] [%(booking_ref)s] %(levelname)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_booking_ref: ContextVar[str] = ContextVar("booking_ref", default=NO_BOOKING_REF)


def set_booking_ref(booking_ref: str) -> None:
    """Set the booking reference for the current context."""
    _booking_ref.set(booking_ref)


def get_booking_ref() -> str:
    """Retrieve the current booking reference."""
    return _booking_ref.get()


def new_booking_ref(prefix: str = "BK") -> str:
    """Mint a ``PREFIX-XXXXXX`` reference and make it current."""
    booking_ref = f"{prefix.upper()}-{uuid.uuid4().hex[:6].upper()}"
    set_booking_ref(booking_ref)
    return booking_ref


class BookingRefFilter(logging.Filter):
    """Injects booking_ref into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.booking_ref = _booking_ref.get()  # type: ignore[attr-defined]
        return True


def build_log_handler(stream: Optional[TextIO] = None) -> logging.Handler:
    """Stream handler whose output includes the booking reference.

    The filter sits on the handler, so records from any logger, not only
    those obtained via get_booking_logger, can be formatted.
    """
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    handler.addFilter(BookingRefFilter())
    return handler


def get_booking_logger(name: str) -> logging.Logger:
    """Return a logger with the BookingRefFilter attached.

    The filter adds ``booking_ref`` to each record so handlers other than
    the one from build_log_handler (e.g. test capture) see it too.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, BookingRefFilter) for f in logger.filters):
        logger.addFilter(BookingRefFilter())
    return logger
