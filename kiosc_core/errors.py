from __future__ import annotations


class KioscError(Exception):
    """Base class for errors raised by the finance core."""


class WorkbookError(KioscError):
    """A workbook could not be read or written."""


class RecordNotFound(KioscError):
    """A program, budget or invoice lookup found nothing."""
