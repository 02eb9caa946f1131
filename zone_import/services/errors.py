from __future__ import annotations

"""Base class shared by the fatal import errors."""


class ProcessingError(Exception):
    """Base exception for fatal import errors."""
