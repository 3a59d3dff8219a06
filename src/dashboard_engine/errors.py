"""Exceptions raised for caller mistakes; record contents never raise."""

from __future__ import annotations


class EngineError(Exception):
    """Base class for errors raised by the data-processing engine."""


class InvalidParameterError(EngineError, ValueError):
    """
    Raised when an operator receives an out-of-range control parameter.

    Record contents never trigger this; only caller-supplied bounds such as
    ``page``, ``limit`` or ``batch_size`` do.
    """

    def __init__(self, name: str, value: object, reason: str):
        self.name = name
        self.value = value
        self.reason = reason
        super().__init__(f"{name}={value!r}: {reason}")
