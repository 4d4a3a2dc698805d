"""
Advisory warning routing.

Advisory conditions (declared sizes that disagree with the data, children
outside their tier's range, renamed duplicate tiers) never abort an
operation. Callers choose where they go:

    warn=False / None   dropped
    warn=True           logged at WARNING on the ``praatgrid`` logger
    warn=callable       called with the message (e.g. ``messages.append``)
"""

from __future__ import annotations

import logging
from typing import Callable, Union

logger = logging.getLogger("praatgrid")

Sink = Callable[[str], None]
Warn = Union[bool, Sink, None]


def resolve_sink(warn: Warn) -> Sink | None:
    """Turn a ``warn`` argument into a callable sink, or None when disabled."""
    if warn is None or warn is False:
        return None
    if warn is True:
        return logger.warning
    if callable(warn):
        return warn
    raise TypeError(f"warn must be a bool or a callable, not {type(warn).__name__}")


def emit(warn: Warn, message: str):
    """Send ``message`` to the sink selected by ``warn``."""
    sink = resolve_sink(warn)
    if sink is not None:
        sink(message)
