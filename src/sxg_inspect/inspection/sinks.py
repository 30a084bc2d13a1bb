"""
Diagnostic sinks for verification narration

A sink is handed to the verifier for one evaluation. RecordingSink keeps
the narration so it can be shown to a human; DiscardSink drops it so that
it can never leak into machine-readable output.
"""

import logging
from typing import List, Tuple

from ..signedexchange.types import LogSink as DiagnosticSink

logger = logging.getLogger(__name__)


class RecordingSink:
    """Collects narration lines in order and mirrors them to the debug log"""

    def __init__(self):
        self._lines: List[str] = []

    def write(self, line: str) -> None:
        self._lines.append(line)
        logger.debug(line)

    @property
    def lines(self) -> Tuple[str, ...]:
        return tuple(self._lines)


class DiscardSink:
    """Drops all narration"""

    def write(self, line: str) -> None:
        pass

    @property
    def lines(self) -> Tuple[str, ...]:
        return ()


__all__ = ['DiagnosticSink', 'RecordingSink', 'DiscardSink']
