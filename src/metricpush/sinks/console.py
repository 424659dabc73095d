"""
Text-dump sink: one line per data point on a text stream.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping, Sequence
from typing import TextIO

from ..points import DataPoint
from ..sanitize import DEFAULT_SANITIZER, Sanitizer

logger = logging.getLogger(__name__)


class ConsoleSink:
    """
    Writes ``<name> <timestamp> <value> k=v ...`` lines.

    The stream is resolved at write time when not given, so redirecting
    ``sys.stdout`` (e.g. under pytest's capsys) is honored.
    """

    def __init__(
        self,
        global_tags: Mapping[str, str] | None = None,
        sanitizer: Sanitizer = DEFAULT_SANITIZER,
        stream: TextIO | None = None,
    ) -> None:
        self.global_tags = dict(global_tags or {})
        self.sanitizer = sanitizer
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def put(self, data_points: Sequence[DataPoint]) -> None:
        stream = self.stream
        for point in data_points:
            try:
                line = point.to_text_line(self.global_tags, self.sanitizer)
            except Exception:
                logger.warning("Cannot render data point %r", point, exc_info=True)
                continue
            stream.write(line + "\n")
        stream.flush()

    def close(self) -> None:
        pass
