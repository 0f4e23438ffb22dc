"""
LineSplitter
============

A transform that splits a byte stream into lines. Lines are emitted without their separator,
a line spanning several input chunks is emitted once it is complete. The trailing partial line
is emitted when the input finished. String chunks are encoded with the configured encoding.

Example
^^^^^^^
..  code-block:: yaml
    :linenos:

    transforms:
      - my_line_splitter:
          type: line_splitter
          separator: "\\n"
          skip_empty: true
"""

from typing import Any

from attrs import define, field, validators

from flowprep.abc.transform import Transform


class LineSplitter(Transform):
    """Splits chunks of bytes into lines"""

    @define(kw_only=True)
    class Config(Transform.Config):
        """LineSplitter specific configuration"""

        separator: str = field(
            validator=[validators.instance_of(str), validators.min_len(1)], default="\n"
        )
        """The line separator. Default: :code:`\\n`"""

        encoding: str = field(validator=validators.instance_of(str), default="utf8")
        """Encoding used for string chunks and the separator. Default: :code:`utf8`"""

        skip_empty: bool = field(validator=validators.instance_of(bool), default=False)
        """Do not emit empty lines. Default: :code:`False`"""

    _remainder: bytes

    __slots__ = ["_remainder"]

    def __init__(self, name: str, configuration: "LineSplitter.Config", scheduler=None):
        super().__init__(name, configuration, scheduler)
        self._remainder = b""

    @property
    def _separator(self) -> bytes:
        return self._config.separator.encode(self._config.encoding)

    def _transform(self, chunk: Any) -> list:
        chunk = self._as_bytes(chunk, self._config.encoding)
        lines = (self._remainder + chunk).split(self._separator)
        self._remainder = lines.pop()
        return self._emit(lines)

    def _flush(self) -> list:
        remainder, self._remainder = self._remainder, b""
        return self._emit([remainder]) if remainder else []

    def _emit(self, lines: list) -> list:
        if self._config.skip_empty:
            return [line for line in lines if line]
        return lines
