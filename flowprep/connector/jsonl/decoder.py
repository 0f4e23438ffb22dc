"""
JsonlDecoder
============

A transform that decodes json lines into records. A chunk may hold one or several complete
lines, blank lines are skipped. A line that is not valid json errors the stream.

Example
^^^^^^^
..  code-block:: yaml
    :linenos:

    transforms:
      - my_line_splitter:
          type: line_splitter
      - my_jsonl_decoder:
          type: jsonl_decoder
"""

from typing import Any

from flowprep.abc.transform import Transform


class JsonlDecoder(Transform):
    """Decodes json lines into records"""

    def _transform(self, chunk: Any) -> list:
        if isinstance(chunk, str):
            chunk = chunk.encode("utf8")
        return [self._decoder.decode(line) for line in chunk.splitlines() if line.strip()]
