"""
JsonlEncoder
============

A transform that encodes every record into one json line.

Example
^^^^^^^
..  code-block:: yaml
    :linenos:

    transforms:
      - my_jsonl_encoder:
          type: jsonl_encoder
"""

from typing import Any

from flowprep.abc.transform import Transform


class JsonlEncoder(Transform):
    """Encodes records into json lines"""

    def _transform(self, chunk: Any) -> list:
        return [self._encoder.encode(chunk) + b"\n"]
