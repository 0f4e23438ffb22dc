"""
JsonlOutput
-----------

The JsonlOutput Connector can be used to write records to .jsonl files. Every record is
written as one json line.

Example
^^^^^^^
..  code-block:: yaml
    :linenos:

    sink:
      my_jsonl_output:
        type: jsonl_output
        path: path/to/output.jsonl
"""

from typing import Any

from flowprep.connector.file.output import FileOutput


class JsonlOutput(FileOutput):
    """An output that writes records as json lines to a file."""

    def _encode(self, chunk: Any) -> bytes:
        return self._encoder.encode(chunk) + b"\n"
