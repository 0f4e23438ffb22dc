"""
FileOutput
==========

The FileOutput Connector writes a byte stream to a file. String chunks are encoded with the
configured encoding. The file is flushed when the stream finishes and closed once the stream
ended or errored.

Example
^^^^^^^
..  code-block:: yaml
    :linenos:

    sink:
      my_file_output:
        type: file_output
        path: path/to/output.log
        append: true
"""

from functools import cached_property
from typing import Any, BinaryIO

from attrs import define, field, validators

from flowprep.abc.writable import Writable
from flowprep.util.validators import parent_directory_validator


class FileOutput(Writable):
    """An output that writes chunks to a file."""

    @define(kw_only=True)
    class Config(Writable.Config):
        """FileOutput connector specific configuration"""

        path: str = field(validator=parent_directory_validator)
        """The path of the output file. Its directory has to exist."""

        append: bool = field(validator=validators.instance_of(bool), default=False)
        """Append to an existing file instead of truncating it. Default: :code:`False`"""

        encoding: str = field(validator=validators.instance_of(str), default="utf8")
        """Encoding used for string chunks. Default: :code:`utf8`"""

    @cached_property
    def _file(self) -> BinaryIO:
        mode = "ab" if self._config.append else "wb"
        return open(self._config.path, mode)  # pylint: disable=consider-using-with

    def _encode(self, chunk: Any) -> bytes:
        return self._as_bytes(chunk, self._config.encoding)

    def _write(self, chunk: Any) -> None:
        self._file.write(self._encode(chunk))

    def _final(self) -> None:
        self._file.flush()

    def _close(self) -> None:
        if "_file" in self.__dict__:
            self._file.close()
