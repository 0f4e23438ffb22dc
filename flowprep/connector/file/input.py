"""
FileInput
=========

A file input that reads a file as a byte stream. Every read takes at most
:code:`chunk_size` bytes. The stream ends when the end of the file is reached and closes the
file once it ended or errored.

Example
^^^^^^^
..  code-block:: yaml
    :linenos:

    source:
      myfileinput:
        type: file_input
        path: path/to/a/file.log
        chunk_size: 65536
"""

from functools import cached_property
from typing import BinaryIO

from attrs import define, field, validators

from flowprep.abc.readable import Readable
from flowprep.util.defaults import DEFAULT_CHUNK_SIZE
from flowprep.util.validators import file_validator


class FileInput(Readable):
    """FileInput Connector"""

    @define(kw_only=True)
    class Config(Readable.Config):
        """FileInput connector specific configuration"""

        path: str = field(validator=file_validator)
        """A path to the file to read"""

        chunk_size: int = field(
            validator=[validators.instance_of(int), validators.gt(0)],
            default=DEFAULT_CHUNK_SIZE,
        )
        """Maximum number of bytes per chunk. Defaults to :code:`65536`."""

    @cached_property
    def _file(self) -> BinaryIO:
        return open(self._config.path, "rb")  # pylint: disable=consider-using-with

    def _read(self) -> None:
        data = self._file.read(self._config.chunk_size)
        if not data:
            self.end()
            return
        self.push(data)

    def _close(self) -> None:
        if "_file" in self.__dict__:
            self._file.close()
