"""
JsonInput
=========

A json input that emits the records of a json document, one record per read.

A document holding a single object emits that object, a document holding a list emits every
element of the list in order.

Example
^^^^^^^
..  code-block:: yaml
    :linenos:

    source:
      myjsoninput:
        type: json_input
        documents_path: path/to/a/document.json
        repeat_chunks: true
"""

import copy
from functools import cached_property
from pathlib import Path

from attr import field, validators
from attrs import define

from flowprep.abc.readable import Readable
from flowprep.connector.dummy.input import DummyInput
from flowprep.util.validators import file_validator


class JsonInput(DummyInput):
    """JsonInput Connector"""

    @define(kw_only=True)
    class Config(Readable.Config):
        """JsonInput connector specific configuration"""

        documents_path: str = field(validator=file_validator)
        """A path to a file in json format, which can also include multiple json
        objects wrapped in a list."""

        repeat_chunks: bool = field(validator=validators.instance_of(bool), default=False)
        """If set to :code:`true`, then the given records will be repeated after the last
        one is reached. Default: :code:`False`"""

    @cached_property
    def _chunks(self) -> list:
        return copy.copy(self._documents)

    @cached_property
    def _documents(self) -> list:
        documents = self._decoder.decode(Path(self._config.documents_path).read_bytes())
        if isinstance(documents, dict):
            documents = [documents]
        return documents
