"""
ConsoleOutput
=============

This section describes the ConsoleOutput, which pretty prints chunks to the
console and can be used for testing.

Example
^^^^^^^
..  code-block:: yaml
    :linenos:

    sink:
      my_console_output:
        type: console_output
        target: stdout
"""

import sys
from pprint import pprint
from typing import Any

from attrs import define, field, validators

from flowprep.abc.writable import Writable


class ConsoleOutput(Writable):
    """A console output that pretty prints chunks instead of storing them."""

    @define(kw_only=True)
    class Config(Writable.Config):
        """ConsoleOutput specific configuration"""

        target: str = field(
            validator=[validators.instance_of(str), validators.in_(("stdout", "stderr"))],
            default="stdout",
        )
        """The :code:`sys` stream to print to. Default: :code:`stdout`"""

    def _write(self, chunk: Any) -> None:
        pprint(chunk, stream=getattr(sys, self._config.target))
