"""
EchoDuplex
==========

A duplex stream that answers every message written to it with a configured reply on its
readable side, like a chat server acknowledging each message of a client. Messages and
replies are independent of each other: the readable side is only ended once the writing peer
finished.

Example
^^^^^^^
..  code-block:: yaml
    :linenos:

    transforms:
      - my_echo:
          type: echo_duplex
          reply: "Got your message!"
"""

import logging
from typing import Any

from attrs import define, field, validators

from flowprep.abc.duplex import Duplex
from flowprep.runtime.task import Task
from flowprep.util.defaults import DEFAULT_ECHO_REPLY

logger = logging.getLogger("Stream")


class EchoDuplex(Duplex):
    """Replies to every received message"""

    @define(kw_only=True)
    class Config(Duplex.Config):
        """EchoDuplex specific configuration"""

        reply: str = field(validator=validators.instance_of(str), default=DEFAULT_ECHO_REPLY)
        """The reply sent for every message. Default: :code:`Got your message!`"""

        encoding: str = field(validator=validators.instance_of(str), default="utf8")
        """Encoding of the reply if the message was bytes. Default: :code:`utf8`"""

    messages: list
    _pending_reply: Task | None

    __slots__ = ["messages", "_pending_reply"]

    def __init__(self, name: str, configuration: "EchoDuplex.Config", scheduler=None):
        super().__init__(name, configuration, scheduler)
        self.messages = []
        self._pending_reply = None

    def _write(self, chunk: Any) -> Task | None:
        logger.info("%s: peer says %s", self.describe(), chunk)
        self.messages.append(chunk)
        reply = self._config.reply
        if isinstance(chunk, (bytes, bytearray)):
            reply = reply.encode(self._config.encoding)
        if self.push(reply):
            return None
        self._pending_reply = Task(self.scheduler, name=f"{self.name} reply")
        return self._pending_reply

    def _read(self) -> None:
        pending, self._pending_reply = self._pending_reply, None
        if pending is not None:
            pending.settle_value(None)

    def _final(self) -> None:
        self.end()
