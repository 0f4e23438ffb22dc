"""module for the component registry
it is used to check if a stream type is known to the system.
you have to register new streams here by importing them and adding them to `Registry.mapping`
"""

from typing import Dict, Type

from flowprep.abc.stream import Stream
from flowprep.connector.console.output import ConsoleOutput
from flowprep.connector.dummy.input import DummyInput
from flowprep.connector.dummy.output import DummyOutput
from flowprep.connector.echo.duplex import EchoDuplex
from flowprep.connector.file.input import FileInput
from flowprep.connector.file.output import FileOutput
from flowprep.connector.json.input import JsonInput
from flowprep.connector.jsonl.decoder import JsonlDecoder
from flowprep.connector.jsonl.encoder import JsonlEncoder
from flowprep.connector.jsonl.output import JsonlOutput
from flowprep.connector.line_splitter.transform import LineSplitter


class Registry:
    """Component Registry"""

    mapping: Dict[str, Type[Stream]] = {
        # sources
        "dummy_input": DummyInput,
        "json_input": JsonInput,
        "file_input": FileInput,
        # transforms
        "line_splitter": LineSplitter,
        "jsonl_decoder": JsonlDecoder,
        "jsonl_encoder": JsonlEncoder,
        # duplex
        "echo_duplex": EchoDuplex,
        # sinks
        "dummy_output": DummyOutput,
        "file_output": FileOutput,
        "jsonl_output": JsonlOutput,
        "console_output": ConsoleOutput,
    }

    @classmethod
    def get_class(cls, component_type: str) -> Type[Stream]:
        """return the stream class for a given type

        Parameters
        ----------
        component_type : str
            the stream type

        Returns
        -------
        Type[Stream]
            the registered stream class
        """
        component_class = cls.mapping.get(component_type)
        if component_class is None:
            raise ValueError(f"Unknown component type: {component_type}")
        return component_class
