"""This module contains a factory to create streams."""

from flowprep.abc.component import Component
from flowprep.configuration import Configuration
from flowprep.factory_error import (
    InvalidConfigSpecificationError,
    InvalidConfigurationError,
)
from flowprep.runtime.scheduler import Scheduler


class Factory:
    """Create components for flowprep."""

    @classmethod
    def create(cls, configuration: dict, scheduler: Scheduler | None = None) -> Component | None:
        """Create component.

        Parameters
        ----------
        configuration : dict
            Exactly one component definition of the form :code:`{name: {"type": ..., ...}}`.
        scheduler : Scheduler, optional
            The scheduler the created stream is bound to. A private scheduler is created if
            omitted.
        """
        if configuration == {} or configuration is None:
            raise InvalidConfigurationError("The stream definition is empty.")
        if not isinstance(configuration, dict):
            raise InvalidConfigSpecificationError()
        if len(configuration) > 1:
            raise InvalidConfigurationError(
                f"Found multiple component definitions ({', '.join(configuration.keys())}),"
                + " but there must be exactly one."
            )
        for component_name, component_configuration_dict in configuration.items():
            if component_configuration_dict is None:
                raise InvalidConfigurationError(
                    f'The definition of stream "{component_name}" is empty.'
                )
            if not isinstance(component_configuration_dict, dict):
                raise InvalidConfigSpecificationError(component_name)
            component = Configuration.get_class(component_name, component_configuration_dict)
            component_configuration = Configuration.create(
                component_name, component_configuration_dict
            )
            return component(component_name, component_configuration, scheduler)
        return None
