"""validators to use with `attrs` fields"""

import os

from flowprep.factory_error import InvalidConfigurationError


def file_validator(_, attribute, value):
    """validate if an attribute is a valid file"""
    if attribute.default is None and value is None:
        return
    if not isinstance(value, str):
        raise InvalidConfigurationError(f"{attribute.name} is not a str")
    if not os.path.exists(value):
        raise InvalidConfigurationError(f"{attribute.name} file '{value}' does not exist")
    if not os.path.isfile(value):
        raise InvalidConfigurationError(f"{attribute.name} '{value}' is not a file")


def parent_directory_validator(_, attribute, value):
    """validate if the directory an attribute points into exists"""
    if not isinstance(value, str):
        raise InvalidConfigurationError(f"{attribute.name} is not a str")
    directory = os.path.dirname(os.path.abspath(value))
    if not os.path.isdir(directory):
        raise InvalidConfigurationError(
            f"{attribute.name} directory '{directory}' does not exist"
        )
