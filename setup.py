# pylint: disable=missing-module-docstring
from pathlib import Path

from setuptools import setup, find_packages

with open("requirements.in", encoding="utf-8") as f:
    requirements = f.read().splitlines()

with open("requirements_dev.in", encoding="utf-8") as f:
    dev_requirements = f.read().splitlines()

this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text()

setup(
    name="flowprep",
    version="0.1.0",
    description="Flowprep runs deferred tasks, task combinators and backpressure-aware streams "
    "on a single-threaded cooperative run-loop.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Flowprep Team",
    classifiers=[
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    packages=find_packages(include=["flowprep", "flowprep.*"]),
    install_requires=["setuptools"] + requirements,
    extras_require={"dev": dev_requirements},
    python_requires=">=3.11",
)
