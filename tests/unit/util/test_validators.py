# pylint: disable=missing-docstring
import pytest
from attrs import define, field

from flowprep.factory_error import InvalidConfigurationError
from flowprep.util.validators import file_validator, parent_directory_validator


@define(kw_only=True)
class Paths:
    source: str = field(validator=file_validator, default="")
    target: str = field(validator=parent_directory_validator, default="out.log")


class TestFileValidator:
    def test_accepts_existing_file(self, tmp_path):
        path = tmp_path / "in.log"
        path.touch()
        assert Paths(source=str(path)).source == str(path)

    def test_rejects_missing_file(self, tmp_path):
        with pytest.raises(InvalidConfigurationError, match="does not exist"):
            Paths(source=str(tmp_path / "missing.log"))

    def test_rejects_directory(self, tmp_path):
        with pytest.raises(InvalidConfigurationError, match="is not a file"):
            Paths(source=str(tmp_path))

    def test_rejects_non_string(self):
        with pytest.raises(InvalidConfigurationError, match="source is not a str"):
            Paths(source=42)


class TestParentDirectoryValidator:
    def test_accepts_new_file_in_existing_directory(self, tmp_path):
        path = tmp_path / "in.log"
        path.touch()
        target = str(tmp_path / "new.log")
        assert Paths(source=str(path), target=target).target == target

    def test_rejects_missing_directory(self, tmp_path):
        path = tmp_path / "in.log"
        path.touch()
        with pytest.raises(InvalidConfigurationError, match="directory .* does not exist"):
            Paths(source=str(path), target=str(tmp_path / "missing" / "new.log"))
