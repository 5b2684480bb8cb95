"""
Unit tests for the dotted-path import helpers.
"""

import pytest

from corewright.kernel.container import Container
from corewright.support.imports import class_name, import_class


class TestImportClass:
    """Tests for import_class."""

    @pytest.mark.parametrize(
        "path",
        ["corewright.kernel.container.Container", "corewright.kernel.container:Container"],
    )
    def test_dotted_and_colon_paths(self, path):
        assert import_class(path) is Container

    def test_class_is_returned_as_is(self):
        assert import_class(Container) is Container

    @pytest.mark.parametrize(
        "path",
        ["Container", "corewright.kernel.container:logger"],
    )
    def test_invalid_paths(self, path):
        with pytest.raises(ImportError):
            import_class(path)

    def test_missing_module(self):
        with pytest.raises(ModuleNotFoundError):
            import_class("not_a_module.Thing")


class TestClassName:
    """Tests for class_name."""

    def test_class(self):
        assert class_name(Container) == "corewright.kernel.container.Container"

    def test_path_is_normalized_without_import(self):
        assert class_name("not_a_module:Thing") == "not_a_module.Thing"
