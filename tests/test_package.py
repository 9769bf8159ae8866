# tests/test_package.py
"""
Tests for package layout conventions.
"""

import os

import pytest

import mobileauto

PACKAGE_DIR = os.path.dirname(os.path.abspath(mobileauto.__file__))
MODULES = sorted(
    name for name in os.listdir(PACKAGE_DIR)
    if name.endswith(".py") and name != "__init__.py"
)


@pytest.mark.parametrize("filename", MODULES)
def test_module_header(filename):
    """Every module opens with its path comment and an @file/@brief docstring."""
    with open(os.path.join(PACKAGE_DIR, filename), "r", encoding="utf-8") as f:
        lines = f.read().splitlines()

    assert lines[0] == f"# mobileauto/{filename}"
    assert lines[1] == '"""'
    assert lines[2] == f"@file {filename}"
    assert lines[3].startswith("@brief ")


def test_public_exports():
    for name in mobileauto.__all__:
        assert hasattr(mobileauto, name)
