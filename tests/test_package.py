import importlib
from pathlib import Path

import pytest

import convert_toolkit

PACKAGE_DIR = Path(convert_toolkit.__file__).parent


def _module_names():
    for path in sorted(PACKAGE_DIR.rglob("*.py")):
        if path.name == "__main__.py":
            continue
        parts = path.relative_to(PACKAGE_DIR.parent).with_suffix("").parts
        if parts[-1] == "__init__":
            parts = parts[:-1]
        yield ".".join(parts)


@pytest.mark.parametrize("name", list(_module_names()))
def test_module_docstring_is_exposed(name):
    module = importlib.import_module(name)
    assert module.__doc__ and module.__doc__.strip()
