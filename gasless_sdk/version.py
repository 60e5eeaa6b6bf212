"""
Version information for the Gasless Transfer SDK.

Installed distributions report their metadata version; a source checkout
reads ``pyproject.toml`` instead.
"""
import importlib.metadata
import pathlib
from typing import Optional

import tomli

DISTRIBUTION = "gasless-transfer-sdk"
DEFAULT_VERSION = "0.1.0"
PYPROJECT = pathlib.Path(__file__).resolve().parent.parent / "pyproject.toml"


def _installed_version() -> Optional[str]:
    try:
        return importlib.metadata.version(DISTRIBUTION)
    except importlib.metadata.PackageNotFoundError:
        return None


def _source_version(pyproject: pathlib.Path = PYPROJECT) -> Optional[str]:
    try:
        with pyproject.open("rb") as f:
            return tomli.load(f)["project"]["version"]
    except (FileNotFoundError, KeyError, tomli.TOMLDecodeError):
        return None


__version__ = _installed_version() or _source_version() or DEFAULT_VERSION
