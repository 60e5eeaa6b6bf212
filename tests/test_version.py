"""
Tests for the version module of the Gasless Transfer SDK.
"""
import importlib
import re
from importlib import metadata as importlib_metadata
from unittest.mock import mock_open, patch

import tomli

from gasless_sdk import __version__


def _not_installed(name):
    raise importlib_metadata.PackageNotFoundError(name)


def test_version_format():
    """Test that the version string follows semantic versioning"""
    assert re.match(r'^\d+\.\d+\.\d+$', __version__), "Version should follow semantic versioning"


@patch('importlib.metadata.version')
def test_version_from_metadata(mock_metadata_version):
    """When metadata lookup succeeds, version comes from metadata"""
    mock_metadata_version.return_value = "2.3.4"
    import gasless_sdk.version as vmod
    importlib.reload(vmod)
    assert vmod.__version__ == "2.3.4"


@patch('importlib.metadata.version', side_effect=_not_installed)
@patch('pathlib.Path.open', new_callable=mock_open, read_data=b'[project]\nversion = "1.2.3"\n')
def test_version_from_file(mock_open_file, mock_metadata_version):
    """When metadata lookup fails, pyproject.toml is read"""
    import gasless_sdk.version as vmod
    importlib.reload(vmod)
    assert vmod.__version__ == "1.2.3"


def test_version_file_not_found(monkeypatch):
    """If pyproject.toml is missing, fallback to default"""
    monkeypatch.setattr(importlib_metadata, 'version', _not_installed)

    def _missing(*args, **kwargs):
        raise FileNotFoundError()

    monkeypatch.setattr('pathlib.Path.open', _missing)
    import gasless_sdk.version as vmod
    importlib.reload(vmod)
    assert vmod.__version__ == "0.1.0"


def test_version_key_error(monkeypatch):
    """If TOML exists but missing version key, fallback to default"""
    monkeypatch.setattr(importlib_metadata, 'version', _not_installed)
    monkeypatch.setattr('pathlib.Path.open', mock_open(read_data=b'[project]\nname = "gasless-transfer-sdk"\n'))
    import gasless_sdk.version as vmod
    importlib.reload(vmod)
    assert vmod.__version__ == "0.1.0"


def test_version_toml_decode_error(monkeypatch):
    """If TOML parse fails, fallback to default"""
    monkeypatch.setattr(importlib_metadata, 'version', _not_installed)
    monkeypatch.setattr('pathlib.Path.open', mock_open(read_data=b'not = [valid'))
    monkeypatch.setattr(tomli, 'load', lambda f: (_ for _ in ()).throw(tomli.TOMLDecodeError("fail", "", 0)))
    import gasless_sdk.version as vmod
    importlib.reload(vmod)
    assert vmod.__version__ == "0.1.0"


def test_source_version_reads_given_pyproject(tmp_path):
    """The source lookup reads [project].version from the given file"""
    pyproject = tmp_path / "pyproject.toml"
    pyproject.write_text('[project]\nname = "gasless-transfer-sdk"\nversion = "9.8.7"\n')
    import gasless_sdk.version as vmod

    assert vmod._source_version(pyproject) == "9.8.7"
    assert vmod._source_version(tmp_path / "missing.toml") is None
