"""Tests for package structure and imports."""

import pytest


@pytest.mark.unit
def test_package_imports():
    """Package imports without errors."""
    import athena_sql

    assert athena_sql is not None


@pytest.mark.unit
def test_version_accessible():
    """Version is accessible from package."""
    from athena_sql import __version__

    assert __version__ is not None
    assert isinstance(__version__, str)
    assert len(__version__) > 0


@pytest.mark.unit
def test_version_format():
    """Version follows semver format."""
    from athena_sql import __version__

    parts = __version__.split(".")
    assert len(parts) == 3
    for part in parts:
        assert part.isdigit()


@pytest.mark.unit
def test_public_api():
    from athena_sql import AthenaClient, QueryHandle, connect

    assert callable(connect)
    assert AthenaClient is not None
    assert QueryHandle is not None
