"""Tests for hierbench package."""

from hierbench import __version__


def test_version():
    """Test that version is defined."""
    assert __version__ is not None
    assert isinstance(__version__, str)
    assert len(__version__.split(".")) == 4  # MAJOR.MINOR.PATCH.BUILD


def test_imports():
    """Test that basic imports work."""
    import hierbench

    assert hasattr(hierbench, "__version__")
    assert hasattr(hierbench, "__author__")
    assert hasattr(hierbench, "__email__")
