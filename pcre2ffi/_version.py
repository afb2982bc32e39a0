from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version


def _get_version() -> str:
    """Get pcre2ffi version from package metadata."""
    try:
        return get_version("pcre2ffi")
    except (ImportError, PackageNotFoundError, AttributeError):
        return "0.0.0"


__version__ = _get_version()
