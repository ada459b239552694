"""chunkwise - boundary-aware chunked summarization of code and documentation."""

from chunkwise.config import _PACKAGE_VERSION

__version__ = _PACKAGE_VERSION

__all__ = ["__version__"]
