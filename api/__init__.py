"""HTTP surface for the NL query gateway."""

from nl_gateway import __version__

__all__ = ["__version__"]
