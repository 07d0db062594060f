"""vanish: move files to a retained cache instead of deleting them."""

from vanish.version import __version__

__all__ = ["__version__"]
