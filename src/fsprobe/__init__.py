"""fsprobe: find hung and failing entries on partially-broken filesystems."""

from fsprobe.version import __version__

__all__ = ["__version__"]
