"""gopx: search and data-access core of the GoPx package registry."""

__version__ = "0.1.0"
