"""Keep per-language translation catalogs in sync with a source catalog."""

__version__ = "0.1.0"
