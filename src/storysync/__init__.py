"""Keep a domain story document in sync with its render surface and icon files."""

__version__ = "0.1.0"
