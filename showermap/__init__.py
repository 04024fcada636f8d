"""ShowerMap location pipeline: merges scraped shower locations into per-region files."""

__version__ = "1.0.0"
