"""folio: bilingual portfolio content store."""

__version__ = "0.1.0"
