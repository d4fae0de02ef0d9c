"""Visit-history classification and rollups for appointment exports."""

__version__ = "1.0.0"
