"""Honor tier issuance and weighted prize lottery backed by SQLAlchemy."""

__version__ = "0.1.0"
