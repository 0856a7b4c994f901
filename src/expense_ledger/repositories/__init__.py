"""Persistence boundary: async SQLAlchemy repositories."""
