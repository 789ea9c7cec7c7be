"""SQLAlchemy-backed infrastructure."""
