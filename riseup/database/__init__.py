"""SQLAlchemy models and database bootstrap."""
