"""Grant store contract and its in-memory and SQLAlchemy implementations."""
