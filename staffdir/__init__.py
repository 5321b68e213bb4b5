"""Staff directory: a FastAPI CRUD service over a PostgreSQL ``users`` table."""

__version__ = "0.1.0"
