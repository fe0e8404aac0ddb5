"""
Shared, cross-cutting code for the API.

`core/` holds small building blocks used across features (DB pool,
migrations, settings, logging, the Metadata Provider client). Keep
feature-specific SQL and business logic in the feature package (`songs/`).
"""
