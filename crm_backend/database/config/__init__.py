"""
The `config` package turns the environment into a database engine.

Contents:
    - config: the `settings` singleton (pydantic-settings, `.env` fallback) with the database, auth, bucket, notification retention and SMTP keys
    - connection_engine: engine built from those settings (PostgreSQL in production, SQLite for local runs and tests), the shared MetaData and the declarative base every entity inherits from
"""
