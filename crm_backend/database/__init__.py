"""
The `database` package owns persistence and the service layer on top of it.

Contents:
    - config:
        Environment-backed settings and the SQLAlchemy engine.

    - entities:
        ORM models: users, notifications, services, leads, clients, blogs,
        announcements and FAQs.

    - daos:
        Data Access Objects with the queries each entity needs.

    - core:
        Service layer: the mutation protocol, relationship sync, the
        notification feed and one module per domain.

    - helpers:
        The `@transactional` session decorator.
"""
