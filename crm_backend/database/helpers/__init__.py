"""
The `helpers` package holds the session plumbing shared by DAOs and the
service layer.

Contents
--------
- transactionManagement
    `db_session_context` (the active session of a call chain) and the
    `@transactional` decorator: join the active session or open, commit and
    close a new one, rolling back on any error.
"""
