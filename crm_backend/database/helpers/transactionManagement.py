"""
Database Transaction Management
===============================

Sessions travel through a context variable instead of being threaded
through every call. ``@transactional`` opens one when none is active.

Nesting
~~~~~~~
- A decorated call made while a session is active joins that session; its
  writes commit (or roll back) with the outermost call.
- Two decorated calls made one after the other at top level are two
  transactions. The mutation protocol is built on this: the primary write of
  a request is committed before any dependent write starts, and a failing
  dependent write cannot roll the primary back.

Rows returned from a finished transaction are detached but stay readable
(``expire_on_commit=False``); saving them again goes through
``session.merge`` and the row's ``version`` check.
"""

import contextvars
from functools import wraps

from sqlalchemy.orm import sessionmaker

from crm_backend.database.config.connection_engine import connection_engine

db_session_context = contextvars.ContextVar("db_session_context", default=None)
"""Active SQLAlchemy session of the current call chain, if any."""

SessionFactory = sessionmaker(bind=connection_engine, expire_on_commit=False)


def transactional(func):
    """
    Run ``func`` inside a managed SQLAlchemy transaction.

    ``func`` receives the session as its ``session`` keyword argument; callers
    pass every other argument by keyword.

    Example
    -------
    >>> @transactional
    ... def insert_lead(session, lead):
    ...     return LeadDao().create(session, lead)
    ...
    >>> insert_lead(lead=Lead(...))
    """
    @wraps(func)
    def wrap_func(*args, **kwargs):
        active = db_session_context.get()
        if active is not None:
            return func(*args, session=active, **kwargs)

        session = SessionFactory()
        token = db_session_context.set(session)
        try:
            result = func(*args, session=session, **kwargs)
            session.flush()
            session.commit()
            return result
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
            db_session_context.reset(token)

    return wrap_func
