"""
DAOs Package — Data Access Layer (SQLAlchemy 2.0)
=================================================

The `daos` package provides the Data Access Layer for the application.
It encapsulates all interactions with SQLAlchemy ORM entities, providing
clean CRUD APIs for the service layer while hiding direct query details.

Conventions
-----------
- SQLAlchemy 2.0 typed mappings (Mapped[...] / mapped_column)
- Session lifecycle (open/commit/rollback) is handled by callers
- DAOs surface exceptions so upper layers decide error policy

Contents
--------
- BaseDao
    Generic create / merge-save / delete, lookups by id(s), listing,
    counting and push/pull on reference arrays.
- UserDao
    * Creates users with password hashing
    * Fetches users by email, telephone or reset-token digest
- NotificationDao
    * Feed per creator and unread count
    * Marks rows read in bulk
    * Deletes rows older than a cutoff (retention sweep)
- ServiceDao, LeadDao, ClientDao
    * Name / duplicate / email lookups used by the uniqueness checks
    * Clients per owner
- BlogDao, AnnouncementDao, FAQDao
    Generic operations only.
"""
