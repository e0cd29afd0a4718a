"""
Entities Package — SQLAlchemy 2.0 ORM Models (UUID + UTC)
=========================================================

The `entities` package defines the ORM models of the application, mapping
database tables to Python classes using SQLAlchemy 2.0-typed mappings.
Importing the package registers every table on the shared `metadata`.

Tech Stack & Conventions
------------------------
- Generic `Uuid` primary keys (native UUID on PostgreSQL, CHAR(32) on SQLite)
- Timezone-aware timestamps (UTC)
- `version` column with `version_id_col`: a stale merge raises `StaleDataError`
- Reference arrays (`Service.lead_ids`, `Service.client_ids`, `Client.files`)
  as mutable JSON lists of strings

Contents
--------
- User
    Registered account: hashed password, role, verification flag, pending
    activation code and password-reset digest, avatar URL.
- Notification
    Append-only activity feed row with a typed reference to the mutated
    document (`RelatedModel` + id).
- Service
    Offered service; array side of the Service <-> Lead / Client links.
- Lead
    Prospect, optionally pointing at a service.
- Client
    Converted or directly created customer owned by one user, with files.
- Blog
    Post with thumbnail and image-bearing content blocks.
- StoredFile
    Object a user uploaded through the storage routes; scopes those routes
    to the uploader.
- Announcement, FAQ
    Plain content documents.
"""

from crm_backend.database.entities.announcement import Announcement
from crm_backend.database.entities.blog import Blog
from crm_backend.database.entities.client import Client
from crm_backend.database.entities.faq import FAQ
from crm_backend.database.entities.lead import Lead
from crm_backend.database.entities.notification import Notification
from crm_backend.database.entities.service import Service
from crm_backend.database.entities.stored_file import StoredFile
from crm_backend.database.entities.user import User
