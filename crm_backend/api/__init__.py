"""
API Package — Routers • Models • Errors • JWT Utils • S3
========================================================

Contents
--------
- routers
    One FastAPI router per domain (users, notifications, services, leads,
    clients, blogs, announcements, faqs, storage), mounted under
    `/api/<domain>` by `crm_backend.main`.

- models
    Pydantic request schemas. Every schema reports all of its missing or
    malformed fields at once through `collect_errors()`.

- errors
    Error taxonomy and the terminal translator producing
    `{"success": false, "error": ...}`.

- utils
    JWT helpers and request dependencies:
      • create_access_token(user_id): issues "Bearer <jwt>" tokens
      • verify_token(header): validates them and extracts the subject
      • get_current_user / get_owner / get_storage: FastAPI dependencies

- aws_bucket_funcs
    S3 adapter (module: aws_bucket_funcs/funcs.py):
      • get_client(): Signature V4 S3 client (uses settings)
      • S3Bucket: put, make public, delete, exists, list, stream

Operational Notes
-----------------
- Auth: `Authorization: Bearer <jwt>` header. Never log tokens.
- Uploads: multipart files are read into memory, filtered, then stored.
"""
