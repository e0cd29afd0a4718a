"""
The `storage` package keeps binary assets in the bucket and the public URL
strings stored on documents in step with each other.

Contents
--------
- folders
    Static extension -> folder table and the upload allow-list.
- lifecycle
    `UploadedFile` (request-scoped file buffer + upload filter) and
    `ObjectStorage` with the store / replace / remove / discard / fetch
    operations and the per-folder usage report.
"""
