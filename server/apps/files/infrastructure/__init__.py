"""Infrastructure layer for files app.

This package contains integrations with external systems:
- Blob store backend (S3/MinIO via django-storages)
- Metadata store adapter over the Django ORM
- Storage path and content type helpers

Keep infrastructure concerns separate from business logic.
"""
