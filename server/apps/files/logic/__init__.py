"""Business logic layer for files app.

This package contains all business logic for file and folder operations:
- Two-step upload and delete across blob and metadata stores
- Listing, search and signed download links
- Folder hierarchy rules (creation, rename, move, empty-only delete)
- Reconciliation of blobs and metadata rows after partial failures

Every function takes the owner id explicitly; nothing reads identity
from ambient request state.
"""
