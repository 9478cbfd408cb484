"""Django storage configuration for the blob store.

This module configures django-storages to work with:
- MinIO for local development
- Any S3-compatible service in production

Both use the same S3Storage-based backend.
"""

from typing import Any, Final

from server.settings.components import config

# Storage configuration dictionary
# Uses S3-compatible storage for uploaded blobs
STORAGES: Final[dict[str, dict[str, Any]]] = {
    'default': {
        'BACKEND': 'server.apps.files.infrastructure.storage.FileStorage',
        'OPTIONS': {
            'bucket_name': config(
                'AWS_STORAGE_BUCKET_NAME',
                default='drive-files',
            ),
            'access_key': config('AWS_ACCESS_KEY_ID', default='minioadmin'),
            'secret_key': config(
                'AWS_SECRET_ACCESS_KEY',
                default='minioadmin',
            ),
            'endpoint_url': config(
                'AWS_S3_ENDPOINT_URL',
                default=None,
            ),
            'region_name': config(
                'AWS_S3_REGION_NAME',
                default='us-east-1',
            ),
            'signature_version': 's3v4',
            'file_overwrite': False,  # Never clobber an existing blob
            'querystring_auth': True,  # Signed download links
            'default_acl': None,  # Inherit bucket ACL
        },
    },
}
