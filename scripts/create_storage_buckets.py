#!/usr/bin/env python3
"""Create the storage buckets that hold profile photos and voice intros.

Usage:
    python scripts/create_storage_buckets.py

Requirements:
    - SUPABASE_URL and SUPABASE_SECRET_KEY environment variables must be set

Note:
    - Buckets are public so the stored download URLs work without signing
    - Existing buckets are left untouched
"""

import logging
import sys
from pathlib import Path

# Add parent directory to path to import from src
sys.path.insert(0, str(Path(__file__).parent.parent))

from storage3.exceptions import StorageApiError
from supabase import Client

from src.core.config import get_settings
from src.core.supabase import get_supabase_client

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def ensure_bucket_exists(client: Client, bucket_name: str, file_size_limit: int, mime_types: list[str]) -> bool:
    """Ensure a public storage bucket exists, creating it if it doesn't.

    Args:
        client: Supabase client
        bucket_name: Name of the bucket to check/create
        file_size_limit: Largest object the bucket accepts, in bytes
        mime_types: Allowed MIME types

    Returns:
        True if the bucket was created, False if it already existed
    """
    try:
        client.storage.get_bucket(bucket_name)
        logger.info("Bucket '%s' already exists", bucket_name)
        return False
    except StorageApiError:
        pass

    logger.info("Creating storage bucket '%s'...", bucket_name)
    client.storage.create_bucket(
        bucket_name,
        options={
            "public": True,
            "file_size_limit": file_size_limit,
            "allowed_mime_types": mime_types,
        },
    )
    logger.info("Created bucket '%s'", bucket_name)
    return True


def main() -> None:
    """Main execution function."""
    settings = get_settings()

    try:
        client = get_supabase_client()
    except Exception as e:
        logger.error("Failed to initialize Supabase client: %s", e)
        sys.exit(1)

    buckets = [
        (settings.photo_bucket, settings.max_photo_bytes, ["image/*"]),
        (settings.voice_bucket, settings.max_voice_bytes, ["audio/*"]),
    ]

    for bucket_name, size_limit, mime_types in buckets:
        try:
            ensure_bucket_exists(client, bucket_name, size_limit, mime_types)
        except StorageApiError as e:
            logger.error("Could not create bucket '%s': %s", bucket_name, e.message)
            logger.error("Create it manually in the Supabase dashboard as a public bucket")
            sys.exit(1)


if __name__ == "__main__":
    main()
