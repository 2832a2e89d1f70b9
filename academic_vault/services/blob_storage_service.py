from google.cloud import storage
from google.cloud.exceptions import NotFound
from academic_vault.core.config import settings
from typing import Optional, Union, List
import asyncio
import json
import logging
import os
import tempfile

logger = logging.getLogger(__name__)

class BlobStorageService:
    """Owner-scoped object storage for uploaded vault files"""

    def __init__(self):
        self.storage_client = None
        self.bucket = None

        if settings.google_application_credentials and settings.gcs_bucket_name:
            try:
                credentials_str = settings.google_application_credentials.strip()

                # Check if it's JSON content or file path
                if credentials_str.startswith('{') and credentials_str.endswith('}'):
                    credentials_dict = json.loads(credentials_str)
                    with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as temp_file:
                        json.dump(credentials_dict, temp_file)
                        temp_credentials_path = temp_file.name
                    logger.info(f"🔧 Created temporary credentials file: {temp_credentials_path}")
                    os.environ['GOOGLE_APPLICATION_CREDENTIALS'] = temp_credentials_path
                else:
                    os.environ['GOOGLE_APPLICATION_CREDENTIALS'] = credentials_str

                self.storage_client = storage.Client()
                self.bucket = self.storage_client.bucket(settings.gcs_bucket_name)
                logger.info("✅ Google Cloud Storage client initialized successfully")
            except Exception as e:
                logger.warning(f"❌ Failed to initialize Google Cloud Storage client: {e}")
                self.storage_client = None
                self.bucket = None
        else:
            logger.warning("❌ Google Cloud Storage credentials or bucket name not provided")

    def _check_client(self):
        if not self.storage_client or not self.bucket:
            raise RuntimeError("Google Cloud Storage client not initialized. Check your GOOGLE_APPLICATION_CREDENTIALS and GCS_BUCKET_NAME.")

    async def upload_file(self, blob_path: str, content: Union[bytes, str], content_type: Optional[str] = None) -> bool:
        """
        Upload a file to Google Cloud Storage

        Returns:
            bool: True if upload successful, False otherwise
        """
        self._check_client()

        try:
            if isinstance(content, str):
                content = content.encode('utf-8')

            blob = self.bucket.blob(blob_path)
            # The storage client is blocking; keep concurrent uploads concurrent
            await asyncio.to_thread(blob.upload_from_string, content, content_type=content_type)

            logger.info(f"✅ Uploaded {blob_path}")
            return True

        except Exception as e:
            logger.error(f"❌ Failed to upload {blob_path}: {e}")
            return False

    async def download_file(self, blob_path: str) -> Optional[bytes]:
        """Download a blob, or None if it is missing or the download failed"""
        self._check_client()

        try:
            blob = self.bucket.blob(blob_path)
            return await asyncio.to_thread(blob.download_as_bytes)
        except NotFound:
            logger.warning(f"⚠️ File not found in storage: {blob_path}")
            return None
        except Exception as e:
            logger.error(f"❌ Failed to download {blob_path}: {e}")
            return None

    async def delete_files(self, blob_paths: List[str]) -> bool:
        """
        Delete several blobs.

        Returns:
            bool: True if every blob is gone afterwards, False otherwise
        """
        self._check_client()

        ok = True
        for blob_path in blob_paths:
            try:
                await asyncio.to_thread(self.bucket.blob(blob_path).delete)
                logger.info(f"✅ Deleted {blob_path}")
            except NotFound:
                logger.warning(f"⚠️ File not found in storage for deletion: {blob_path}")
            except Exception as e:
                logger.error(f"❌ Failed to delete {blob_path}: {e}")
                ok = False
        return ok
