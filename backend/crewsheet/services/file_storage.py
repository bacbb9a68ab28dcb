import os
import uuid
import logging
from typing import Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from crewsheet.exceptions import DependencyFailure

logger = logging.getLogger(__name__)

# R2 configuration
R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID", "").strip()
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY", "").strip()
R2_ENDPOINT = os.getenv("R2_ENDPOINT", "").strip()
R2_BUCKET = os.getenv("R2_BUCKET", "crewsheet-timesheets").strip()
PDF_URL_EXPIRY_SECONDS = int(os.getenv("PDF_URL_EXPIRY_SECONDS", "3600"))

PDF_MIME_TYPE = "application/pdf"


def pdf_key(timesheet_id: uuid.UUID, kind: str) -> str:
    """
    Deterministic object key for a timesheet PDF.

    One key per (timesheet, kind): a retried approval overwrites the object
    left behind by a failed attempt instead of creating a second one.
    """
    return f"timesheets/{timesheet_id}/{kind}.pdf"


class PdfStore(Protocol):
    def put(self, key: str, content: bytes) -> str: ...

    def download_url(self, key: str, expires_in: int = PDF_URL_EXPIRY_SECONDS) -> str: ...


class R2PdfStore:
    """Timesheet PDFs in Cloudflare R2 (S3 API)."""

    def __init__(self, bucket: str = R2_BUCKET):
        self.bucket = bucket
        self._client = None

    def _get_s3(self):
        if self._client is None:
            if not all([R2_ACCESS_KEY_ID, R2_SECRET_ACCESS_KEY, R2_ENDPOINT]):
                raise DependencyFailure(
                    "R2 storage not configured. Set R2_ACCESS_KEY_ID, R2_SECRET_ACCESS_KEY, R2_ENDPOINT.",
                    dependency="storage",
                )
            self._client = boto3.client(
                "s3",
                endpoint_url=R2_ENDPOINT,
                aws_access_key_id=R2_ACCESS_KEY_ID,
                aws_secret_access_key=R2_SECRET_ACCESS_KEY,
                config=Config(signature_version="s3v4"),
                region_name="auto",
            )
        return self._client

    def put(self, key: str, content: bytes) -> str:
        if not content:
            raise DependencyFailure("Refusing to store an empty PDF", dependency="storage")
        try:
            self._get_s3().put_object(
                Bucket=self.bucket,
                Key=key,
                Body=content,
                ContentType=PDF_MIME_TYPE,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("R2 upload failed for %s: %s", key, e)
            raise DependencyFailure("Timesheet PDF upload failed", dependency="storage") from e
        logger.info("Uploaded to R2: %s (%d bytes)", key, len(content))
        return key

    def download_url(self, key: str, expires_in: int = PDF_URL_EXPIRY_SECONDS) -> str:
        """Generate a presigned URL for downloading a PDF from R2."""
        try:
            return self._get_s3().generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("Failed to generate presigned URL for %s: %s", key, e)
            raise DependencyFailure("Failed to generate download link", dependency="storage") from e


_default_store = None


def get_pdf_store() -> PdfStore:
    global _default_store
    if _default_store is None:
        _default_store = R2PdfStore()
    return _default_store
