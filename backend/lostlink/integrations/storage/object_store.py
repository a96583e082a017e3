from __future__ import annotations

import base64
import os
import secrets
from dataclasses import dataclass
from io import BytesIO
from typing import Mapping

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from PIL import Image, UnidentifiedImageError

from ...errors import UpstreamServiceError, ValidationError


@dataclass(frozen=True)
class StoredImage:
    url: str
    thumb_url: str | None
    # What the vision model is given: the public URL, or an inline data URL for local uploads
    vision_url: str


def make_thumbnail(file_bytes: bytes, ext: str) -> bytes | None:
    try:
        img = Image.open(BytesIO(file_bytes))
        img.thumbnail((480, 480))
        thumb_io = BytesIO()
        thumb_format = "PNG" if ext in (".png", ".webp") else "JPEG"
        if thumb_format == "JPEG" and img.mode not in ("RGB", "L"):
            img = img.convert("RGB")
        img.save(thumb_io, format=thumb_format, optimize=True)
        return thumb_io.getvalue()
    except (UnidentifiedImageError, OSError, ValueError):
        return None


class ObjectStore:
    """S3 when a bucket is configured, else the local upload folder served at /uploads."""

    def __init__(self, config: Mapping):
        self.bucket = config.get("S3_BUCKET_NAME")
        self.region = config.get("S3_REGION")
        self.public_base = config.get("S3_PUBLIC_URL_BASE")
        self.upload_folder = config.get("UPLOAD_FOLDER")
        self._config = config
        self._s3 = None

    def _client(self):
        if self._s3 is None:
            self._s3 = boto3.client(
                "s3",
                region_name=self._config.get("S3_REGION") or None,
                aws_access_key_id=self._config.get("S3_ACCESS_KEY_ID") or None,
                aws_secret_access_key=self._config.get("S3_SECRET_ACCESS_KEY") or None,
                endpoint_url=self._config.get("S3_ENDPOINT_URL") or None,
                config=BotoConfig(s3={"addressing_style": "virtual"}),
            )
        return self._s3

    def _public_url(self, key: str) -> str:
        if self.public_base:
            return f"{self.public_base.rstrip('/')}/{key}"
        region = self.region or "us-east-1"
        return f"https://{self.bucket}.s3.{region}.amazonaws.com/{key}"

    def put_image(self, file_bytes: bytes, filename: str, mimetype: str | None, folder: str) -> StoredImage:
        if not file_bytes:
            raise ValidationError("Uploaded image is empty")
        ext = os.path.splitext(filename or "")[1].lower()[:10]
        fname = secrets.token_hex(16) + ext
        content_type = mimetype or "application/octet-stream"
        thumb_bytes = make_thumbnail(file_bytes, ext)

        if self.bucket:
            key = f"{folder}/{fname}"
            tkey = f"{folder}/thumbs/{fname}"
            try:
                s3 = self._client()
                s3.put_object(Bucket=self.bucket, Key=key, Body=file_bytes, ContentType=content_type, ACL="public-read")
                if thumb_bytes is not None:
                    s3.put_object(Bucket=self.bucket, Key=tkey, Body=thumb_bytes, ContentType="image/jpeg", ACL="public-read")
            except (BotoCoreError, ClientError) as e:
                raise UpstreamServiceError("Failed to upload image", service="object-store") from e
            url = self._public_url(key)
            return StoredImage(url=url, thumb_url=self._public_url(tkey) if thumb_bytes is not None else None, vision_url=url)

        try:
            os.makedirs(os.path.join(self.upload_folder, folder, "thumbs"), exist_ok=True)
            with open(os.path.join(self.upload_folder, folder, fname), "wb") as f:
                f.write(file_bytes)
            if thumb_bytes is not None:
                with open(os.path.join(self.upload_folder, folder, "thumbs", fname), "wb") as f:
                    f.write(thumb_bytes)
        except OSError as e:
            raise UpstreamServiceError("Failed to upload image", service="object-store") from e
        # Relative URLs; the app (or Nginx) serves /uploads
        inline = f"data:{content_type};base64,{base64.b64encode(file_bytes).decode('ascii')}"
        return StoredImage(
            url=f"/uploads/{folder}/{fname}",
            thumb_url=f"/uploads/{folder}/thumbs/{fname}" if thumb_bytes is not None else None,
            vision_url=inline,
        )
