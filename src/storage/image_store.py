# src/storage/image_store.py

import base64
import random
import re
import shutil
import string
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

import boto3

from src.storage.config import StorageConfig
from src.utils.tracing import setup_logger_with_tracing, traced

LOGGER = setup_logger_with_tracing(__name__, service_name="chart-storage")

DATA_URL_PREFIX = re.compile(r"^data:image/\w+;base64,")
FILENAME_ALPHABET = string.digits + string.ascii_lowercase + string.ascii_uppercase


class ImageUploadError(RuntimeError):
    """Raised when a rendered image could not be stored."""


def generate_file_prefix(now: Optional[datetime] = None) -> str:
    """Timestamp (unpadded, to the second) followed by 10 random alphanumerics."""
    now = now or datetime.now()
    suffix = "".join(random.choices(FILENAME_ALPHABET, k=10))
    return f"{now.year}{now.month}{now.day}{now.hour}{now.minute}{now.second}{suffix}"


def decode_image(image: Union[str, bytes]) -> bytes:
    """Accepts raw PNG bytes, a bare base64 string or a `data:image/...;base64,` URL."""
    if isinstance(image, bytes):
        return image
    return base64.b64decode(DATA_URL_PREFIX.sub("", image), validate=True)


class ImageStore:
    """
    Stores a rendered image and returns a public URL for it.

    The image is first written to a transient file under `tmp_dir`, then
    handed to `_publish`. The transient file is removed whether or not
    publishing succeeds.
    """

    def __init__(self, config: StorageConfig):
        self.config = config
        self.config.tmp_dir.mkdir(parents=True, exist_ok=True)

    @traced("save_image")
    def save_image(self, image: Union[str, bytes]) -> str:
        filename = f"{generate_file_prefix()}.png"
        tmp_path = self.config.tmp_dir / filename

        try:
            tmp_path.write_bytes(decode_image(image))
            url = self._publish(tmp_path, filename)
        except Exception as e:
            LOGGER.error(f"Upload failed for {filename}: {e}", exc_info=True)
            raise ImageUploadError(f"Failed to save image {filename}") from e
        finally:
            tmp_path.unlink(missing_ok=True)

        LOGGER.info(f"Chart saved: {url}")
        return url

    def _publish(self, path: Path, filename: str) -> str:
        raise NotImplementedError


class LocalImageStore(ImageStore):
    """Keeps images in `chart_dir`, served by src.servers.image_server."""

    def __init__(self, config: StorageConfig):
        super().__init__(config)
        self.config.chart_dir.mkdir(parents=True, exist_ok=True)
        LOGGER.info(f"Charts will be saved to: {self.config.chart_dir.absolute()}")

    def _publish(self, path: Path, filename: str) -> str:
        shutil.move(str(path), str(self.config.chart_dir / filename))
        return f"{self.config.image_server_url.rstrip('/')}/chart/{filename}"


class S3ImageStore(ImageStore):
    """Uploads images to an S3-compatible bucket fronted by a CDN."""

    def __init__(self, config: StorageConfig, client=None):
        if not config.bucket or not config.cdn_endpoint:
            raise ValueError("S3 storage needs S3_BUCKET and CDN_ENDPOINT to be set")
        super().__init__(config)
        self.client = client or boto3.client(
            "s3",
            endpoint_url=config.endpoint_url,
            region_name=config.region,
            aws_access_key_id=config.access_key_id.get_secret_value() if config.access_key_id else None,
            aws_secret_access_key=config.secret_access_key.get_secret_value() if config.secret_access_key else None,
        )

    def object_key(self, filename: str) -> str:
        prefix = self.config.key_prefix.strip("/")
        return f"{prefix}/{filename}" if prefix else filename

    def _publish(self, path: Path, filename: str) -> str:
        key = self.object_key(filename)
        self.client.upload_file(
            str(path), self.config.bucket, key,
            ExtraArgs={"ContentType": "image/png"}
        )
        return f"{self.config.cdn_endpoint.rstrip('/')}/{key}"


def create_image_store(config: StorageConfig) -> ImageStore:
    if config.backend == "s3":
        return S3ImageStore(config)
    return LocalImageStore(config)
