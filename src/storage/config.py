# src/storage/config.py

import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, SecretStr

# .env is optional; real environment variables win over it
load_dotenv()


class StorageConfig(BaseModel):
    """
    Where rendered chart images go and how their public URLs are built.

    Built once at process start with `from_env()` and handed to
    `create_image_store()`.
    """

    backend: Literal["local", "s3"] = "local"
    tmp_dir: Path = Path("tmp")

    # local backend
    chart_dir: Path = Path("generated_charts")
    image_server_url: str = "http://localhost:8010"

    # s3 backend
    bucket: Optional[str] = None
    endpoint_url: Optional[str] = None
    region: Optional[str] = None
    access_key_id: Optional[SecretStr] = None
    secret_access_key: Optional[SecretStr] = None
    key_prefix: str = "upload/charts"
    cdn_endpoint: Optional[str] = Field(None, description="Public URL base that serves the bucket")

    @classmethod
    def from_env(cls) -> "StorageConfig":
        def secret(name: str) -> Optional[SecretStr]:
            value = os.getenv(name)
            return SecretStr(value) if value else None

        return cls(
            backend=os.getenv("CHART_STORAGE_BACKEND", "local").strip().lower(),
            tmp_dir=Path(os.getenv("CHART_TMP_DIR", "tmp")),
            chart_dir=Path(os.getenv("CHART_PATH", "generated_charts")),
            image_server_url=os.getenv("IMAGE_SERVER_URL", "http://localhost:8010"),
            bucket=os.getenv("S3_BUCKET"),
            endpoint_url=os.getenv("S3_ENDPOINT_URL"),
            region=os.getenv("S3_REGION"),
            access_key_id=secret("S3_ACCESS_KEY_ID"),
            secret_access_key=secret("S3_SECRET_ACCESS_KEY"),
            key_prefix=os.getenv("S3_KEY_PREFIX", "upload/charts"),
            cdn_endpoint=os.getenv("CDN_ENDPOINT"),
        )
