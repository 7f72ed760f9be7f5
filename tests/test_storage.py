# tests/test_storage.py

import base64
import re
from datetime import datetime
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from src.storage import (
    ImageUploadError,
    LocalImageStore,
    S3ImageStore,
    StorageConfig,
    create_image_store,
    decode_image,
    generate_file_prefix
)

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image-body"
DATA_URL = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")


@pytest.fixture
def local_config(tmp_path):
    return StorageConfig(
        backend="local",
        tmp_dir=tmp_path / "tmp",
        chart_dir=tmp_path / "charts",
        image_server_url="http://charts.example.com:8010/"
    )


@pytest.fixture
def s3_config(tmp_path):
    return StorageConfig(
        backend="s3",
        tmp_dir=tmp_path / "tmp",
        bucket="chart-bucket",
        region="us-east-1",
        key_prefix="/upload/charts/",
        cdn_endpoint="https://cdn.example.com/"
    )


class TestHelpers:
    """Test file naming and image decoding"""

    def test_generate_file_prefix_format(self):
        prefix = generate_file_prefix(datetime(2026, 1, 2, 3, 4, 5))

        assert prefix.startswith("202612345")
        assert len(prefix) == len("202612345") + 10
        assert re.fullmatch(r"[0-9A-Za-z]+", prefix)

    def test_generate_file_prefix_unique(self):
        now = datetime(2026, 10, 19, 12, 0, 0)
        prefixes = {generate_file_prefix(now) for _ in range(50)}

        assert len(prefixes) == 50

    def test_decode_data_url(self):
        assert decode_image(DATA_URL) == PNG_BYTES

    def test_decode_bare_base64(self):
        assert decode_image(base64.b64encode(PNG_BYTES).decode("ascii")) == PNG_BYTES

    def test_decode_bytes_passthrough(self):
        assert decode_image(PNG_BYTES) is PNG_BYTES

    def test_decode_invalid_base64(self):
        with pytest.raises(ValueError):
            decode_image("data:image/png;base64,not*base64")


class TestStorageConfig:
    """Test StorageConfig.from_env"""

    def test_defaults(self, monkeypatch):
        for name in ["CHART_STORAGE_BACKEND", "CHART_TMP_DIR", "CHART_PATH", "S3_BUCKET", "S3_KEY_PREFIX",
                     "CDN_ENDPOINT", "IMAGE_SERVER_URL", "S3_ACCESS_KEY_ID", "S3_SECRET_ACCESS_KEY"]:
            monkeypatch.delenv(name, raising=False)

        config = StorageConfig.from_env()

        assert config.backend == "local"
        assert config.tmp_dir == Path("tmp")
        assert config.chart_dir == Path("generated_charts")
        assert config.key_prefix == "upload/charts"
        assert config.bucket is None
        assert config.access_key_id is None

    def test_s3_from_env(self, monkeypatch):
        monkeypatch.setenv("CHART_STORAGE_BACKEND", " S3 ")
        monkeypatch.setenv("S3_BUCKET", "charts")
        monkeypatch.setenv("S3_ACCESS_KEY_ID", "AKIAEXAMPLE")
        monkeypatch.setenv("S3_SECRET_ACCESS_KEY", "s3cr3t-value")
        monkeypatch.setenv("CDN_ENDPOINT", "https://cdn.example.com")

        config = StorageConfig.from_env()

        assert config.backend == "s3"
        assert config.bucket == "charts"
        assert config.access_key_id.get_secret_value() == "AKIAEXAMPLE"
        assert "s3cr3t-value" not in repr(config)

    def test_unknown_backend_rejected(self, monkeypatch):
        monkeypatch.setenv("CHART_STORAGE_BACKEND", "ftp")

        with pytest.raises(ValueError):
            StorageConfig.from_env()


class TestLocalImageStore:
    """Test LocalImageStore"""

    def test_save_image(self, local_config):
        store = LocalImageStore(local_config)

        url = store.save_image(DATA_URL)

        filename = url.rsplit("/", 1)[1]
        assert url == f"http://charts.example.com:8010/chart/{filename}"
        assert filename.endswith(".png")
        assert (local_config.chart_dir / filename).read_bytes() == PNG_BYTES
        assert list(local_config.tmp_dir.iterdir()) == []

    def test_save_image_failure_cleans_up(self, local_config):
        store = LocalImageStore(local_config)

        with pytest.raises(ImageUploadError):
            store.save_image("data:image/png;base64,@@@")

        assert list(local_config.tmp_dir.iterdir()) == []
        assert list(local_config.chart_dir.iterdir()) == []


class TestS3ImageStore:
    """Test S3ImageStore (mocking boto3)"""

    def test_requires_bucket_and_cdn(self, tmp_path):
        config = StorageConfig(backend="s3", tmp_dir=tmp_path / "tmp", bucket="b")

        with pytest.raises(ValueError, match="CDN_ENDPOINT"):
            S3ImageStore(config, client=Mock())

    def test_object_key(self, s3_config):
        store = S3ImageStore(s3_config, client=Mock())

        assert store.object_key("x.png") == "upload/charts/x.png"

    def test_object_key_without_prefix(self, s3_config):
        s3_config.key_prefix = ""
        store = S3ImageStore(s3_config, client=Mock())

        assert store.object_key("x.png") == "x.png"

    def test_save_image_uploads(self, s3_config):
        client = Mock()
        uploaded = {}

        def fake_upload(path, bucket, key, ExtraArgs=None):
            # Transient file must exist while uploading
            uploaded["body"] = Path(path).read_bytes()

        client.upload_file.side_effect = fake_upload
        store = S3ImageStore(s3_config, client=client)

        url = store.save_image(DATA_URL)

        args, kwargs = client.upload_file.call_args
        filename = Path(args[0]).name
        assert args[1] == "chart-bucket"
        assert args[2] == f"upload/charts/{filename}"
        assert kwargs["ExtraArgs"] == {"ContentType": "image/png"}
        assert url == f"https://cdn.example.com/upload/charts/{filename}"
        assert uploaded["body"] == PNG_BYTES
        assert list(s3_config.tmp_dir.iterdir()) == []

    def test_save_image_upload_failure(self, s3_config):
        """Test upload errors surface as ImageUploadError and leave no temp file"""
        client = Mock()
        client.upload_file.side_effect = Exception("Access Denied")
        store = S3ImageStore(s3_config, client=client)

        with pytest.raises(ImageUploadError) as exc_info:
            store.save_image(DATA_URL)

        assert "Access Denied" not in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, Exception)
        assert list(s3_config.tmp_dir.iterdir()) == []

    @patch('src.storage.image_store.boto3')
    def test_client_built_from_config(self, mock_boto3, s3_config):
        s3_config.endpoint_url = "https://s3.example.com"
        S3ImageStore(s3_config)

        mock_boto3.client.assert_called_once_with(
            "s3",
            endpoint_url="https://s3.example.com",
            region_name="us-east-1",
            aws_access_key_id=None,
            aws_secret_access_key=None
        )


class TestCreateImageStore:

    def test_local(self, local_config):
        assert isinstance(create_image_store(local_config), LocalImageStore)

    @patch('src.storage.image_store.boto3')
    def test_s3(self, mock_boto3, s3_config):
        store = create_image_store(s3_config)

        assert isinstance(store, S3ImageStore)
        assert store.client is mock_boto3.client.return_value
