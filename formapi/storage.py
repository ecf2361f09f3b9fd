import io
import logging
import threading
import time
from functools import lru_cache
from typing import Callable, Optional

from minio import Minio
from werkzeug.utils import secure_filename

from formapi.config import config

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


def object_name_for(filename: str, now: Optional[float] = None) -> str:
    """Collision-avoiding object name: ``<epoch millis>-<original filename>``."""
    millis = round((time.time() if now is None else now) * 1000)
    return f"{millis}-{secure_filename(filename) or 'upload'}"


class UploadProgress(threading.Thread):
    """Progress sink handed to ``Minio.put_object``.

    MinIO calls ``set_meta`` once and ``update`` per transferred part; the
    thread itself is never started.
    """

    def __init__(self, on_progress: Optional[ProgressCallback] = None):
        super().__init__(daemon=True)
        self.on_progress = on_progress
        self.object_name = None
        self.total_length = 0
        self.current_size = 0
        self.percent = 0

    def set_meta(self, object_name, total_length):
        self.object_name = object_name
        self.total_length = total_length

    def update(self, size):
        self.current_size += size
        if not self.total_length:
            return
        percent = min(100, round(self.current_size / self.total_length * 100))
        if percent != self.percent:
            self.percent = percent
            logger.debug(f"Upload of {self.object_name} at {percent}%")
            if self.on_progress:
                self.on_progress(percent)


class ObjectStorage:
    def __init__(self, client: Minio, bucket: str, endpoint: str, secure: bool = False):
        self.client = client
        self.bucket = bucket
        self.endpoint = endpoint
        self.secure = secure

    def ensure_bucket(self) -> None:
        if not self.client.bucket_exists(self.bucket):
            self.client.make_bucket(self.bucket)
        logger.info(f"MinIO bucket '{self.bucket}' is ready.")

    def public_url(self, obj_name: str) -> str:
        scheme = "https" if self.secure else "http"
        return f"{scheme}://{self.endpoint}/{self.bucket}/{obj_name}"

    def upload(
        self,
        filename: str,
        data: bytes,
        content_type: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        obj_name = object_name_for(filename)
        self.client.put_object(
            bucket_name=self.bucket,
            object_name=obj_name,
            data=io.BytesIO(data),
            length=len(data),
            content_type=content_type,
            progress=UploadProgress(on_progress),
        )
        logger.debug(f"Stored {obj_name} ({len(data)} bytes) in '{self.bucket}'")
        return self.public_url(obj_name)


@lru_cache()
def get_storage() -> ObjectStorage:
    minio_client = Minio(
        endpoint=config.MINIO_ENDPOINT,
        access_key=config.MINIO_ROOT_USER,
        secret_key=config.MINIO_ROOT_PASSWORD,
        secure=config.MINIO_SECURE,
    )
    return ObjectStorage(
        minio_client,
        bucket=config.MINIO_BUCKET,
        endpoint=config.MINIO_ENDPOINT,
        secure=config.MINIO_SECURE,
    )
