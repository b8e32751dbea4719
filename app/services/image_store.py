import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import cloudinary.utils
import httpx

from ..exceptions import ImageStoreError

logger = logging.getLogger(__name__)


def resolve_image_url(image_path: Optional[str], media_base_url: str) -> Optional[str]:
    """Абсолютные URL возвращаются как есть, относительные пути дополняются базовым URL"""
    if not image_path:
        return None
    if image_path.startswith(("http://", "https://")):
        return image_path
    return f"{media_base_url.rstrip('/')}/{image_path.lstrip('/')}"


@dataclass(frozen=True)
class UploadedImage:
    public_id: str
    url: str


class ImageStore:
    """Клиент для хостинга изображений (Cloudinary REST API)"""

    def __init__(
            self,
            cloud_name: str,
            api_key: str,
            api_secret: str,
            folder: str = "marketplace",
            timeout: float = 30.0,
            transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = f"https://api.cloudinary.com/v1_1/{cloud_name}/image"
        self.api_key = api_key
        self.api_secret = api_secret
        self.folder = folder
        self.timeout = timeout
        self.transport = transport

    def sign(self, params: Dict[str, Any]) -> str:
        """Подпись запроса по протоколу Cloudinary (SHA-1 от отсортированных параметров + секрет)"""
        return cloudinary.utils.api_sign_request(params, self.api_secret)

    def _signed(self, params: Dict[str, str]) -> Dict[str, str]:
        params = dict(params, timestamp=str(int(time.time())))
        return dict(params, signature=self.sign(params), api_key=self.api_key)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def upload(self, content: bytes, filename: str) -> UploadedImage:
        """Загружает изображение в папку хранилища"""
        data = self._signed({"folder": self.folder})

        try:
            async with self._client() as client:
                response = await client.post(
                    f"{self.base_url}/upload",
                    data=data,
                    files={"file": (filename, content)}
                )
        except httpx.HTTPError as e:
            logger.error(f"❌ Error uploading image {filename}: {e}")
            raise ImageStoreError() from e

        if response.status_code != 200:
            logger.error(f"❌ Image upload failed for {filename}: {response.status_code}")
            raise ImageStoreError(f"Image upload failed with status {response.status_code}")

        body = response.json()
        logger.info(f"✅ Uploaded image {body['public_id']}")
        return UploadedImage(public_id=body["public_id"], url=body["secure_url"])

    async def delete(self, public_id: str) -> None:
        """Удаляет изображение из хранилища"""
        data = self._signed({"public_id": public_id})

        try:
            async with self._client() as client:
                response = await client.post(f"{self.base_url}/destroy", data=data)
        except httpx.HTTPError as e:
            logger.error(f"❌ Error deleting image {public_id}: {e}")
            raise ImageStoreError() from e

        if response.status_code != 200:
            logger.error(f"❌ Image delete failed for {public_id}: {response.status_code}")
            raise ImageStoreError(f"Image delete failed with status {response.status_code}")

        result = response.json().get("result")
        if result not in ("ok", "not found"):
            raise ImageStoreError(f"Image delete returned {result}")

        logger.info(f"🗑️ Deleted image {public_id} ({result})")
