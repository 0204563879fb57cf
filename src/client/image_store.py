"""외부 이미지 저장소(Cloudflare Images 호환 API) 클라이언트.

업로드:  POST <endpoint>            multipart "file", Authorization: Bearer <key>
삭제:    DELETE <endpoint>/<id>     성공 = HTTP 200

업로드 응답 envelope:
    {"success": bool,
     "result": {"id": str, "variants": [str], "filename": ..., "uploaded": ...,
                "requireSignedURLs": bool},
     "errors": [{"message": str}], "messages": [...]}

실패 원인별로 예외 클래스를 나눠서, 호출 측(워커)이 재시도 여부를
retryable 플래그로 판단할 수 있게 한다.
"""

from dataclasses import dataclass
from typing import Any

import httpx
from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from utility.timer import timer


class ImageStoreError(Exception):
    retryable: bool = False


class ImageStoreTransportError(ImageStoreError):
    """네트워크 오류, 타임아웃. 일시적인 장애로 보고 재시도한다."""

    retryable = True


class ImageStoreStatusError(ImageStoreError):
    """원격이 2xx가 아닌 상태 코드로 응답함."""

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        super().__init__(f"image store responded with HTTP {status_code}: {body[:200]}")


class ImageStoreDecodeError(ImageStoreError):
    """응답 본문이 envelope 형식이 아님."""


class ImageStoreRemoteError(ImageStoreError):
    """envelope의 success=false."""

    def __init__(self, messages: list[str]):
        self.messages = messages
        super().__init__(f"image store reported failure: {'; '.join(messages) or 'no details'}")


class ImageStoreProtocolError(ImageStoreError):
    """success=true 이지만 필수 값(variants 등)이 비어 있음."""


# --- 응답 스키마 ---


class _RemoteMessage(BaseModel):
    message: str = ""


class _UploadResult(BaseModel):
    id: str
    variants: list[str] = []
    filename: str | None = None
    uploaded: str | None = None
    require_signed_urls: bool = Field(default=False, alias="requireSignedURLs")


class _UploadEnvelope(BaseModel):
    success: bool
    result: _UploadResult | None = None
    errors: list[_RemoteMessage] = []
    messages: list[Any] = []


@dataclass(frozen=True)
class StoredImage:
    external_id: str
    url: str


class ImageStoreClient:
    def __init__(
        self,
        endpoint: str,
        api_key: str,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self._http = httpx.Client(
            timeout=timeout,
            headers={"Authorization": f"Bearer {api_key}"},
            transport=transport,
        )

    def upload(self, data: bytes, filename: str) -> StoredImage:
        """이미지 바이트를 업로드하고 (외부 id, 공개 URL)을 반환한다."""
        with timer(f"image store upload {filename}", slow_after=self.timeout / 2):
            try:
                resp = self._http.post(
                    self.endpoint,
                    files={"file": (filename, data, "image/jpeg")},
                )
            except httpx.TransportError as e:
                raise ImageStoreTransportError(f"upload request failed: {e}") from e

        if not resp.is_success:
            raise ImageStoreStatusError(resp.status_code, resp.text)

        try:
            envelope = _UploadEnvelope.model_validate_json(resp.content)
        except ValidationError as e:
            raise ImageStoreDecodeError(f"unexpected upload response: {e}") from e

        if not envelope.success:
            raise ImageStoreRemoteError([err.message for err in envelope.errors])

        if envelope.result is None or not envelope.result.variants:
            raise ImageStoreProtocolError("upload succeeded but response has no variants")

        stored = StoredImage(external_id=envelope.result.id, url=envelope.result.variants[0])
        logger.info(f"Image uploaded: {stored.external_id} -> {stored.url}")
        return stored

    def delete(self, external_id: str) -> None:
        """외부 저장소에서 이미지를 삭제한다. HTTP 200이 아니면 예외."""
        with timer(f"image store delete {external_id}", slow_after=self.timeout / 2):
            try:
                resp = self._http.delete(f"{self.endpoint}/{external_id}")
            except httpx.TransportError as e:
                raise ImageStoreTransportError(f"delete request failed: {e}") from e

        if resp.status_code != httpx.codes.OK:
            raise ImageStoreStatusError(resp.status_code, resp.text)

        logger.info(f"Image deleted from store: {external_id}")

    def close(self) -> None:
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
