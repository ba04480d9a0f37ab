"""Image recognition client."""

from __future__ import annotations

import logging
import mimetypes
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field, ValidationError

from trading_assistant.domain.exceptions import (
    ApiFailure,
    AssistantError,
    ImageValidationError,
    ServiceError,
    ServiceFailure,
)
from trading_assistant.llm.api_client import ApiClient
from trading_assistant.llm.chat_completion import HealthStatus

logger = logging.getLogger(__name__)

IMAGE_ENDPOINT = "/functions/v1/llm-image-request"
PLACEHOLDER_TOKEN = "YOUR_JWT_TOKEN"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024
HEALTH_TIMEOUT_SECONDS = 5.0


class RecognitionResult(BaseModel):
    """Text extracted from one image."""

    content: str = Field(description="Recognized content.")
    role: str = Field(default="assistant")
    message: str = Field(default="Success")
    status: str = Field(default="success")


class ImageOutcome(BaseModel):
    """Per-image entry of a batch recognition."""

    index: int
    file: Path
    result: Optional[RecognitionResult] = None
    error: Optional[str] = None


class BatchRecognition(BaseModel):
    """Summary of a sequential batch recognition."""

    results: List[ImageOutcome] = Field(default_factory=list)
    errors: List[ImageOutcome] = Field(default_factory=list)
    total: int = 0

    @property
    def success_count(self) -> int:
        return len(self.results)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def success(self) -> bool:
        return not self.errors


class ImageService:
    """
    Sends images to the recognition endpoint.

    Args:
        client: HTTP client bound to the image-recognition host.
        api_token: Bearer token for the endpoint.
        max_bytes: Maximum accepted file size.
    """

    def __init__(
        self,
        client: ApiClient,
        api_token: Optional[str] = None,
        max_bytes: int = DEFAULT_MAX_BYTES,
    ) -> None:
        self.client = client
        self.api_token = api_token
        self.max_bytes = max_bytes

    def set_image_api_token(self, token: Optional[str]) -> None:
        self.api_token = token

    def check_token_config(self) -> str:
        """
        Returns the configured token.

        Raises:
            ImageValidationError: When the token is missing or a placeholder.
        """
        if not self.api_token or self.api_token == PLACEHOLDER_TOKEN:
            raise ImageValidationError(
                "Configure image_api_token before using image recognition"
            )
        return self.api_token

    def validate_image(self, path: Path) -> str:
        """
        Checks an image file before upload.

        Args:
            path: Path to the image file.

        Returns:
            The guessed MIME type.

        Raises:
            ImageValidationError: Missing file, non-image type or oversized file.
        """
        if not path.is_file():
            raise ImageValidationError(f"Image file not found: {path}")
        mime_type, _ = mimetypes.guess_type(path.name)
        if not mime_type or not mime_type.startswith("image/"):
            raise ImageValidationError("File must be an image")
        if path.stat().st_size > self.max_bytes:
            limit_mb = self.max_bytes // (1024 * 1024)
            raise ImageValidationError(f"Image file must not exceed {limit_mb}MB")
        return mime_type

    async def recognize_image(
        self, path: Path, *, prompt: Optional[str] = None
    ) -> RecognitionResult:
        """
        Recognizes the content of one image.

        Args:
            path: Path to the image file.
            prompt: Optional instruction sent with the image.

        Returns:
            The recognized content.

        Raises:
            ImageValidationError: Before any request, for bad token or file.
            NetworkFailure: The service could not be reached.
            ApiFailure: The service rejected the request.
        """
        path = Path(path)
        token = self.check_token_config()
        mime_type = self.validate_image(path)
        logger.info(
            "Image recognition start",
            extra={
                "image": path.name,
                "size_kb": round(path.stat().st_size / 1024),
                "mime_type": mime_type,
            },
        )
        try:
            content = path.read_bytes()
        except OSError as exc:
            raise ImageValidationError(f"Unable to read image: {exc}") from exc

        payload = await self.client.post(
            IMAGE_ENDPOINT,
            data={"prompt": prompt} if prompt else None,
            files={"image": (path.name, content, mime_type)},
            headers={"Authorization": f"Bearer {token}"},
        )
        if not isinstance(payload, dict) or payload.get("code") != 200:
            message = payload.get("message") if isinstance(payload, dict) else None
            raise ApiFailure(message or "Image recognition failed")

        result = _parse_recognition(payload)
        logger.info(
            "Image recognition succeeded",
            extra={"image": path.name, "content_length": len(result.content)},
        )
        return result

    async def recognize_images(
        self, paths: Sequence[Path], *, prompt: Optional[str] = None
    ) -> BatchRecognition:
        """
        Recognizes images one at a time; a failure does not stop the batch.

        Args:
            paths: Image files to recognize.
            prompt: Optional instruction sent with each image.

        Returns:
            Per-image results and errors.
        """
        if not paths:
            raise ValueError("Provide at least one image file")

        batch = BatchRecognition(total=len(paths))
        for index, path in enumerate(paths):
            try:
                result = await self.recognize_image(path, prompt=prompt)
            except AssistantError as exc:
                logger.warning(
                    "Image recognition failed", extra={"image": str(path), "error": str(exc)}
                )
                batch.errors.append(ImageOutcome(index=index, file=path, error=str(exc)))
                continue
            except Exception as exc:
                logger.exception("Unexpected image recognition error", extra={"image": str(path)})
                message = str(exc) or exc.__class__.__name__
                batch.errors.append(ImageOutcome(index=index, file=path, error=message))
                continue
            batch.results.append(ImageOutcome(index=index, file=path, result=result))
        return batch

    async def health_check(self) -> HealthStatus:
        """Check the service root. Never raises."""

        try:
            await self.client.get("/", timeout=HEALTH_TIMEOUT_SECONDS)
        except ServiceError as exc:
            return HealthStatus(
                status="unhealthy",
                connected=False,
                error=str(exc),
                message="Image recognition service is unreachable",
            )
        return HealthStatus(
            status="healthy",
            connected=True,
            message="Image recognition service is reachable",
        )

    async def aclose(self) -> None:
        await self.client.aclose()


def _parse_recognition(payload: Dict[str, Any]) -> RecognitionResult:
    """Unwrap the recognition data of a successful envelope."""

    try:
        data = payload.get("data") or {}
        return RecognitionResult(
            content=data.get("content") or "Recognition complete",
            role=data.get("role") or "assistant",
            message=payload.get("message") or "Success",
            status=payload.get("status") or "success",
        )
    except (AttributeError, ValidationError) as exc:
        raise ServiceFailure(
            "Image recognition service returned an unexpected payload",
            details={"data": payload},
        ) from exc
