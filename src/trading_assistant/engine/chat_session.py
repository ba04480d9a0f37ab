"""Single-run chat session with the image-augmented entry path."""

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from trading_assistant.domain.cancellation import CancellationToken
from trading_assistant.domain.exceptions import AssistantError, RunCancelled, SessionBusy
from trading_assistant.domain.messages import AgentMessage, MessageType
from trading_assistant.engine.agent_loop import AgentLoop, RunOutcome
from trading_assistant.infra.message_log import MessageSink
from trading_assistant.llm.image_service import ImageService

logger = logging.getLogger(__name__)

IMAGE_ONLY_TEXT = "Please analyze the attached image"


def build_image_prompt(text: str, recognitions: Sequence[Tuple[str, str]]) -> str:
    """
    Combines the user's text with successful recognition results.

    Args:
        text: The user's own text, possibly empty.
        recognitions: (file name, recognized content) pairs.

    Returns:
        The seed user turn for the agent loop.
    """
    context = "\n\n".join(
        f'图片"{name}"的识别结果: {content}' for name, content in recognitions
    )
    if text:
        return f"{text}\n\n图片识别信息:\n{context}"
    return f"请根据以下图片识别结果进行分析:\n{context}"


class ChatSession:
    """
    Accepts user submissions and allows at most one active run.

    Args:
        loop: The agent loop driving each run.
        sink: Receiver of user and image-progress messages.
        image_service: Recognizer used when images are attached.
    """

    def __init__(
        self,
        loop: AgentLoop,
        sink: MessageSink,
        image_service: Optional[ImageService] = None,
    ) -> None:
        self.loop = loop
        self.sink = sink
        self.image_service = image_service
        self._token: Optional[CancellationToken] = None

    @property
    def active(self) -> bool:
        return self._token is not None

    async def submit(self, text: str, images: Sequence[Path] = ()) -> RunOutcome:
        """
        Runs one submission to completion.

        Args:
            text: The user's message.
            images: Image files to recognize before the loop starts.

        Returns:
            How the submission ended.

        Raises:
            SessionBusy: Another run is still active.
        """
        text = text.strip()
        paths = [Path(image) for image in images]
        if not text and not paths:
            return RunOutcome.IGNORED
        if self._token is not None:
            raise SessionBusy("A run is already in progress")
        image_service = self.image_service
        if paths and image_service is None:
            raise AssistantError("Image recognition is not configured")

        token = CancellationToken()
        self._token = token
        try:
            self.sink.append(
                AgentMessage(
                    type=MessageType.USER,
                    content=text or IMAGE_ONLY_TEXT,
                    attachments=tuple(path.name for path in paths),
                )
            )
            if image_service is None or not paths:
                result = await self.loop.run(text, token)
                return result.outcome
            return await self._run_with_images(image_service, text, paths, token)
        finally:
            self._token = None

    def stop(self) -> None:
        """Cancels the active run; does nothing when idle."""
        if self._token is not None:
            logger.info("Run cancellation requested")
            self._token.cancel()

    async def _run_with_images(
        self,
        image_service: ImageService,
        text: str,
        paths: List[Path],
        token: CancellationToken,
    ) -> RunOutcome:
        recognitions: List[Tuple[str, str]] = []
        for path in paths:
            if token.cancelled:
                return RunOutcome.CANCELLED
            self._emit(MessageType.ASSISTANT, f"Recognizing image: {path.name}")
            try:
                result = await token.guard(image_service.recognize_image(path))
            except RunCancelled:
                return RunOutcome.CANCELLED
            except AssistantError as exc:
                self._emit(
                    MessageType.ERROR,
                    f"Image recognition failed: {path.name}\n\n{exc}",
                )
                continue
            except Exception as exc:
                logger.exception("Unexpected image recognition error")
                reason = str(exc) or "Unknown error"
                self._emit(
                    MessageType.ERROR,
                    f"Image recognition failed: {path.name}\n\n{reason}",
                )
                continue
            recognitions.append((path.name, result.content))
            self._emit(
                MessageType.ASSISTANT,
                f"Image recognized: {path.name}\n\n{result.content}",
            )

        if token.cancelled:
            return RunOutcome.CANCELLED
        if not recognitions:
            logger.info("No images recognized, agent loop not started")
            return RunOutcome.NO_IMAGES_RECOGNIZED
        result = await self.loop.run(build_image_prompt(text, recognitions), token)
        return result.outcome

    def _emit(self, message_type: MessageType, content: str) -> None:
        self.sink.append(AgentMessage(type=message_type, content=content))
