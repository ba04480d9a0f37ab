"""Tests for submissions, the one-run rule and the image entry path."""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from trading_assistant.domain.exceptions import (
    AssistantError,
    ImageValidationError,
    SessionBusy,
)
from trading_assistant.domain.messages import MessageType
from trading_assistant.engine.agent_loop import RunOutcome, RunResult
from trading_assistant.engine.chat_session import (
    IMAGE_ONLY_TEXT,
    ChatSession,
    build_image_prompt,
)
from trading_assistant.infra.message_log import MessageLog
from trading_assistant.llm.api_client import ApiClient
from trading_assistant.llm.image_service import ImageService, RecognitionResult


def _loop(outcome: RunOutcome = RunOutcome.ANSWERED) -> MagicMock:
    loop = MagicMock()
    loop.run = AsyncMock(return_value=RunResult(outcome=outcome, steps=1))
    return loop


@pytest.mark.asyncio
async def test_blank_submission_is_ignored() -> None:
    """Whitespace-only input without images starts nothing."""
    loop = _loop()
    log = MessageLog()

    outcome = await ChatSession(loop, log).submit("   ")

    assert outcome is RunOutcome.IGNORED
    assert len(log) == 0
    loop.run.assert_not_awaited()


@pytest.mark.asyncio
async def test_text_submission_runs_loop() -> None:
    """Text input emits the user message and runs the loop with a token."""
    loop = _loop()
    log = MessageLog()
    session = ChatSession(loop, log)

    outcome = await session.submit("  查看余额 ")

    assert outcome is RunOutcome.ANSWERED
    assert log.messages[0].type is MessageType.USER
    assert log.messages[0].content == "查看余额"
    text, token = loop.run.await_args.args
    assert text == "查看余额"
    assert token is not None
    assert session.active is False


@pytest.mark.asyncio
async def test_submission_while_active_is_rejected() -> None:
    """Only one run may be active per session."""
    started = asyncio.Event()
    release = asyncio.Event()

    async def slow_run(text, token):
        started.set()
        await release.wait()
        return RunResult(outcome=RunOutcome.ANSWERED)

    loop = MagicMock()
    loop.run = slow_run
    session = ChatSession(loop, MessageLog())

    first = asyncio.create_task(session.submit("one"))
    await started.wait()
    assert session.active is True
    with pytest.raises(SessionBusy):
        await session.submit("two")
    release.set()

    assert await first is RunOutcome.ANSWERED
    assert session.active is False


@pytest.mark.asyncio
async def test_stop_cancels_active_token() -> None:
    """stop() cancels the token handed to the running loop."""
    seen = {}

    async def run(text, token):
        seen["token"] = token
        session.stop()
        return RunResult(outcome=RunOutcome.CANCELLED)

    loop = MagicMock()
    loop.run = run
    session = ChatSession(loop, MessageLog())

    outcome = await session.submit("hi")

    assert outcome is RunOutcome.CANCELLED
    assert seen["token"].cancelled is True
    session.stop()


@pytest.mark.asyncio
async def test_images_recognized_sequentially_and_prompt_synthesized(tmp_path: Path) -> None:
    """A failed image does not stop the others; successes seed the loop."""
    good = tmp_path / "chart.png"
    bad = tmp_path / "broken.png"
    images = MagicMock()
    images.recognize_image = AsyncMock(
        side_effect=[
            ImageValidationError("File must be an image"),
            RecognitionResult(content="BTC 上涨趋势"),
        ]
    )
    loop = _loop()
    log = MessageLog()

    outcome = await ChatSession(loop, log, image_service=images).submit(
        "分析一下", [bad, good]
    )

    assert outcome is RunOutcome.ANSWERED
    assert [call.args[0] for call in images.recognize_image.await_args_list] == [bad, good]
    assert log.messages[0].attachments == ("broken.png", "chart.png")
    assert [message.type for message in log.messages] == [
        MessageType.USER,
        MessageType.ASSISTANT,
        MessageType.ERROR,
        MessageType.ASSISTANT,
        MessageType.ASSISTANT,
    ]
    prompt = loop.run.await_args.args[0]
    assert prompt == '分析一下\n\n图片识别信息:\n图片"chart.png"的识别结果: BTC 上涨趋势'


@pytest.mark.asyncio
async def test_no_recognized_images_skips_loop(tmp_path: Path) -> None:
    """When every image fails the agent loop is never started."""
    images = MagicMock()
    images.recognize_image = AsyncMock(side_effect=ImageValidationError("nope"))
    loop = _loop()
    log = MessageLog()

    outcome = await ChatSession(loop, log, image_service=images).submit(
        "", [tmp_path / "a.png"]
    )

    assert outcome is RunOutcome.NO_IMAGES_RECOGNIZED
    assert log.messages[0].content == IMAGE_ONLY_TEXT
    loop.run.assert_not_awaited()


@pytest.mark.asyncio
async def test_cancel_during_image_recognition(tmp_path: Path) -> None:
    """Cancelling while an image is recognized ends the submission silently."""
    images = MagicMock()
    loop = _loop()
    log = MessageLog()
    session = ChatSession(loop, log, image_service=images)

    async def hang(path):
        session.stop()
        await asyncio.Event().wait()

    images.recognize_image = AsyncMock(side_effect=hang)

    outcome = await session.submit("看图", [tmp_path / "a.png", tmp_path / "b.png"])

    assert outcome is RunOutcome.CANCELLED
    assert images.recognize_image.await_count == 1
    assert log.of_type(MessageType.ERROR) == []
    loop.run.assert_not_awaited()


def test_image_only_prompt() -> None:
    """Without user text the prompt asks for analysis of the results."""
    prompt = build_image_prompt("", [("a.png", "one"), ("b.png", "two")])

    assert prompt == (
        "请根据以下图片识别结果进行分析:\n"
        '图片"a.png"的识别结果: one\n\n'
        '图片"b.png"的识别结果: two'
    )


@pytest.mark.asyncio
async def test_malformed_image_reply_does_not_abort_remaining_images(tmp_path: Path) -> None:
    """A bad reply for the first image still lets the second one through."""
    first = tmp_path / "first.png"
    second = tmp_path / "second.png"
    for path in (first, second):
        path.write_bytes(b"\x89PNG\r\n\x1a\nfake")
    replies = iter(
        [
            {"code": 200, "data": {"content": 123}},
            {"code": 200, "data": {"content": "ETH 横盘"}},
        ]
    )
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return httpx.Response(200, json=next(replies))

    images = ImageService(
        ApiClient("http://images.test", transport=httpx.MockTransport(handler)),
        api_token="image-token",
    )
    loop = _loop()
    log = MessageLog()

    outcome = await ChatSession(loop, log, image_service=images).submit("", [first, second])

    assert outcome is RunOutcome.ANSWERED
    assert len(calls) == 2
    errors = log.of_type(MessageType.ERROR)
    assert len(errors) == 1
    assert "first.png" in errors[0].content
    assert loop.run.await_args.args[0] == (
        '请根据以下图片识别结果进行分析:\n图片"second.png"的识别结果: ETH 横盘'
    )


@pytest.mark.asyncio
async def test_unexpected_image_error_is_reported_per_image(tmp_path: Path) -> None:
    """Exceptions outside the error taxonomy are still contained per image."""
    images = MagicMock()
    images.recognize_image = AsyncMock(
        side_effect=[RuntimeError(), RecognitionResult(content="ok")]
    )
    loop = _loop()
    log = MessageLog()

    outcome = await ChatSession(loop, log, image_service=images).submit(
        "看图", [tmp_path / "a.png", tmp_path / "b.png"]
    )

    assert outcome is RunOutcome.ANSWERED
    assert images.recognize_image.await_count == 2
    error = log.of_type(MessageType.ERROR)[0]
    assert error.content == "Image recognition failed: a.png\n\nUnknown error"


@pytest.mark.asyncio
async def test_images_without_recognizer_are_rejected(tmp_path: Path) -> None:
    """Images need a recognizer; nothing is emitted without one."""
    loop = _loop()
    log = MessageLog()
    session = ChatSession(loop, log)

    with pytest.raises(AssistantError, match="not configured"):
        await session.submit("看图", [tmp_path / "a.png"])

    assert len(log) == 0
    assert session.active is False
    loop.run.assert_not_awaited()
