import logging
from typing import Callable, Optional

import httpx

from trading_assistant.config import Config
from trading_assistant.config_provider import ConfigProvider
from trading_assistant.engine.agent_loop import AgentLoop
from trading_assistant.engine.chat_session import ChatSession
from trading_assistant.engine.tool_dispatcher import ToolDispatcher
from trading_assistant.infra.message_log import MessageLog
from trading_assistant.infra.tool_catalog import ToolCatalog
from trading_assistant.infra.trading_tools import register_trading_tools
from trading_assistant.llm.api_client import ApiClient
from trading_assistant.llm.image_service import ImageService
from trading_assistant.llm.llm_service import LLMService

logger = logging.getLogger(__name__)


class TradingAssistant:
    """
    The trading assistant, wiring the agent loop to its collaborators.

    Args:
        config: Application configuration; loaded from disk when omitted.
        catalog: Tool catalog; the simulated trading tools when omitted.
        transport: Optional httpx transport shared by both HTTP clients.
        on_step: Optional callback receiving the step number of each LLM call.
    """

    def __init__(
        self,
        config: Config | None = None,
        catalog: ToolCatalog | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        on_step: Optional[Callable[[int], None]] = None,
    ) -> None:
        self.config = config or ConfigProvider().load()

        self.llm = LLMService(
            ApiClient(
                self.config.get_api_base_url(),
                timeout=self.config.api_timeout_seconds,
                api_token=self.config.get_api_token(),
                transport=transport,
                server_message="LLM service response error",
            ),
            model=self.config.get_llm_model(),
            temperature=self.config.llm_temperature,
            max_tokens=self.config.llm_max_tokens,
            max_attempts=self.config.llm_max_attempts,
        )
        self.images = ImageService(
            ApiClient(
                self.config.get_image_api_base_url(),
                timeout=self.config.image_timeout_seconds,
                transport=transport,
                server_message="Image recognition service response error",
            ),
            api_token=self.config.get_image_api_token(),
            max_bytes=self.config.image_max_bytes,
        )

        if catalog is None:
            catalog = register_trading_tools(
                ToolCatalog(), delay_scale=self.config.tool_delay_scale
            )
        self.catalog = catalog
        self.tools = ToolDispatcher(
            self.catalog, history_limit=self.config.tool_history_limit
        )
        self.messages = MessageLog()
        self.loop = AgentLoop(
            self.llm,
            self.tools,
            self.messages,
            max_steps=self.config.get_max_steps(),
            on_step=on_step,
        )
        self.session = ChatSession(self.loop, self.messages, image_service=self.images)
        logger.info(
            "Assistant ready",
            extra={"tool_count": len(self.catalog), "max_steps": self.loop.max_steps},
        )

    async def aclose(self) -> None:
        """Closes both HTTP clients."""
        await self.llm.aclose()
        await self.images.aclose()
