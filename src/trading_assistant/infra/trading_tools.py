"""Simulated trading tools registered in the default catalog."""

import asyncio
from typing import Any, Dict, List

from trading_assistant.infra.tool_catalog import ToolCatalog

MOCK_PRICES: Dict[str, float] = {
    "SOL": 102.0,
    "TRUMP": 15.8,
    "WIF": 3.2,
    "BTC": 67500.0,
    "ETH": 3400.0,
}
DEFAULT_PRICE = 100.0
STARTING_BALANCE = 10000.0

TUTORIAL_GUIDES: Dict[str, str] = {
    "general": (
        "**智能交易助手使用指南**\n\n"
        "**基础功能**\n"
        "• 查看投资组合：get_portfolio_status()\n"
        "• 查看交易记录：get_recent_transactions()\n"
        "• 执行交易：execute_trade(ticker, amount, side)"
    ),
    "trading": (
        "**交易操作详细指南**\n\n"
        "**参数说明**：\n"
        '• ticker: 代币符号 (如 "SOL", "BTC", "ETH")\n'
        "• amount: 交易数量\n"
        '• side: 交易方向 ("buy" 或 "sell")'
    ),
    "strategy": (
        "**策略配置详细指南**\n\n"
        "**策略类型**：\n"
        "• long_term: 长期持有策略\n"
        "• short_term: 短线交易策略\n"
        "• dca: 定期投资策略"
    ),
}


def _number(args: Dict[str, Any], key: str) -> float:
    value = args.get(key)
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"'{key}' must be a number, got {value!r}") from None


class TradingTools:
    """
    Simulated trading back end with artificial latency.

    Args:
        delay_scale: Multiplier on every simulated delay; 0 disables waiting.
    """

    def __init__(self, delay_scale: float = 1.0) -> None:
        self.delay_scale = max(0.0, delay_scale)

    async def _delay(self, milliseconds: int) -> None:
        await asyncio.sleep(milliseconds / 1000 * self.delay_scale)

    async def execute_trade(self, args: Dict[str, Any]) -> str:
        await self._delay(1000)
        ticker = str(args.get("ticker") or "").upper()
        if not ticker:
            raise ValueError("'ticker' is required")
        amount = _number(args, "amount")
        side = args.get("side", "buy")
        if side not in ("buy", "sell"):
            raise ValueError("'side' must be 'buy' or 'sell'")
        price = MOCK_PRICES.get(ticker, DEFAULT_PRICE)
        return (
            f"**{'买入' if side == 'buy' else '卖出'}成功**\n\n"
            "**交易详情**：\n"
            f"• 代币：{ticker}\n"
            f"• 数量：{amount:g}个\n"
            f"• 成交价：${price:g}\n"
            f"• 总金额：{amount * price:.2f}USDT"
        )

    async def get_portfolio_status(self, args: Dict[str, Any]) -> str:
        await self._delay(500)
        return (
            "**投资组合状态**\n\n"
            f"**USDT余额**：{STARTING_BALANCE:,.2f}USDT\n\n"
            "**加密货币持仓**：\n"
            "**SOL**\n"
            "   • 持仓：20.000000个\n"
            "   • 成本价：$95.000000 | 现价：$102.000000\n"
            "   • 市值：2040.00USDT | 盈亏：+140.00USDT (+7.37%)"
        )

    async def get_recent_transactions(self, args: Dict[str, Any]) -> str:
        await self._delay(300)
        days = args.get("days", 7)
        return (
            f"**最近{days}天交易记录**\n\n"
            "**1.** 买入 SOL 100个\n"
            "   • 成交价：$102.00 | 总额：10200.00USDT\n"
            "   • 时间：2024-01-15 14:25:10\n\n"
            "**交易统计**\n"
            "• 买入总额：10,200.00USDT\n"
            "• 总资产：20,240.00USDT"
        )

    async def configure_strategy(self, args: Dict[str, Any]) -> str:
        await self._delay(2000)
        strategy_type = args.get("strategy_type")
        if not strategy_type:
            raise ValueError("'strategy_type' is required")
        target_coins: List[str] = args.get("target_coins") or ["BTC", "ETH"]
        if isinstance(target_coins, str):
            target_coins = [target_coins]
        description = args.get("description") or "无描述"
        return (
            "**策略配置成功**\n\n"
            "**策略信息**：\n"
            "• 策略名称：策略_1\n"
            f"• 策略类型：{strategy_type}\n"
            f"• 目标代币：{', '.join(target_coins)}\n"
            f"• 策略描述：{description}\n\n"
            "**回测结果**：\n"
            "• 总收益率：18.75%\n"
            "• 年化收益率：19.20%\n"
            "• 最大回撤：-8.45%\n"
            "• 夏普比率：1.85"
        )

    async def get_strategy(self, args: Dict[str, Any]) -> str:
        await self._delay(800)
        strategy_name = args.get("strategy_name")
        if strategy_name:
            return (
                f"**策略详情：{strategy_name}**\n\n"
                "**基本信息**：\n"
                "• 策略类型：long_term\n"
                "• 目标代币：BTC, ETH\n"
                "• 创建时间：2024-01-15 14:30:25\n"
                "• 当前状态：运行中"
            )
        return (
            "**策略列表** (共2个)\n\n"
            "**1. 策略_1**\n"
            "   • 类型：long_term | 目标：BTC, ETH\n"
            "   • 状态：稳定运行 (15天)\n\n"
            "**2. 策略_2**\n"
            "   • 类型：short_term | 目标：SOL, TRUMP\n"
            "   • 状态：运行中 (3天)"
        )

    async def transfer_money(self, args: Dict[str, Any]) -> str:
        await self._delay(1500)
        recipient = args.get("recipient")
        if not recipient:
            raise ValueError("'recipient' is required")
        amount = _number(args, "amount")
        if amount > STARTING_BALANCE:
            raise ValueError("Insufficient balance")
        return (
            "**转账成功**\n\n"
            "**交易详情**：\n"
            f"• 收款人：{recipient}\n"
            f"• 转账金额：{amount:.2f}USDT\n"
            "• 交易状态：成功\n\n"
            f"**账户余额**：{STARTING_BALANCE - amount:.2f}USDT"
        )

    async def get_tutorial_guide(self, args: Dict[str, Any]) -> str:
        await self._delay(200)
        topic = args.get("topic") or "general"
        return TUTORIAL_GUIDES.get(topic, TUTORIAL_GUIDES["general"])


def register_trading_tools(catalog: ToolCatalog, delay_scale: float = 1.0) -> ToolCatalog:
    """
    Registers the simulated trading tools.

    Args:
        catalog: Catalog receiving the tools.
        delay_scale: Multiplier on simulated latency.

    Returns:
        The same catalog for chaining.
    """
    tools = TradingTools(delay_scale=delay_scale)
    catalog.register(
        "execute_trade",
        tools.execute_trade,
        "执行加密货币交易，参数：ticker(代币), amount(数量), side(buy/sell)",
    )
    catalog.register(
        "get_portfolio_status",
        tools.get_portfolio_status,
        "查看投资组合持仓和盈亏情况，无参数",
    )
    catalog.register(
        "get_recent_transactions",
        tools.get_recent_transactions,
        "查询最近交易记录，参数：days(天数), transaction_type(交易类型)",
    )
    catalog.register(
        "configure_strategy",
        tools.configure_strategy,
        "配置投资策略并获取回测，参数：strategy_type(类型), target_coins(目标币种), description(描述)",
    )
    catalog.register(
        "get_strategy",
        tools.get_strategy,
        "获取策略详情或列出所有策略，参数：strategy_name(策略名称，可选)",
    )
    catalog.register(
        "transfer_money",
        tools.transfer_money,
        "执行转账操作，参数：recipient(收款人), amount(金额)",
    )
    catalog.register(
        "get_tutorial_guide",
        tools.get_tutorial_guide,
        "获取操作引导和帮助信息，参数：topic(主题)",
    )
    return catalog
