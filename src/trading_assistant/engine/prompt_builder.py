"""System prompt construction for the ReAct protocol."""

from trading_assistant.domain.conversation import ConversationHistory

REACT_PROMPT_TEMPLATE = """你是一个智能交易助手，使用ReAct模式进行推理和行动。

可用工具：
{tools}

请按以下格式响应：
Thought: [描述你的思考过程]
Action: [要执行的工具名称]
Args: [工具参数，JSON格式]

或者当你有最终答案时：
[直接给出最终回复，不需要工具调用]

重要规则：
1. 仔细思考用户需求，选择合适的工具
2. 确保参数格式正确
3. 如果不需要工具调用，直接回复
4. 用中文与用户交流"""


class PromptBuilder:
    """
    Builds the system turn and the seeded history for a run.

    Args:
        template: Prompt template with a `{tools}` placeholder.
    """

    def __init__(self, template: str = REACT_PROMPT_TEMPLATE) -> None:
        if "{tools}" not in template:
            raise ValueError("Prompt template must contain a {tools} placeholder.")
        self.template = template

    def build_system_prompt(self, tools_description: str) -> str:
        """
        Embeds the tool catalog text verbatim into the template.

        Args:
            tools_description: Newline list of `- name: description` entries.

        Returns:
            The system prompt text.
        """
        return self.template.replace("{tools}", tools_description)

    def build_history(
        self, tools_description: str, user_input: str
    ) -> ConversationHistory:
        return ConversationHistory.seed(
            self.build_system_prompt(tools_description), user_input
        )
