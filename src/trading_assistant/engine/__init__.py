"""Agent orchestration: parsing, dispatch and the ReAct loop."""
