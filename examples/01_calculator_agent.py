"""
01_calculator_agent.py - Simplest Steward example: one Agent, one tool
"""

import asyncio

from steward import Agent, AgentConfig
from steward.llm import LiteLLMClient, LLMConfig
from steward.tools import calculator_tool


async def main():
    llm = LiteLLMClient(LLMConfig(model="deepseek-chat", api_key="sk-xxx"), provider_name="deepseek")
    agent = Agent(llm, AgentConfig(system_prompt="You are a careful assistant."), tools=[calculator_tool])

    print("User: What is (12 + 30) * 2?")
    print(f"Agent: {await agent.run('What is (12 + 30) * 2?')}")

    print("\nUser: And divided by 7?")
    print(f"Agent: {await agent.run('And divided by 7?')}")


if __name__ == "__main__":
    asyncio.run(main())
