import asyncio
import logging
import os
from typing import Annotated

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from local_llm_agent import Agent, AgentConfig, setup_logging

# Load environment variables (LOCAL_AGENT_MODEL, LOCAL_AGENT_BASE_URL, ...)
load_dotenv()


class Answer(BaseModel):
    answer: str = Field(description="The answer to the question")
    confidence: float = Field(description="Confidence between 0 and 1")


def get_time_zone_offset(city: Annotated[str, Field(description="City name, e.g. 'Berlin'")]) -> int:
    """Returns the UTC offset in hours for a handful of cities."""
    offsets = {"berlin": 1, "london": 0, "new york": -5, "tokyo": 9}
    return offsets.get(city.lower(), 0)


async def main() -> None:
    """
    Main function to run the CLI chat against a local inference server.
    """
    if os.getenv("LOCAL_AGENT_DEBUG"):
        setup_logging(level=logging.DEBUG)

    config = AgentConfig.from_env()
    print(f"Welcome to the CLI Chat ({config.model_name} at {config.base_url})!")
    print("Prefix a question with 'json:' to get a schema-validated answer.")

    async with Agent(config, tools=[get_time_zone_offset]) as agent:
        print("\nStart chatting! Type 'exit' or 'quit' to stop.")
        while True:
            user_input = input("\nYou: ").strip()
            if user_input.lower() in ["exit", "quit"]:
                print("Goodbye!")
                break

            if not user_input:
                continue

            try:
                if user_input.lower().startswith("json:"):
                    result = await agent.generate_with_schema(Answer, user_input[5:].strip())
                    if result.parsed_value is not None:
                        print(f"Assistant: {result.parsed_value.answer} (confidence {result.parsed_value.confidence})")
                    else:
                        print(f"Assistant gave no valid answer after {result.attempts} attempts: {result.validation_error}")
                else:
                    result = await agent.generate_raw(user_input)
                    print(f"Assistant: {result.response}")

                for record in result.tool_calls:
                    print(f"  [tool] {record.name}({record.parameters}) -> {record.result.data or record.result.error}")

            except Exception as e:
                print(f"An error occurred: {e}")


if __name__ == "__main__":
    asyncio.run(main())
