import asyncio

from roleplay_ai.config import configure_logging
from roleplay_ai.errors import RoleplayAIError
from roleplay_ai.node import RoleplayNode


async def main() -> None:
    configure_logging()
    # credentials come from ROLEPLAY_AI_API_KEY / ROLEPLAY_AI_BASE_URL / ROLEPLAY_AI_PROVIDER_TYPE
    node = RoleplayNode(continue_on_fail=True)

    try:
        models = await node.get_models()
    except RoleplayAIError as e:
        print("Could not list models:", e)
        return

    print("Available models:", ", ".join(m["value"] for m in models[:5]))

    outputs = await node.execute(
        [
            {
                "operation": "chat",
                "model": models[0]["value"],
                "characterName": "Dr. Watson",
                "characterDescription": "A calm, precise medical professional.",
                "firstMessage": "Good day. What brings you in?",
                "includeScenario": True,
                "scenario": "A consulting room in Baker Street.",
                "message": "I have a fever.",
                "includeRawOutput": True,
            }
        ]
    )
    print(outputs[0])


if __name__ == "__main__":
    asyncio.run(main())
