import asyncio
import json
import unittest

import httpx

from roleplay_ai.client import REDACTED, RoleplayClient
from roleplay_ai.errors import ConfigurationError, ProviderError, RoleplayAIError
from roleplay_ai.node import ChatParameters, RoleplayNode
from roleplay_ai.types import ChatConfig, ProviderConfig

BASE_URL = "https://openrouter.ai/api/v1"

WATSON_ITEM = {
    "operation": "chat",
    "model": "openrouter/auto",
    "characterName": "Dr. Watson",
    "characterDescription": "medical professional",
    "firstMessage": "Good day.",
    "message": "I have a fever.",
    "temperature": 0.9,
}


class RecordingTransport(httpx.MockTransport):
    """Mock transport that remembers every request it served."""

    def __init__(self, payload: object, status_code: int = 200) -> None:
        self.requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return httpx.Response(status_code, json=payload)

        super().__init__(handler)

    def bodies(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]


def _credentials(provider_type: str = "openai", api_key: str = "sk-test") -> ProviderConfig:
    return ProviderConfig(
        apiKey=api_key, baseUrl=BASE_URL, providerType=provider_type
    )


class ClientSanityTests(unittest.TestCase):
    def test_end_to_end_reply_is_trimmed(self) -> None:
        transport = RecordingTransport({"choices": [{"message": {"content": " Take rest. "}}]})
        config = ChatConfig(
            character_name="Dr. Watson",
            character_description="medical professional",
            first_message="Good day.",
            message="I have a fever.",
            temperature=0.9,
        )

        result = asyncio.run(_chat(RoleplayClient(_credentials(), transport=transport), config))

        self.assertEqual(result.to_output(), {"response": "Take rest."})
        self.assertEqual(str(transport.requests[0].url), f"{BASE_URL}/chat/completions")
        self.assertEqual(len(transport.bodies()[0]["messages"]), 4)

    def test_raw_output_and_request_log(self) -> None:
        transport = RecordingTransport({"choices": [{"message": {"content": "Rest."}}]})
        config = ChatConfig(
            character_name="Dr. Watson",
            character_description="medical professional",
            first_message="Good day.",
            message="I have a fever.",
            include_raw_output=True,
            include_request_log=True,
        )

        client = RoleplayClient(_credentials(), transport=transport)
        output = asyncio.run(_chat(client, config)).to_output()

        self.assertEqual(
            output["raw_data"][-1],
            {"role": "assistant", "content": "Rest.", "name": "Dr. Watson"},
        )
        self.assertEqual(len(output["raw_data"]), 5)
        log = output["log"]
        self.assertEqual(log["url"], f"{BASE_URL}/chat/completions")
        self.assertEqual(log["body"]["messages"], REDACTED)
        self.assertEqual(log["headers"]["Authorization"], REDACTED)
        self.assertEqual(log["body"]["temperature"], 0.9)
        self.assertNotIn("sk-test", json.dumps(log))

    def test_request_log_masks_anthropic_key(self) -> None:
        transport = RecordingTransport({"choices": [{"message": {"content": "Rest."}}]})
        config = ChatConfig(
            character_name="Dr. Watson",
            character_description="medical professional",
            first_message="Good day.",
            message="I have a fever.",
            include_request_log=True,
        )

        client = RoleplayClient(_credentials("anthropic"), transport=transport)
        log = asyncio.run(_chat(client, config)).to_output()["log"]

        self.assertEqual(log["headers"]["x-api-key"], REDACTED)
        self.assertEqual(log["headers"]["anthropic-version"], "2023-06-01")
        self.assertNotIn("Authorization", log["headers"])
        self.assertNotIn("sk-test", json.dumps(log))
        self.assertEqual(transport.requests[0].headers["x-api-key"], "sk-test")

    def test_missing_api_key(self) -> None:
        with self.assertRaises(ConfigurationError):
            RoleplayClient(_credentials(api_key=""))

    def test_ollama_runs_without_key(self) -> None:
        client = RoleplayClient(_credentials("ollama", api_key=""))
        self.assertEqual(client.provider.name, "ollama")
        asyncio.run(client.aclose())


class NodeTests(unittest.TestCase):
    def test_chat_items_processed_in_order(self) -> None:
        transport = RecordingTransport({"choices": [{"message": {"content": "Take rest."}}]})
        node = RoleplayNode(_credentials(), transport=transport)
        items = [WATSON_ITEM, {**WATSON_ITEM, "message": "And a cough."}]

        outputs = asyncio.run(node.execute(items))

        self.assertEqual(outputs, [{"response": "Take rest."}, {"response": "Take rest."}])
        last_turns = [b["messages"][-1]["content"] for b in transport.bodies()]
        self.assertEqual(last_turns, ["I have a fever.", "And a cough."])

    def test_include_flags_gate_sections(self) -> None:
        transport = RecordingTransport({"choices": [{"message": {"content": "ok"}}]})
        node = RoleplayNode(_credentials(), transport=transport)
        item = {
            **WATSON_ITEM,
            "useCustomModel": True,
            "customModel": "my/custom-model",
            "includeScenario": False,
            "scenario": "ignored without its flag",
            "includeMessageExample": True,
            "messageExample": "<START>",
            "includeUserName": True,
            "userName": "Holmes",
            "includeModelPreset": True,
            "modelPreset": "Preset",
            "chatHistory": json.dumps(
                [{"submit_history": [{"role": "user", "content": "earlier"}]}]
            ),
            "additionalFields": {"max_tokens": 64},
            "extraBody": '"seed": 7',
        }

        asyncio.run(node.execute([item]))
        body = transport.bodies()[0]

        contents = [m["content"] for m in body["messages"]]
        self.assertNotIn("Scenario:ignored without its flag", contents)
        self.assertIn("Here are examples of our conversation: <START>", contents)
        self.assertTrue(contents[0].endswith("and Holmes refer to user"))
        self.assertEqual(contents[-2:], ["earlier", "I have a fever."])
        self.assertEqual(body["model"], "my/custom-model")
        self.assertEqual(body["max_tokens"], 64)
        self.assertEqual(body["seed"], 7)

    def test_custom_operation_returns_credentials(self) -> None:
        node = RoleplayNode(_credentials("anthropic"), transport=RecordingTransport({}))

        outputs = asyncio.run(node.execute([{"operation": "custom"}]))

        self.assertEqual(
            outputs,
            [{"apiKey": "sk-test", "baseUrl": BASE_URL, "providerType": "anthropic"}],
        )

    def test_continue_on_fail_captures_errors(self) -> None:
        transport = RecordingTransport({"choices": []})
        node = RoleplayNode(_credentials(), continue_on_fail=True, transport=transport)
        items = [
            WATSON_ITEM,
            {"operation": "chat", "message": "missing persona"},
            {**WATSON_ITEM, "chatHistory": "{oops"},
        ]

        outputs = asyncio.run(node.execute(items))

        self.assertEqual(len(outputs), 3)
        self.assertIn("choices[0].message.content", outputs[0]["error"])
        self.assertIn("Invalid node parameters", outputs[1]["error"])
        self.assertIn("Invalid chat history format", outputs[2]["error"])
        self.assertEqual(len(transport.requests), 1)

    def test_first_error_aborts_without_continue_on_fail(self) -> None:
        transport = RecordingTransport({"error": {"message": "rate limited"}}, status_code=429)
        node = RoleplayNode(_credentials(), transport=transport)

        with self.assertRaises(ProviderError):
            asyncio.run(node.execute([WATSON_ITEM, WATSON_ITEM]))
        self.assertEqual(len(transport.requests), 1)

    def test_missing_api_key_aborts_even_when_tolerant(self) -> None:
        node = RoleplayNode(_credentials(api_key=""), continue_on_fail=True)
        with self.assertRaises(ConfigurationError):
            asyncio.run(node.execute([WATSON_ITEM]))

    def test_get_models(self) -> None:
        transport = RecordingTransport({"data": [{"id": "b", "name": "Beta"}, {"id": "a"}]})
        node = RoleplayNode(_credentials(), transport=transport)

        models = asyncio.run(node.get_models())

        self.assertEqual(
            models,
            [
                {"name": "a", "value": "a", "description": ""},
                {"name": "Beta", "value": "b", "description": ""},
            ],
        )
        self.assertEqual(str(transport.requests[0].url), f"{BASE_URL}/models")

    def test_get_models_wraps_errors(self) -> None:
        node = RoleplayNode(_credentials(), transport=RecordingTransport({"object": "list"}))
        with self.assertRaises(RoleplayAIError) as ctx:
            asyncio.run(node.get_models())
        self.assertIn("Failed to load models", str(ctx.exception))

    def test_parameters_use_host_names(self) -> None:
        params = ChatParameters.model_validate(
            {**WATSON_ITEM, "includeOtherPreMsg": True, "otherPreMsg": "x"}
        )
        config = params.to_config()
        self.assertEqual(config.other_pre_msg, "x")
        self.assertEqual(config.user_name, "you")
        self.assertEqual(config.model_id, "openrouter/auto")

    def test_loose_summary_and_additional_fields(self) -> None:
        params = ChatParameters.model_validate(
            {**WATSON_ITEM, "chatSummary": 42, "additionalFields": None}
        )
        self.assertEqual(params.chat_summary, "42")
        self.assertEqual(params.additional_fields, {})

        params = ChatParameters.model_validate({**WATSON_ITEM, "chatSummary": None})
        self.assertIsNone(params.to_config().chat_summary)

    def test_loose_parameters_still_reach_the_provider(self) -> None:
        transport = RecordingTransport({"choices": [{"message": {"content": "ok"}}]})
        node = RoleplayNode(_credentials(), transport=transport)
        item = {**WATSON_ITEM, "chatSummary": 42, "additionalFields": None}

        outputs = asyncio.run(node.execute([item]))

        self.assertEqual(outputs, [{"response": "ok"}])
        body = transport.bodies()[0]
        self.assertEqual(body["messages"][3], {"role": "system", "content": "42"})
        self.assertEqual(body["temperature"], 0.9)


async def _chat(client: RoleplayClient, config: ChatConfig):
    async with client:
        return await client.chat(config)


if __name__ == "__main__":
    unittest.main()
