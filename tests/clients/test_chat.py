"""
Tests for the chat-completion client against a mocked HTTP transport.
"""

import asyncio
import json

import httpx
import pytest
from openai import AsyncOpenAI

from cinemate.clients.chat import ChatClient, ChatError


def completion_body(content):
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "gpt-5-nano",
        "choices": [{
            "index": 0,
            "message": {"role": "assistant", "content": content},
            "finish_reason": "stop",
        }],
        "usage": {"prompt_tokens": 12, "completion_tokens": 5, "total_tokens": 17},
    }


def make_client(handler):
    client = ChatClient(service="openai", model="gpt-5-nano", api_key="sk-test", base_url="https://ai.test/v1")
    client._client = AsyncOpenAI(
        api_key="sk-test",
        base_url="https://ai.test/v1",
        max_retries=0,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    return client


def complete(client, **kwargs):
    async def main():
        try:
            return await client.complete([{"role": "user", "content": "hi"}], **kwargs)
        finally:
            await client.close()
    return asyncio.run(main())


class TestChatClient:
    """ChatClient.complete."""

    def test_json_mode_request(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=completion_body('{"recommendations": []}'))

        result = complete(make_client(handler), json_mode=True)

        assert result.content == '{"recommendations": []}'
        assert result.prompt_tokens == 12
        assert result.finish_reason == "stop"
        assert seen["body"]["model"] == "gpt-5-nano"
        assert seen["body"]["response_format"] == {"type": "json_object"}

    def test_api_error_wrapped(self):
        client = make_client(lambda request: httpx.Response(500, json={"error": {"message": "overloaded"}}))
        with pytest.raises(ChatError):
            complete(client)

    def test_missing_key(self):
        client = ChatClient(service="perplexity", model="sonar-pro", api_key=None)
        assert not client.is_configured
        with pytest.raises(ChatError, match="perplexity API key not configured"):
            asyncio.run(client.complete([{"role": "user", "content": "hi"}]))
