"""
Tests for the embedding and chat clients under shared/clients/.
Backends are replaced by httpx.MockTransport.
"""
import json

import httpx
import pytest

from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.embed.ollama.EmbedClientOllama import EmbedClientOllama
from shared.clients.embed.openai.EmbedClientOpenai import EmbedClientOpenai
from shared.clients.llm.LLMClientManager import LLMClientManager
from shared.clients.llm.ollama.LLMClientOllama import LLMClientOllama
from shared.clients.llm.openai.LLMClientOpenai import LLMClientOpenai
from shared.models.errors import EmbeddingFailure, GenerationFailure, ValidationFailure


@pytest.fixture
def client_env(monkeypatch):
    monkeypatch.setenv("EMBED_MODEL", "nomic-embed-text")
    monkeypatch.setenv("EMBED_MODEL_MAX_CHARS", "20")
    monkeypatch.setenv("EMBED_OLLAMA_BASE_URL", "http://ollama:11434")
    monkeypatch.setenv("EMBED_OPENAI_API_KEY", "sk-embed")
    monkeypatch.setenv("LLM_CHAT_MODEL", "gpt-4o")
    monkeypatch.setenv("LLM_OLLAMA_BASE_URL", "http://ollama:11434")
    monkeypatch.setenv("LLM_OPENAI_API_KEY", "sk-chat")
    monkeypatch.delenv("EMBED_OPENAI_BASE_URL", raising=False)
    monkeypatch.delenv("LLM_OPENAI_BASE_URL", raising=False)


class TestEmbedClients:
    @pytest.mark.asyncio
    async def test_ollama_embed(self, helper_config, client_env):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"embeddings": [[0.1, 0.2, 0.3]]})

        client = EmbedClientOllama(helper_config=helper_config)
        await client.boot(transport=httpx.MockTransport(handler))
        try:
            vector = await client.embed("What is Zero Trust? And much more text")
        finally:
            await client.close()

        assert vector == [0.1, 0.2, 0.3]
        assert seen["url"] == "http://ollama:11434/api/embed"
        assert seen["body"] == {"model": "nomic-embed-text", "input": ["What is Zero Trust? "]}

    @pytest.mark.asyncio
    async def test_openai_embed_sorts_by_index(self, helper_config, client_env):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["Authorization"] == "Bearer sk-embed"
            assert str(request.url) == "https://api.openai.com/v1/embeddings"
            return httpx.Response(200, json={"data": [
                {"index": 1, "embedding": [2.0]},
                {"index": 0, "embedding": [1.0]},
            ]})

        client = EmbedClientOpenai(helper_config=helper_config)
        await client.boot(transport=httpx.MockTransport(handler))
        assert await client.do_embed(["a", "b"]) == [[1.0], [2.0]]
        await client.close()

    @pytest.mark.asyncio
    async def test_timeout_becomes_embedding_failure(self, helper_config, client_env):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        client = EmbedClientOllama(helper_config=helper_config)
        await client.boot(transport=httpx.MockTransport(handler))
        with pytest.raises(EmbeddingFailure) as exc_info:
            await client.embed("q")
        assert isinstance(exc_info.value.__cause__, httpx.TimeoutException)
        await client.close()

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(500, text="internal error"),
            httpx.Response(200, json={"embeddings": []}),
            httpx.Response(200, json={"embeddings": [[0.1, "x"]]}),
            httpx.Response(200, json={"embeddings": [[0.1], [0.2]]}),
        ],
    )
    @pytest.mark.asyncio
    async def test_bad_responses_become_embedding_failure(self, helper_config, client_env, response):
        client = EmbedClientOllama(helper_config=helper_config)
        await client.boot(transport=httpx.MockTransport(lambda request: response))
        with pytest.raises(EmbeddingFailure):
            await client.embed("q")
        await client.close()

    @pytest.mark.asyncio
    async def test_empty_text_is_rejected(self, helper_config, client_env):
        client = EmbedClientOllama(helper_config=helper_config)
        with pytest.raises(ValidationFailure):
            await client.embed("   ")

    @pytest.mark.asyncio
    async def test_request_before_boot_raises(self, helper_config, client_env):
        client = EmbedClientOllama(helper_config=helper_config)
        with pytest.raises(RuntimeError):
            await client.do_request(endpoint="/api/embed")

    def test_missing_required_config(self, helper_config, client_env, monkeypatch):
        monkeypatch.delenv("EMBED_OLLAMA_BASE_URL")
        with pytest.raises(ValueError):
            EmbedClientOllama(helper_config=helper_config)

    def test_manager_selects_engine(self, helper_config, client_env, monkeypatch):
        monkeypatch.setenv("EMBED_ENGINE", "OpenAI")
        client = EmbedClientManager(helper_config=helper_config).get_client()
        assert isinstance(client, EmbedClientOpenai)
        assert client.get_engine_name() == "openai"

    def test_manager_rejects_unknown_engine(self, helper_config, client_env, monkeypatch):
        monkeypatch.setenv("EMBED_ENGINE", "nonexistent")
        with pytest.raises(ValueError):
            EmbedClientManager(helper_config=helper_config)


class TestLLMClients:
    @pytest.mark.asyncio
    async def test_openai_chat_json_mode(self, helper_config, client_env):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": '{"answer": "hi"}'}}]})

        client = LLMClientOpenai(helper_config=helper_config)
        await client.boot(transport=httpx.MockTransport(handler))
        reply = await client.do_chat([{"role": "user", "content": "hello"}], json_mode=True)
        await client.close()

        assert reply == '{"answer": "hi"}'
        assert seen["body"]["model"] == "gpt-4o"
        assert seen["body"]["response_format"] == {"type": "json_object"}

    @pytest.mark.asyncio
    async def test_ollama_chat(self, helper_config, client_env):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"message": {"role": "assistant", "content": "{}"}})

        client = LLMClientOllama(helper_config=helper_config)
        await client.boot(transport=httpx.MockTransport(handler))
        assert await client.do_chat([{"role": "user", "content": "x"}], json_mode=False) == "{}"
        await client.close()

        assert seen["url"] == "http://ollama:11434/api/chat"
        assert seen["body"]["stream"] is False
        assert "format" not in seen["body"]

    @pytest.mark.asyncio
    async def test_http_error_becomes_generation_failure(self, helper_config, client_env):
        client = LLMClientOpenai(helper_config=helper_config)
        await client.boot(transport=httpx.MockTransport(lambda request: httpx.Response(429, text="rate limited")))
        with pytest.raises(GenerationFailure):
            await client.do_chat([{"role": "user", "content": "x"}])
        await client.close()

    @pytest.mark.asyncio
    async def test_timeout_becomes_generation_failure(self, helper_config, client_env):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("no route", request=request)

        client = LLMClientOllama(helper_config=helper_config)
        await client.boot(transport=httpx.MockTransport(handler))
        with pytest.raises(GenerationFailure):
            await client.do_chat([{"role": "user", "content": "x"}])
        await client.close()

    @pytest.mark.asyncio
    async def test_missing_choices_becomes_generation_failure(self, helper_config, client_env):
        client = LLMClientOpenai(helper_config=helper_config)
        await client.boot(transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"choices": []})))
        with pytest.raises(GenerationFailure):
            await client.do_chat([{"role": "user", "content": "x"}])
        await client.close()

    def test_manager_selects_engine(self, helper_config, client_env, monkeypatch):
        monkeypatch.setenv("LLM_ENGINE", "ollama")
        assert isinstance(LLMClientManager(helper_config=helper_config).get_client(), LLMClientOllama)
