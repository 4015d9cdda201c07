"""
Tests for the HTTP API in server/.
The app is built without its lifespan and wired with fake model clients.
"""
import json

import pytest
from fastapi.testclient import TestClient

from conftest import FakeEmbedClient, FakeLLMClient
from server import api_server
from server.api_server import create_app, wire_services
from shared.models.errors import GenerationFailure

API_KEY = "test-key"
USER = {"X-API-Key": API_KEY, "X-User-Id": "5"}
OTHER_USER = {"X-API-Key": API_KEY, "X-User-Id": "6"}
ADMIN = {"X-API-Key": API_KEY, "X-User-Id": "1"}


@pytest.fixture
def llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture
def client(helper_config, llm, monkeypatch):
    monkeypatch.setenv("APP_API_KEY", API_KEY)
    monkeypatch.setenv("APP_ADMIN_IDS", "[1]")
    monkeypatch.delenv("EMBED_DIMENSIONS", raising=False)
    app = create_app(lifespan_handler=None)
    wire_services(app, helper_config=helper_config, embed_client=FakeEmbedClient(default=[0.0, 0.0]), llm_client=llm)
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


def create_conversation(client, headers=USER, title="Security basics") -> dict:
    response = client.post("/conversations", json={"title": title}, headers=headers)
    assert response.status_code == 201
    return response.json()


class TestAuth:
    def test_missing_api_key(self, client):
        response = client.get("/conversations", headers={"X-User-Id": "5"})
        assert response.status_code == 401
        assert response.json() == {"error": "Authentication required."}

    def test_wrong_api_key(self, client):
        response = client.get("/conversations", headers={"X-API-Key": "nope", "X-User-Id": "5"})
        assert response.status_code == 401

    def test_invalid_user_id(self, client):
        response = client.get("/conversations", headers={"X-API-Key": API_KEY, "X-User-Id": "abc"})
        assert response.status_code == 401

    def test_admin_route_forbidden_for_users(self, client):
        response = client.post("/documents", json={"title": "t", "content": "c"}, headers=USER)
        assert response.status_code == 403
        assert "error" in response.json()

    def test_health_is_public(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_unknown_route_uses_error_body(self, client):
        response = client.get("/nowhere", headers=USER)
        assert response.status_code == 404
        assert response.json() == {"error": "Not Found"}


class TestChatEndpoint:
    def test_zero_trust_end_to_end(self, client, llm):
        llm.replies.extend([
            '{"query": "zero trust architecture"}',
            '{"answer": "Zero Trust assumes no implicit trust."}',
        ])
        conversation = create_conversation(client)

        response = client.post(
            "/chat", json={"message": "What is Zero Trust?", "conversationId": conversation["id"]}, headers=USER
        )

        assert response.status_code == 200
        body = response.json()
        assert body["sources"] == []
        assert body["message"]["role"] == "assistant"
        assert body["message"]["content"] == "Zero Trust assumes no implicit trust."
        assert body["message"]["conversationId"] == conversation["id"]
        assert body["message"]["sources"] == []

        messages = client.get(f"/conversations/{conversation['id']}/messages", headers=USER).json()
        assert [m["role"] for m in messages] == ["user", "assistant"]

    def test_empty_message_is_400(self, client):
        conversation = create_conversation(client)
        response = client.post("/chat", json={"message": " ", "conversationId": conversation["id"]}, headers=USER)
        assert response.status_code == 400
        assert "error" in response.json()

    def test_missing_field_is_400(self, client):
        response = client.post("/chat", json={"message": "hi"}, headers=USER)
        assert response.status_code == 400
        assert set(response.json()) == {"error"}

    def test_foreign_conversation_is_400(self, client):
        conversation = create_conversation(client, headers=OTHER_USER)
        response = client.post("/chat", json={"message": "hi", "conversationId": conversation["id"]}, headers=USER)
        assert response.status_code == 400

    def test_generation_failure_is_500_and_recorded(self, client, llm):
        llm.replies.extend(['{"query": "x"}', GenerationFailure("secret provider detail")])
        conversation = create_conversation(client)

        response = client.post("/chat", json={"message": "hi", "conversationId": conversation["id"]}, headers=USER)

        assert response.status_code == 500
        assert response.json() == {"error": GenerationFailure.public_message}
        assert "secret provider detail" not in response.text
        messages = client.get(f"/conversations/{conversation['id']}/messages", headers=USER).json()
        assert [m["role"] for m in messages] == ["user", "error"]

    def test_sources_are_returned(self, client, llm):
        llm.replies.append(json.dumps({"tags": ["ir"], "category": "incident-response", "summary": "s", "confidence": 0.8}))
        document = client.post("/documents", json={"title": "IR playbook", "content": "Contain first."}, headers=ADMIN).json()
        llm.replies.extend(['{"query": "incident"}', '{"answer": "Contain first."}'])
        conversation = create_conversation(client)

        body = client.post(
            "/chat", json={"message": "What to do first?", "conversationId": conversation["id"]}, headers=USER
        ).json()

        assert body["sources"] == [
            {"id": document["id"], "title": "IR playbook", "category": "incident-response", "tags": ["ir"]}
        ]
        assert body["message"]["sources"][0]["documentId"] == document["id"]


class TestConversationEndpoints:
    def test_list_and_search(self, client):
        create_conversation(client, title="Ransomware")
        create_conversation(client, title="Phishing")
        create_conversation(client, headers=OTHER_USER, title="Ransomware too")

        listed = client.get("/conversations", headers=USER).json()
        assert [c["title"] for c in listed] == ["Phishing", "Ransomware"]
        assert {"id", "title", "ownerId", "createdAt", "updatedAt"} <= set(listed[0])

        found = client.get("/conversations", params={"q": "ransom"}, headers=USER).json()
        assert [c["title"] for c in found] == ["Ransomware"]

    def test_messages_of_foreign_conversation_is_404(self, client):
        conversation = create_conversation(client, headers=OTHER_USER)
        response = client.get(f"/conversations/{conversation['id']}/messages", headers=USER)
        assert response.status_code == 404
        assert response.json() == {"error": "Conversation not found."}

    def test_delete(self, client):
        conversation = create_conversation(client)
        assert client.delete(f"/conversations/{conversation['id']}", headers=OTHER_USER).status_code == 404
        assert client.delete(f"/conversations/{conversation['id']}", headers=USER).status_code == 204
        assert client.get(f"/conversations/{conversation['id']}/messages", headers=USER).status_code == 404

    def test_blank_title_is_400(self, client):
        response = client.post("/conversations", json={"title": "  "}, headers=USER)
        assert response.status_code == 400


class TestDocumentEndpoints:
    def add_document(self, client, llm, title="NIST CSF") -> dict:
        llm.replies.append(json.dumps({"tags": ["nist"], "category": "frameworks", "summary": "CSF.", "confidence": 1}))
        response = client.post("/documents", json={"title": title, "content": "Identify. Protect."}, headers=ADMIN)
        assert response.status_code == 201
        return response.json()

    def test_create_and_list_without_embeddings(self, client, llm):
        document = self.add_document(client, llm)
        assert document["category"] == "frameworks"
        assert document["ownerId"] == 1
        assert "embedding" not in document

        listed = client.get("/documents", headers=USER).json()
        assert [d["id"] for d in listed] == [document["id"]]
        assert "embedding" not in listed[0]

    def test_update_tags(self, client, llm):
        document = self.add_document(client, llm)
        response = client.patch(f"/documents/{document['id']}/tags", json={"tags": ["csf", "csf", " nist "]}, headers=ADMIN)
        assert response.status_code == 200
        assert response.json()["tags"] == ["csf", "nist"]
        assert response.json()["content"] == document["content"]

    def test_list_only_own_uploads(self, client, llm, monkeypatch):
        monkeypatch.setenv("APP_ADMIN_IDS", "[1,2]")
        mine = self.add_document(client, llm, title="Mine")
        llm.replies.append(json.dumps({"tags": [], "category": "compliance", "summary": "", "confidence": 1}))
        other_admin = {"X-API-Key": API_KEY, "X-User-Id": "2"}
        assert client.post("/documents", json={"title": "Theirs", "content": "x"}, headers=other_admin).status_code == 201

        own = client.get("/documents", params={"mine": "true"}, headers=ADMIN).json()
        assert [d["id"] for d in own] == [mine["id"]]
        assert len(client.get("/documents", headers=ADMIN).json()) == 2

    def test_get_document(self, client, llm):
        document = self.add_document(client, llm)
        response = client.get(f"/documents/{document['id']}", headers=USER)
        assert response.status_code == 200
        assert response.json()["title"] == "NIST CSF"
        assert client.get("/documents/999", headers=USER).json() == {"error": "Document not found."}

    def test_update_tags_unknown_document(self, client):
        response = client.patch("/documents/999/tags", json={"tags": ["x"]}, headers=ADMIN)
        assert response.status_code == 404
        assert response.json() == {"error": "Document not found."}

    def test_delete_is_idempotent(self, client, llm):
        document = self.add_document(client, llm)
        assert client.delete(f"/documents/{document['id']}", headers=ADMIN).status_code == 204
        assert client.delete(f"/documents/{document['id']}", headers=ADMIN).status_code == 204
        assert client.get("/documents", headers=USER).json() == []

    def test_classification_failure_is_500(self, client, llm):
        llm.replies.append("not json at all")
        response = client.post("/documents", json={"title": "t", "content": "c"}, headers=ADMIN)
        assert response.status_code == 500
        assert set(response.json()) == {"error"}


class TestLifespan:
    class BootedClient(FakeEmbedClient):
        def __init__(self):
            super().__init__()
            self.closed = False

        async def boot(self):
            pass

        async def close(self):
            self.closed = True

    def test_failed_connection_check_closes_clients(self, monkeypatch):
        monkeypatch.setenv("APP_API_KEY", API_KEY)
        embed_client, llm_client = self.BootedClient(), self.BootedClient()

        class Manager:
            def __init__(self, client):
                self.client = client

            def __call__(self, helper_config):
                return self

            def get_client(self):
                return self.client

        async def unreachable(embed, llm):
            raise RuntimeError("embedding backend unreachable")

        monkeypatch.setattr(api_server, "EmbedClientManager", Manager(embed_client))
        monkeypatch.setattr(api_server, "LLMClientManager", Manager(llm_client))
        monkeypatch.setattr(api_server, "check_connections", unreachable)

        with pytest.raises(RuntimeError, match="unreachable"):
            with TestClient(create_app()):
                pass

        assert embed_client.closed
        assert llm_client.closed
