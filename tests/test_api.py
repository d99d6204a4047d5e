"""Tests for the application server and the tool server HTTP surfaces."""
import httpx
import pytest

from chatforms.api import create_chat_app, create_tool_app
from chatforms.errors import ExternalServiceError
from chatforms.executor import HttpToolExecutor
from chatforms.memory import InMemoryConversationStore
from chatforms.orchestrator import ChatOrchestrator
from chatforms.tools import SHOW_RESERVATION_FORM, SUBMIT_RESERVATION, default_tool_catalog

from .conftest import SYSTEM_PROMPT, ScriptedLLM


def _client(app) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")


@pytest.fixture
async def chat_client(orchestrator):
    async with _client(create_chat_app(orchestrator=orchestrator)) as client:
        yield client


@pytest.fixture
async def tool_client():
    async with _client(create_tool_app()) as client:
        yield client


class TestChatEndpoint:
    """Tests for POST /api/chat."""

    @pytest.mark.asyncio
    async def test_chat_reply(self, chat_client, llm):
        llm.reply("Hello!")

        response = await chat_client.post("/api/chat", json={"message": "hi"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Hello!"
        assert body["conversationId"].startswith("conv_")
        assert "uiResource" not in body

    @pytest.mark.asyncio
    async def test_chat_returns_form(self, chat_client, llm):
        llm.request_tool(SHOW_RESERVATION_FORM, restaurantName="Chez Test")

        response = await chat_client.post("/api/chat", json={"message": "book a table"})

        body = response.json()
        assert body["message"] == "Reservation form generated"
        assert body["uiResource"]["content"]["type"] == "rawHtml"
        assert "htmlString" in body["uiResource"]["content"]
        assert body["functionCall"] == {
            "name": SHOW_RESERVATION_FORM,
            "arguments": {"restaurantName": "Chez Test"},
        }

    @pytest.mark.asyncio
    async def test_conversation_continues(self, chat_client):
        first = (await chat_client.post("/api/chat", json={"message": "hi"})).json()

        second = await chat_client.post(
            "/api/chat",
            json={"message": "again", "conversationId": first["conversationId"]},
        )

        assert second.json()["conversationId"] == first["conversationId"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{}, {"message": ""}, {"message": "   "}, {"message": 3}])
    async def test_invalid_message(self, chat_client, payload):
        response = await chat_client.post("/api/chat", json=payload)

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"].startswith("Message")

    @pytest.mark.asyncio
    async def test_malformed_body(self, chat_client):
        response = await chat_client.post(
            "/api/chat", content=b"{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_model_failure_is_502_with_generic_message(self, chat_client, llm):
        llm.fail(ExternalServiceError("openai", "invalid api key sk-secret"))

        response = await chat_client.post("/api/chat", json={"message": "hi"})

        assert response.status_code == 502
        body = response.json()
        assert body["success"] is False
        assert "sk-secret" not in body["error"]


class TestConversationEndpoints:
    """Tests for GET and DELETE /api/chat/{id}."""

    @pytest.mark.asyncio
    async def test_get_history_without_system_message(self, chat_client):
        reply = (await chat_client.post("/api/chat", json={"message": "hi"})).json()

        response = await chat_client.get(f"/api/chat/{reply['conversationId']}")

        assert response.status_code == 200
        body = response.json()
        assert body["conversationId"] == reply["conversationId"]
        assert [m["role"] for m in body["messages"]] == ["user", "assistant"]
        assert "createdAt" in body["messages"][0]

    @pytest.mark.asyncio
    async def test_get_unknown_conversation(self, chat_client):
        response = await chat_client.get("/api/chat/conv_missing")

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "error": "Conversation not found: conv_missing",
        }

    @pytest.mark.asyncio
    async def test_delete_conversation(self, chat_client):
        reply = (await chat_client.post("/api/chat", json={"message": "hi"})).json()
        url = f"/api/chat/{reply['conversationId']}"

        response = await chat_client.delete(url)
        assert response.json() == {"success": True, "message": "Conversation deleted"}

        assert (await chat_client.delete(url)).status_code == 404
        assert (await chat_client.get(url)).status_code == 404


class TestToolCallEndpoint:
    """Tests for POST /api/tool-call."""

    @pytest.mark.asyncio
    async def test_form_submission_is_narrated(self, chat_client, llm, reservation_params):
        reply = (await chat_client.post("/api/chat", json={"message": "book"})).json()
        llm.reply("All set, see you on the 31st!")

        response = await chat_client.post("/api/tool-call", json={
            "toolName": SUBMIT_RESERVATION,
            "params": reservation_params,
            "conversationId": reply["conversationId"],
        })

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "All set, see you on the 31st!"
        assert body["toolResult"]["success"] is True
        assert body["narrated"] is True

    @pytest.mark.asyncio
    async def test_without_conversation(self, chat_client, reservation_params):
        response = await chat_client.post("/api/tool-call", json={
            "toolName": SUBMIT_RESERVATION,
            "params": reservation_params,
        })

        body = response.json()
        assert body["message"] == body["toolResult"]["message"]
        assert "conversationId" not in body

    @pytest.mark.asyncio
    async def test_unknown_tool_rejected(self, chat_client, executor):
        response = await chat_client.post(
            "/api/tool-call", json={"toolName": "delete_everything", "params": {}}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Unknown tool: delete_everything"
        assert executor.calls == []

    @pytest.mark.asyncio
    async def test_non_object_params_rejected(self, chat_client):
        response = await chat_client.post(
            "/api/tool-call", json={"toolName": SUBMIT_RESERVATION, "params": [1, 2]}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_missing_params_rejected(self, chat_client, executor):
        response = await chat_client.post(
            "/api/tool-call", json={"toolName": SUBMIT_RESERVATION}
        )

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "Tool parameters must be an object",
        }
        assert executor.calls == []


class TestServiceEndpoints:
    """Tests for /health and /api."""

    @pytest.mark.asyncio
    async def test_health(self, chat_client):
        response = await chat_client.get("/health")
        assert response.json() == {"status": "ok", "conversations": 0}

    @pytest.mark.asyncio
    async def test_index_lists_endpoints(self, chat_client):
        body = (await chat_client.get("/api")).json()
        assert "POST /api/chat" in body["endpoints"]
        assert "POST /api/tool-call" in body["endpoints"]


class TestToolServer:
    """Tests for the tool server app."""

    @pytest.mark.asyncio
    async def test_list_tools(self, tool_client):
        response = await tool_client.get("/tools")

        names = [tool["name"] for tool in response.json()["tools"]]
        assert names == [SHOW_RESERVATION_FORM, SUBMIT_RESERVATION]

    @pytest.mark.asyncio
    async def test_show_form(self, tool_client):
        response = await tool_client.post(
            f"/tools/{SHOW_RESERVATION_FORM}", json={"restaurantName": "Chez Test"}
        )

        body = response.json()
        assert body["success"] is True
        assert body["uiResource"]["uri"].startswith("ui://reservation-form/")

    @pytest.mark.asyncio
    async def test_invalid_arguments_are_a_failed_result(self, tool_client):
        response = await tool_client.post(f"/tools/{SUBMIT_RESERVATION}", json={})

        assert response.status_code == 200
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_unknown_tool(self, tool_client):
        response = await tool_client.post("/tools/delete_everything", json={})

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Unknown tool: delete_everything"}

    @pytest.mark.asyncio
    async def test_non_object_body(self, tool_client):
        response = await tool_client.post(f"/tools/{SUBMIT_RESERVATION}", json=["x"])
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_health(self, tool_client):
        assert (await tool_client.get("/health")).json() == {"status": "ok", "tools": 2}


class TestEndToEnd:
    """Application server talking to the tool server over HTTP."""

    @pytest.mark.asyncio
    async def test_book_a_table(self, reservation_params):
        llm = ScriptedLLM()
        llm.request_tool(SHOW_RESERVATION_FORM, restaurantName="Chez Test")
        llm.reply("Your table at Chez Test is reserved.")

        executor = HttpToolExecutor(
            "http://tools", transport=httpx.ASGITransport(app=create_tool_app())
        )
        store = InMemoryConversationStore(system_prompt=SYSTEM_PROMPT)
        orchestrator = ChatOrchestrator(store, llm, executor, catalog=default_tool_catalog())

        async with _client(create_chat_app(orchestrator=orchestrator)) as client:
            reply = (await client.post(
                "/api/chat", json={"message": "I'd like to book a table at Chez Test"}
            )).json()
            assert reply["uiResource"]["uri"].startswith("ui://reservation-form/")

            result = (await client.post("/api/tool-call", json={
                "toolName": SUBMIT_RESERVATION,
                "params": reservation_params,
                "conversationId": reply["conversationId"],
            })).json()
            assert result["message"] == "Your table at Chez Test is reserved."

            history = (await client.get(f"/api/chat/{reply['conversationId']}")).json()
            assert [m["role"] for m in history["messages"]] == [
                "user", "assistant", "user", "assistant",
            ]

        await executor.close()
