from fastapi.testclient import TestClient

from fakes import FailingLLMClient, RecordingLLMClient
from ragdemo.llm import DEFAULT_SYSTEM_PROMPT
from ragdemo.main import app, get_llm_client


def test_simple_chat_uses_configured_fake_provider(client: TestClient) -> None:
    response = client.get("/api/chat/simple", params={"message": "Tell me a joke"})

    assert response.status_code == 200
    assert response.json() == {"question": "Tell me a joke", "answer": "echo: Tell me a joke"}


def test_simple_chat_requires_message(client: TestClient) -> None:
    response = client.get("/api/chat/simple")

    assert response.status_code == 422


def test_system_chat_sends_system_prompt_first(client: TestClient) -> None:
    fake_client = RecordingLLMClient(answer="Java is a language.")
    app.dependency_overrides[get_llm_client] = lambda: fake_client

    response = client.post("/api/chat/system", json={"message": "What is Java?"})

    assert response.status_code == 200
    assert response.json() == {
        "question": "What is Java?",
        "answer": "Java is a language.",
        "model": "fake-model",
    }
    roles = [(message.role, message.content) for message in fake_client.messages[0]]
    assert roles == [("system", DEFAULT_SYSTEM_PROMPT), ("user", "What is Java?")]


def test_assistant_chat_fills_role_into_system_prompt(client: TestClient) -> None:
    fake_client = RecordingLLMClient(answer="Generics add type parameters.")
    app.dependency_overrides[get_llm_client] = lambda: fake_client

    response = client.post(
        "/api/chat/assistant",
        json={"role": "Java expert", "question": "Explain generics"},
    )

    assert response.status_code == 200
    assert response.json() == {
        "role": "Java expert",
        "question": "Explain generics",
        "answer": "Generics add type parameters.",
    }
    roles = [(message.role, message.content) for message in fake_client.messages[0]]
    assert roles == [
        ("system", "You are a Java expert. Provide detailed, accurate answers."),
        ("user", "Explain generics"),
    ]


def test_assistant_chat_requires_role(client: TestClient) -> None:
    response = client.post("/api/chat/assistant", json={"question": "Explain generics"})

    assert response.status_code == 422


def test_system_chat_rejects_unknown_fields(client: TestClient) -> None:
    response = client.post("/api/chat/system", json={"message": "hi", "extra": True})

    assert response.status_code == 422


def test_conversation_sends_every_message_as_user_turn(client: TestClient) -> None:
    fake_client = RecordingLLMClient(answer="Sure, let's talk REST.")
    app.dependency_overrides[get_llm_client] = lambda: fake_client
    messages = ["Hi, I'm working on a Spring project", "Can you help me with REST APIs?"]

    response = client.post("/api/chat/conversation", json={"messages": messages})

    assert response.status_code == 200
    assert response.json() == {"conversation": messages, "response": "Sure, let's talk REST."}
    assert [message.role for message in fake_client.messages[0]] == ["user", "user"]


def test_conversation_requires_messages(client: TestClient) -> None:
    response = client.post("/api/chat/conversation", json={"messages": []})

    assert response.status_code == 422


def test_stream_chat_returns_server_sent_events(client: TestClient) -> None:
    app.dependency_overrides[get_llm_client] = lambda: RecordingLLMClient(
        fragments=["Code ", "flows\nlike water"]
    )

    response = client.get("/api/chat/stream", params={"message": "haiku"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert response.text == "data: Code \n\ndata: flows\ndata: like water\n\n"


def test_chat_maps_llm_failure_to_502(client: TestClient) -> None:
    app.dependency_overrides[get_llm_client] = lambda: FailingLLMClient()

    simple = client.get("/api/chat/simple", params={"message": "hello"})
    stream = client.get("/api/chat/stream", params={"message": "hello"})

    assert simple.status_code == 502
    assert simple.json()["detail"] == "LLM request failed: simulated failure"
    assert stream.status_code == 502
