from collections.abc import Iterator
from functools import lru_cache
from itertools import chain
from typing import Annotated, Any

from fastapi import Depends, FastAPI, File, HTTPException, Query, UploadFile
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from ragdemo.config import get_settings
from ragdemo.dependencies import build_embedding_client, build_llm_client, build_rag_service
from ragdemo.llm import (
    DEFAULT_SYSTEM_PROMPT,
    ROLE_SYSTEM_PROMPT,
    ChatMessage,
    LLMClient,
    LLMClientError,
)
from ragdemo.logger import get_logger
from ragdemo.services.rag.embedding_client import EmbeddingClientError
from ragdemo.services.rag.service import RagService
from ragdemo.services.structured import (
    BookRecommendation,
    OutputParseError,
    RecipeResponse,
    StructuredOutputService,
    WeatherResponse,
)

logger = get_logger(__name__)

app = FastAPI(title="RAG Chat Demo API", version="0.1.0")


class SystemChatRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    message: str = Field(min_length=1)


class AssistantRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    role: str = Field(min_length=1)
    question: str = Field(min_length=1)


class ConversationRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    messages: list[Annotated[str, Field(min_length=1)]] = Field(min_length=1)


class AddContentRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1)
    content: str = Field(min_length=1)


def get_llm_client() -> LLMClient:
    return build_llm_client(get_settings())


@lru_cache
def get_rag_service() -> RagService:
    settings = get_settings()
    return build_rag_service(
        settings,
        llm_client=build_llm_client(settings),
        embedding_client=build_embedding_client(settings),
    )


def get_structured_service(
    llm_client: Annotated[LLMClient, Depends(get_llm_client)],
) -> StructuredOutputService:
    return StructuredOutputService(llm_client)


def _upstream_error(exc: Exception) -> HTTPException:
    if isinstance(exc, EmbeddingClientError):
        return HTTPException(status_code=502, detail=f"Embedding request failed: {exc}")
    if isinstance(exc, OutputParseError):
        return HTTPException(status_code=502, detail=f"Could not parse model output: {exc}")
    return HTTPException(status_code=502, detail=f"LLM request failed: {exc}")


def _sse_event(fragment: str) -> str:
    return "".join(f"data: {line}\n" for line in fragment.split("\n")) + "\n"


def _event_stream(fragments: Iterator[str]) -> StreamingResponse:
    # pull the first fragment eagerly so upstream failures still map to a status code
    try:
        first = next(fragments, None)
    except (LLMClientError, EmbeddingClientError) as exc:
        raise _upstream_error(exc) from exc

    head = [] if first is None else [first]

    def body() -> Iterator[str]:
        try:
            for fragment in chain(head, fragments):
                yield _sse_event(fragment)
        except (LLMClientError, EmbeddingClientError) as exc:
            logger.warning("stream aborted: %s", exc)
        finally:
            close = getattr(fragments, "close", None)
            if close is not None:
                close()

    return StreamingResponse(body(), media_type="text/event-stream")


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/api/chat/simple")
def simple_chat(
    llm_client: Annotated[LLMClient, Depends(get_llm_client)],
    message: str = Query(min_length=1),
) -> dict[str, str]:
    try:
        result = llm_client.complete(message)
    except LLMClientError as exc:
        raise _upstream_error(exc) from exc
    return {"question": message, "answer": result.answer}


@app.post("/api/chat/system")
def chat_with_system(
    request: SystemChatRequest,
    llm_client: Annotated[LLMClient, Depends(get_llm_client)],
) -> dict[str, str]:
    messages = [
        ChatMessage(role="system", content=DEFAULT_SYSTEM_PROMPT),
        ChatMessage(role="user", content=request.message),
    ]
    try:
        result = llm_client.chat(messages)
    except LLMClientError as exc:
        raise _upstream_error(exc) from exc
    return {"question": request.message, "answer": result.answer, "model": result.model}


@app.post("/api/chat/assistant")
def chat_with_role(
    request: AssistantRequest,
    llm_client: Annotated[LLMClient, Depends(get_llm_client)],
) -> dict[str, str]:
    messages = [
        ChatMessage(role="system", content=ROLE_SYSTEM_PROMPT.format(role=request.role)),
        ChatMessage(role="user", content=request.question),
    ]
    try:
        result = llm_client.chat(messages)
    except LLMClientError as exc:
        raise _upstream_error(exc) from exc
    return {"role": request.role, "question": request.question, "answer": result.answer}


@app.get("/api/chat/stream")
def stream_chat(
    llm_client: Annotated[LLMClient, Depends(get_llm_client)],
    message: str = Query(min_length=1),
) -> StreamingResponse:
    return _event_stream(iter(llm_client.stream(message)))


@app.post("/api/chat/conversation")
def conversation(
    request: ConversationRequest,
    llm_client: Annotated[LLMClient, Depends(get_llm_client)],
) -> dict[str, Any]:
    messages = [ChatMessage(role="user", content=text) for text in request.messages]
    try:
        result = llm_client.chat(messages)
    except LLMClientError as exc:
        raise _upstream_error(exc) from exc
    return {"conversation": request.messages, "response": result.answer}


@app.get("/api/structured/weather")
def structured_weather(
    service: Annotated[StructuredOutputService, Depends(get_structured_service)],
    city: str = Query(min_length=1),
) -> WeatherResponse:
    try:
        return service.weather(city)
    except (LLMClientError, OutputParseError) as exc:
        raise _upstream_error(exc) from exc


@app.get("/api/structured/books")
def structured_books(
    service: Annotated[StructuredOutputService, Depends(get_structured_service)],
    genre: str = Query(min_length=1),
    count: int = Query(default=3, ge=1, le=10),
) -> BookRecommendation:
    try:
        return service.books(genre, count)
    except (LLMClientError, OutputParseError) as exc:
        raise _upstream_error(exc) from exc


@app.get("/api/structured/recipe")
def structured_recipe(
    service: Annotated[StructuredOutputService, Depends(get_structured_service)],
    dish: str = Query(min_length=1),
) -> RecipeResponse:
    try:
        return service.recipe(dish)
    except (LLMClientError, OutputParseError) as exc:
        raise _upstream_error(exc) from exc


def _ingest(rag_service: RagService, title: str, content: str) -> int:
    try:
        summary = rag_service.ingest(title, content)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except EmbeddingClientError as exc:
        raise _upstream_error(exc) from exc
    return summary.chunk_count


@app.post("/api/rag/add")
def add_content(
    request: AddContentRequest,
    rag_service: Annotated[RagService, Depends(get_rag_service)],
) -> dict[str, Any]:
    chunk_count = _ingest(rag_service, request.title, request.content)
    return {
        "status": "success",
        "message": "Content indexed successfully",
        "title": request.title,
        "chunks": chunk_count,
    }


@app.post("/api/rag/upload")
def upload_document(
    rag_service: Annotated[RagService, Depends(get_rag_service)],
    file: UploadFile = File(...),
) -> dict[str, Any]:
    if not file.filename:
        raise HTTPException(status_code=400, detail="uploaded file must have a filename")

    try:
        content = file.file.read().decode("utf-8")
    except UnicodeDecodeError as exc:
        raise HTTPException(status_code=400, detail="uploaded file must be UTF-8 text") from exc

    chunk_count = _ingest(rag_service, file.filename, content)
    return {
        "status": "success",
        "message": "Document indexed successfully",
        "filename": file.filename,
        "chunks": chunk_count,
    }


@app.get("/api/rag/query")
def rag_query(
    rag_service: Annotated[RagService, Depends(get_rag_service)],
    question: str = Query(min_length=1),
) -> dict[str, str]:
    try:
        answer = rag_service.query(question)
    except (LLMClientError, EmbeddingClientError) as exc:
        raise _upstream_error(exc) from exc
    return {"question": question, "answer": answer}


@app.get("/api/rag/query/stream")
def rag_query_stream(
    rag_service: Annotated[RagService, Depends(get_rag_service)],
    question: str = Query(min_length=1),
) -> StreamingResponse:
    return _event_stream(rag_service.stream_query(question))


@app.get("/api/rag/documents")
def list_documents(
    rag_service: Annotated[RagService, Depends(get_rag_service)],
) -> list[dict[str, Any]]:
    return [
        {
            "id": chunk.chunk_id,
            "title": chunk.source_title,
            "chunk": chunk.sequence_index,
            "text": chunk.text,
        }
        for chunk in rag_service.list_chunks()
    ]


@app.delete("/api/rag/clear")
def clear_knowledge_base(
    rag_service: Annotated[RagService, Depends(get_rag_service)],
) -> dict[str, str]:
    rag_service.clear_all()
    return {"status": "success", "message": "Knowledge base cleared"}


def run() -> None:
    import uvicorn

    uvicorn.run("ragdemo.main:app", host="0.0.0.0", port=8000, reload=False)


if __name__ == "__main__":
    run()
