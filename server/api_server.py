"""FastAPI application entry point for the document chat assistant."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Callable

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.logging.logging_setup import setup_logging
from shared.helper.HelperConfig import HelperConfig
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.llm.LLMClientManager import LLMClientManager
from shared.stores.chat.ChatStoreInterface import ChatStoreInterface
from shared.stores.chat.memory.ChatStoreMemory import ChatStoreMemory
from shared.stores.document.DocumentStoreInterface import DocumentStoreInterface
from shared.stores.document.memory.DocumentStoreMemory import DocumentStoreMemory
from services.document_ingest.DocumentClassifier import DocumentClassifier
from services.document_ingest.IngestService import IngestService
from services.rag_chat.AnswerGenerator import AnswerGenerator
from services.rag_chat.ChatService import ChatService
from services.rag_chat.ContextAssembler import ContextAssembler
from services.rag_chat.QueryImprover import QueryImprover
from services.rag_chat.Retriever import Retriever
from services.rag_chat.TurnObserver import TurnObserverInterface
from server.core.error_handlers import register_exception_handlers
from server.routers.ChatRouter import router as chat_router
from server.routers.ConversationRouter import router as conversation_router
from server.routers.DocumentRouter import router as document_router
from server.routers.HealthRouter import router as health_router

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


def wire_services(
    app: FastAPI,
    helper_config: HelperConfig,
    embed_client: EmbedClientInterface,
    llm_client: LLMClientInterface,
    document_store: DocumentStoreInterface | None = None,
    chat_store: ChatStoreInterface | None = None,
    observer: TurnObserverInterface | None = None,
) -> None:
    """Build stores and services from the given clients and attach them to app.state.

    Args:
        app (FastAPI): The application whose state receives the services.
        helper_config (HelperConfig): Configuration and logger.
        embed_client (EmbedClientInterface): Booted embedding client.
        llm_client (LLMClientInterface): Booted chat-model client.
        document_store (DocumentStoreInterface | None): Defaults to the in-memory store.
        chat_store (ChatStoreInterface | None): Defaults to the in-memory store.
        observer (TurnObserverInterface | None): Defaults to the logging observer.
    """
    domain = helper_config.get_string_val("CHAT_DOMAIN", default="cybersecurity")
    document_store = document_store or DocumentStoreMemory(helper_config=helper_config)
    chat_store = chat_store or ChatStoreMemory(helper_config=helper_config)
    helper_config.get_logger().info(
        "Document store: %s (%s distance)", document_store.get_engine_name(), document_store.get_distance_metric()
    )

    query_improver = QueryImprover(helper_config=helper_config, llm_client=llm_client, domain=domain)
    retriever = Retriever(
        helper_config=helper_config,
        embed_client=embed_client,
        document_store=document_store,
        query_improver=query_improver,
    )
    answer_generator = AnswerGenerator(
        helper_config=helper_config,
        llm_client=llm_client,
        domain=domain,
        malformed_retries=helper_config.get_number_val("CHAT_MALFORMED_RETRIES", default=1),
    )

    app.state.logging = helper_config.get_logger()
    app.state.helper_config = helper_config
    app.state.embed_client = embed_client
    app.state.llm_client = llm_client
    app.state.document_store = document_store
    app.state.chat_store = chat_store
    app.state.chat_service = ChatService(
        helper_config=helper_config,
        chat_store=chat_store,
        retriever=retriever,
        context_assembler=ContextAssembler(),
        answer_generator=answer_generator,
        observer=observer,
        retrieval_k=helper_config.get_number_val("CHAT_RETRIEVAL_K", default=3),
    )
    app.state.ingest_service = IngestService(
        helper_config=helper_config,
        embed_client=embed_client,
        document_store=document_store,
        classifier=DocumentClassifier(helper_config=helper_config, llm_client=llm_client, domain=domain),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # when the app starts
    helper_config = HelperConfig(logger=logging)
    # fail fast on a missing gateway key instead of on the first request
    helper_config.get_string_val("APP_API_KEY")

    embed_client = EmbedClientManager(helper_config=helper_config).get_client()
    llm_client = LLMClientManager(helper_config=helper_config).get_client()

    try:
        logging.info("Booting all clients...")
        for client in [embed_client, llm_client]:
            await client.boot()
        logging.info("All clients booted successfully.")

        wire_services(app, helper_config=helper_config, embed_client=embed_client, llm_client=llm_client)

        await check_connections(embed_client, llm_client)

        # while the app is running...
        yield
    finally:
        # on shutdown or a failed startup, close all client connections
        logging.info("Shutting down, closing all clients...")
        for client in [embed_client, llm_client]:
            await client.close()
        logging.info("All clients closed.")


def create_app(lifespan_handler: Callable | None = lifespan) -> FastAPI:
    """Create the FastAPI application.

    Args:
        lifespan_handler: Startup/shutdown handler. Tests pass None and call
            wire_services() with fake clients instead.
    """
    app = FastAPI(
        title="chat_assistant",
        description=(
            "Document-grounded chat assistant. Questions are answered by a language model "
            "using the closest knowledge-base documents as context (POST /chat). "
            "Admins maintain the knowledge base via /documents."
        ),
        version=app_version,
        lifespan=lifespan_handler,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(health_router)
    app.include_router(chat_router)
    app.include_router(conversation_router)
    app.include_router(document_router)
    return app


app = create_app()


async def check_connections(embed_client: EmbedClientInterface, llm_client: LLMClientInterface) -> None:
    """Check connectivity to the embedding and chat backends on startup.

    Raises:
        Exception: If a backend is not reachable. Chat cannot be served without both.
    """
    for client in [embed_client, llm_client]:
        try:
            result: httpx.Response = await client.do_healthcheck()
        except httpx.HTTPError as e:
            raise Exception(
                f"{client.get_client_type().upper()} client '{client.__class__.__name__}' is not reachable: {e}"
            ) from e
        if not result.is_success:
            raise Exception(
                f"{client.get_client_type().upper()} client '{client.__class__.__name__}' is not reachable "
                f"(status {result.status_code}). Cannot serve chat."
            )


if __name__ == "__main__":
    import uvicorn

    logging.info(
        "Starting chat_assistant API Server v%s from root dir: %s on port 8000...",
        app_version,
        os.environ.get("ROOT_DIR", os.getcwd()),
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
