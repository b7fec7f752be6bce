"""Main entry point for the FAQ support chat API."""
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Optional

import tiktoken
from fastapi import Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import PORT, LOG_LEVEL, LOG_FORMAT, Settings
from logger import setup_logging
from models.api import (
    ChatRequest, ChatResponse, FaqCreateRequest, FaqCreatedResponse, FaqOut, HistoryResponse, TurnOut
)
from models.faq import FaqEntry
from services.relevance_scorer import RelevanceScorer
from services.context_assembler import ContextAssembler
from services.llm_client import LLMClient, LLMClientError
from services.faq_store import FaqStore, InMemoryFaqStore, SupabaseFaqStore, StoreError
from services.chat_store import ChatStore, InMemoryChatStore, SupabaseChatStore
from services.document_loader import DocumentLoader

# Initialize logging
if LOG_FORMAT == "json":
    setup_logging(LOG_LEVEL)
logger = logging.getLogger(__name__)

# Body of the 400 returned when a request body cannot be read, per route
VALIDATION_ERRORS = {
    ("POST", "/chat"): {"reply": "User ID and message are required."},
    ("POST", "/faqs"): {"message": "FAQ title and content are required."},
    ("POST", "/upload-file-faq"): {"message": "FAQ title and file are required."},
}

GENERIC_CHAT_ERROR = (
    "An unexpected error occurred. Please try again later "
    "or contact support if the issue persists."
)


@dataclass
class Services:
    """Collaborators handed to the request handlers."""
    faq_store: FaqStore
    chat_store: ChatStore
    scorer: RelevanceScorer
    assembler: ContextAssembler
    llm_client: LLMClient
    document_loader: DocumentLoader
    token_encoder: Optional[Any] = None


def build_services(settings: Settings) -> Services:
    """
    Construct every service from settings.

    Raises:
        ValueError: If store or API credentials are missing
    """
    if settings.store_backend == "memory":
        faq_store: FaqStore = InMemoryFaqStore()
        chat_store: ChatStore = InMemoryChatStore()
        logger.warning("Using in-memory stores; data is lost on restart")
    else:
        faq_store = SupabaseFaqStore(settings.supabase_url, settings.supabase_key)
        chat_store = SupabaseChatStore(settings.supabase_url, settings.supabase_key)
    logger.info(f"Initialized {settings.store_backend} stores")

    # Token estimate only; o200k_base is close enough for logging
    token_encoder = tiktoken.get_encoding("o200k_base")
    logger.info("Initialized tiktoken encoder (o200k_base)")

    return Services(
        faq_store=faq_store,
        chat_store=chat_store,
        scorer=RelevanceScorer(min_score=settings.min_score),
        assembler=ContextAssembler(
            max_history=settings.max_history,
            assistant_name=settings.assistant_name,
            temperature=settings.temperature,
            max_output_tokens=settings.max_output_tokens
        ),
        llm_client=LLMClient(
            api_key=settings.api_key,
            base_url=settings.base_url,
            model=settings.model,
            timeout=settings.timeout
        ),
        document_loader=DocumentLoader(),
        token_encoder=token_encoder,
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def _faq_out(faq: FaqEntry) -> FaqOut:
    return FaqOut(**faq.to_dict())


def create_app(services: Optional[Services] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        services: Pre-built services; built from settings on startup when omitted
        settings: Explicit settings; read from the environment when omitted
    """
    settings = settings or Settings.load()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialize services on startup unless they were injected."""
        if app.state.services is None:
            logger.info("Initializing FAQ support chat services...")
            try:
                app.state.services = build_services(settings)
                logger.info("All services initialized successfully")
            except Exception as e:
                logger.error(f"Failed to initialize services: {e}", exc_info=True)
                raise
        yield

    app = FastAPI(
        title="FAQ Support Chat",
        description="Customer support chat backed by uploaded FAQs",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        """Answer unreadable bodies with the route's 400 shape instead of a 422."""
        content = VALIDATION_ERRORS.get((request.method, request.url.path))
        if content is None:
            return await request_validation_exception_handler(request, exc)
        logger.info(f"Validation failed on {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=400, content=content)

    @app.get("/")
    async def root():
        """Health check endpoint."""
        return {"status": "ok", "message": "FAQ Support Chat API"}

    @app.get("/health")
    async def health():
        """Detailed health check."""
        return {
            "status": "healthy",
            "service": "faq-support-chat",
            "version": "1.0.0"
        }

    @app.post("/chat", response_model=ChatResponse)
    def chat_endpoint(request: ChatRequest, services: Services = Depends(get_services)):
        """
        Answer a user message.

        Matches the message against stored FAQs, builds the prompt with the
        user's recent history, calls the completion API once, and stores the
        exchange. Any failure becomes a user-facing reply string.
        """
        if not request.user_id or not request.message:
            logger.info("Validation failed: user id or message missing")
            return JSONResponse(status_code=400, content={"reply": "User ID and message are required."})

        user_id = request.user_id
        message = request.message
        start_time = time.time()
        logger.info(f"Processing chat for {user_id}: {message[:100]}")

        try:
            faqs = services.faq_store.find_all()
            relevant = services.scorer.find_relevant(message, faqs)

            record = services.chat_store.find_by_user(user_id)
            history = record.turns if record else []

            payload = services.assembler.build_prompt(message, relevant, history)
            if services.token_encoder is not None:
                prompt_tokens = len(services.token_encoder.encode(payload.all_text()))
                logger.info(f"Prompt estimate: {prompt_tokens} tokens")

            llm_response = services.llm_client.generate(payload)
            reply = services.assembler.extract_reply(llm_response.raw)

            services.chat_store.append_exchange(user_id, message, reply)

            total_latency_ms = int((time.time() - start_time) * 1000)
            logger.info(
                f"Chat processed in {total_latency_ms}ms",
                extra={
                    "user_id": user_id,
                    "faqs_total": len(faqs),
                    "faqs_matched": len(relevant),
                    "history_turns": payload.history_count,
                    "upstream_latency_ms": llm_response.latency_ms,
                }
            )
            return ChatResponse(reply=reply)

        except LLMClientError as e:
            logger.error(f"LLM client error: {e.error.code} {e.error.message}")
            return JSONResponse(status_code=500, content={"reply": e.error.message})
        except StoreError as e:
            logger.error(f"Store error during chat: {e}")
            return JSONResponse(status_code=500, content={"reply": GENERIC_CHAT_ERROR})
        except Exception as e:
            logger.error(f"Unexpected error processing chat: {e}", exc_info=True)
            return JSONResponse(status_code=500, content={"reply": GENERIC_CHAT_ERROR})

    @app.get("/chat/{user_id}", response_model=HistoryResponse)
    def history_endpoint(user_id: str, services: Services = Depends(get_services)):
        """Stored conversation for a user; empty when they never wrote."""
        try:
            record = services.chat_store.find_by_user(user_id)
        except StoreError as e:
            return JSONResponse(status_code=500, content={"message": "Failed to load chat history.", "error": str(e)})

        turns = record.turns if record else []
        return HistoryResponse(
            user_id=user_id,
            messages=[TurnOut(**turn.to_dict()) for turn in turns]
        )

    @app.get("/faqs", response_model=list[FaqOut])
    def list_faqs_endpoint(services: Services = Depends(get_services)):
        try:
            faqs = services.faq_store.find_all()
        except StoreError as e:
            return JSONResponse(status_code=500, content={"message": "Failed to load FAQs.", "error": str(e)})
        return [_faq_out(faq) for faq in faqs]

    @app.post("/faqs", status_code=201, response_model=FaqCreatedResponse)
    def create_faq_endpoint(request: FaqCreateRequest, services: Services = Depends(get_services)):
        """Store a text FAQ."""
        if not request.title or not request.content:
            logger.info("Validation failed: FAQ title or content missing")
            return JSONResponse(status_code=400, content={"message": "FAQ title and content are required."})

        try:
            faq = services.faq_store.create(request.title, request.content)
        except StoreError as e:
            return JSONResponse(status_code=500, content={"message": "Failed to upload text FAQ.", "error": str(e)})

        logger.info(f"Text FAQ saved: {faq.id}")
        return FaqCreatedResponse(message="Text FAQ uploaded successfully!", faq=_faq_out(faq))

    @app.post("/upload-file-faq", status_code=201, response_model=FaqCreatedResponse)
    def upload_file_faq_endpoint(
        title: Optional[str] = Form(None),
        file: Optional[UploadFile] = File(None),
        services: Services = Depends(get_services)
    ):
        """Store an uploaded file's extracted text as a FAQ."""
        if not title or file is None:
            logger.info("Validation failed: FAQ title or file missing")
            return JSONResponse(status_code=400, content={"message": "FAQ title and file are required."})

        logger.info(f"Received file upload {file.filename} ({file.content_type}) titled {title!r}")

        try:
            data = file.file.read()
            content = services.document_loader.extract_text(file.filename or "upload", file.content_type, data)
            faq = services.faq_store.create(title, content)
        except Exception as e:
            logger.error(f"Error processing file or saving FAQ: {e}", exc_info=True)
            return JSONResponse(
                status_code=500,
                content={"message": "Failed to process file or upload FAQ.", "error": str(e)}
            )

        logger.info(f"File FAQ saved: {faq.id}")
        return FaqCreatedResponse(message="File uploaded and processed successfully!", faq=_faq_out(faq))

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    logger.info(f"Starting FAQ Support Chat API on port {PORT}")
    uvicorn.run(app, host="0.0.0.0", port=PORT)
