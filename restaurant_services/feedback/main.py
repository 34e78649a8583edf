"""
Feedback Service - FastAPI Application

Customer ratings and comments stored in a MongoDB collection.

Endpoints:
    - GET    /health: Service and database status
    - GET    /feedback: List feedback (filters: user_id, rating)
    - GET    /feedback/stats: Total, average rating and rating distribution
    - GET    /feedback/{feedback_id}: Get one feedback
    - POST   /feedback: Submit feedback
    - DELETE /feedback/{feedback_id}: Delete feedback

Run with:
    uvicorn restaurant_services.feedback.main:app --port 3003
"""

import logging
from datetime import datetime, timezone
from typing import Optional
from contextlib import asynccontextmanager

from bson import ObjectId
from fastapi import FastAPI, Body, Depends, Query
from fastapi.middleware.cors import CORSMiddleware
from pymongo import DESCENDING
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import PyMongoError

from restaurant_services import __version__
from restaurant_services.core.config import get_settings, setup_logging
from restaurant_services.core.errors import (
    BadRequestError,
    InternalServiceError,
    NotFoundError,
    register_exception_handlers,
)
from restaurant_services.core.health import database_gate, health_payload
from restaurant_services.feedback import database
from restaurant_services.feedback.database import get_collection
from restaurant_services.feedback.schemas import (
    FeedbackCreate,
    FeedbackResponse,
    FeedbackListResponse,
    FeedbackDetailResponse,
    FeedbackCreateResponse,
    FeedbackStats,
    FeedbackStatsResponse,
    MessageResponse,
)

SERVICE_NAME = "Feedback Service"

MIN_RATING = 1
MAX_RATING = 5

settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create indexes at startup; close the shared client on shutdown."""
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {SERVICE_NAME} on port {settings.feedback_port}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info("=" * 60)

    try:
        await database.init_indexes()
        logger.info("✅ MongoDB connected")
    except PyMongoError as e:
        logger.error(f"❌ Could not connect to MongoDB: {e}")

    yield

    logger.info("Shutting down...")
    await database.close_connection()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=SERVICE_NAME,
    description="Customer feedback backed by MongoDB.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

require_database = database_gate(
    lambda: database.check_connection(),
    "Serviço de feedback indisponível",
)

FEEDBACK_NOT_FOUND = ("Feedback não encontrado", "ID do feedback não existe")


def _object_id(feedback_id: str) -> ObjectId:
    """Parse a path id; malformed ids cannot exist, so they are a 404."""
    if not ObjectId.is_valid(feedback_id):
        raise NotFoundError(*FEEDBACK_NOT_FOUND)
    return ObjectId(feedback_id)


# =============================================================================
# HEALTH
# =============================================================================

@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Report whether MongoDB answers a ping. Never gated."""
    connected = await database.check_connection()
    return health_payload(SERVICE_NAME, "database", connected)


# =============================================================================
# FEEDBACK ENDPOINTS
# =============================================================================

@app.get(
    "/feedback",
    response_model=FeedbackListResponse,
    dependencies=[Depends(require_database)],
    tags=["Feedback"],
)
async def list_feedback(
    user_id: Optional[str] = Query(None),
    rating: Optional[int] = Query(None),
    collection: AsyncCollection = Depends(get_collection),
) -> FeedbackListResponse:
    """List feedback, newest first."""
    query = {}
    if user_id:
        query["user_id"] = user_id
    if rating is not None:
        query["rating"] = rating

    try:
        cursor = collection.find(query).sort("created_at", DESCENDING)
        documents = await cursor.to_list(length=None)
    except PyMongoError as e:
        logger.error(f"Error listing feedback: {e}")
        raise InternalServiceError("Erro ao listar feedbacks")

    return FeedbackListResponse(
        feedbacks=[FeedbackResponse.model_validate(doc) for doc in documents],
        count=len(documents),
    )


@app.get(
    "/feedback/stats",
    response_model=FeedbackStatsResponse,
    dependencies=[Depends(require_database)],
    tags=["Feedback"],
)
async def feedback_stats(
    collection: AsyncCollection = Depends(get_collection),
) -> FeedbackStatsResponse:
    """Total count, average rating and how many feedbacks per rating."""
    try:
        total = await collection.count_documents({})

        average_cursor = await collection.aggregate([
            {"$group": {"_id": None, "avgRating": {"$avg": "$rating"}}},
        ])
        average = await average_cursor.to_list(length=None)

        distribution_cursor = await collection.aggregate([
            {"$group": {"_id": "$rating", "count": {"$sum": 1}}},
            {"$sort": {"_id": 1}},
        ])
        distribution = await distribution_cursor.to_list(length=None)
    except PyMongoError as e:
        logger.error(f"Error computing feedback stats: {e}")
        raise InternalServiceError("Erro ao obter estatísticas")

    average_rating = 0.0
    if average and average[0].get("avgRating") is not None:
        average_rating = round(average[0]["avgRating"], 2)

    return FeedbackStatsResponse(
        stats=FeedbackStats(
            total=total,
            average_rating=average_rating,
            rating_distribution=distribution,
        )
    )


@app.get(
    "/feedback/{feedback_id}",
    response_model=FeedbackDetailResponse,
    dependencies=[Depends(require_database)],
    tags=["Feedback"],
)
async def get_feedback(
    feedback_id: str,
    collection: AsyncCollection = Depends(get_collection),
) -> FeedbackDetailResponse:
    """Get a specific feedback by ID."""
    oid = _object_id(feedback_id)

    try:
        document = await collection.find_one({"_id": oid})
    except PyMongoError as e:
        logger.error(f"Error fetching feedback {feedback_id}: {e}")
        raise InternalServiceError("Erro ao obter feedback")

    if document is None:
        raise NotFoundError(*FEEDBACK_NOT_FOUND)

    return FeedbackDetailResponse(feedback=FeedbackResponse.model_validate(document))


@app.post(
    "/feedback",
    response_model=FeedbackCreateResponse,
    status_code=201,
    dependencies=[Depends(require_database)],
    tags=["Feedback"],
)
async def create_feedback(
    feedback_data: Optional[FeedbackCreate] = Body(None),
    collection: AsyncCollection = Depends(get_collection),
) -> FeedbackCreateResponse:
    """Store a rating (1-5) with an optional comment and order reference."""
    feedback_data = feedback_data or FeedbackCreate()
    if not feedback_data.user_id or feedback_data.rating is None:
        raise BadRequestError("Dados incompletos", "user_id e rating são obrigatórios")

    if not MIN_RATING <= feedback_data.rating <= MAX_RATING:
        raise BadRequestError("Rating inválido", "Rating deve ser entre 1 e 5")

    document = feedback_data.to_document(datetime.now(timezone.utc))

    try:
        result = await collection.insert_one(document)
        created = await collection.find_one({"_id": result.inserted_id})
    except PyMongoError as e:
        logger.error(f"Error creating feedback for {feedback_data.user_id}: {e}")
        raise InternalServiceError("Erro ao criar feedback")

    logger.info(
        f"Feedback {result.inserted_id} stored "
        f"(user={feedback_data.user_id}, rating={feedback_data.rating})"
    )

    return FeedbackCreateResponse(
        feedback=FeedbackResponse.model_validate(created),
        message="Feedback enviado com sucesso",
    )


@app.delete(
    "/feedback/{feedback_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require_database)],
    tags=["Feedback"],
)
async def delete_feedback(
    feedback_id: str,
    collection: AsyncCollection = Depends(get_collection),
) -> MessageResponse:
    """Delete a feedback."""
    oid = _object_id(feedback_id)

    try:
        result = await collection.delete_one({"_id": oid})
    except PyMongoError as e:
        logger.error(f"Error deleting feedback {feedback_id}: {e}")
        raise InternalServiceError("Erro ao deletar feedback")

    if result.deleted_count == 0:
        raise NotFoundError(*FEEDBACK_NOT_FOUND)

    logger.info(f"Feedback {feedback_id} deleted")

    return MessageResponse(message="Feedback deletado com sucesso")
