"""
Orders Service - FastAPI Application

CRUD over the `orders` table in MySQL.

Endpoints:
    - GET    /health: Service and database status
    - GET    /orders: List orders (filters: user_id, status)
    - GET    /orders/{order_id}: Get one order
    - POST   /orders: Create an order
    - PUT    /orders/{order_id}: Update status, items or total
    - DELETE /orders/{order_id}: Delete an order

Every /orders route is gated by a database probe and answers 503 when
MySQL cannot be reached.

Run with:
    uvicorn restaurant_services.orders.main:app --port 3002
"""

import logging
from typing import Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, Body, Depends, Query
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import func

from restaurant_services import __version__
from restaurant_services.core.config import get_settings, setup_logging
from restaurant_services.core.errors import (
    BadRequestError,
    InternalServiceError,
    NotFoundError,
    register_exception_handlers,
)
from restaurant_services.core.health import database_gate, health_payload
from restaurant_services.orders import database
from restaurant_services.orders.database import get_db
from restaurant_services.orders.models import Order, OrderStatus
from restaurant_services.orders.schemas import (
    OrderCreate,
    OrderUpdate,
    OrderResponse,
    OrderListResponse,
    OrderDetailResponse,
    OrderMutationResponse,
    MessageResponse,
)

SERVICE_NAME = "Orders Service"

settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.

    A database that is down at startup is logged and tolerated; the
    health gate keeps rejecting requests until it comes back.
    """
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {SERVICE_NAME} on port {settings.orders_port}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info("=" * 60)

    try:
        await database.init_db()
        logger.info("✅ MySQL connected")
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"❌ Could not connect to MySQL: {e}")

    yield

    logger.info("Shutting down...")
    await database.engine.dispose()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=SERVICE_NAME,
    description="Order management backed by MySQL.",
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
    "Serviço de pedidos indisponível",
)

ORDER_NOT_FOUND = ("Pedido não encontrado", "ID do pedido não existe")


async def _load_order(db: AsyncSession, order_id: int) -> Order:
    result = await db.execute(select(Order).where(Order.id == order_id))
    order = result.scalar_one_or_none()
    if order is None:
        raise NotFoundError(*ORDER_NOT_FOUND)
    return order


def _ensure_positive_total(total: Optional[float]) -> None:
    if total is not None and total <= 0:
        raise BadRequestError("Total inválido", "total deve ser maior que zero")


# =============================================================================
# HEALTH
# =============================================================================

@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Report whether MySQL is reachable. Never gated."""
    connected = await database.check_connection()
    return health_payload(SERVICE_NAME, "database", connected)


# =============================================================================
# ORDER ENDPOINTS
# =============================================================================

@app.get(
    "/orders",
    response_model=OrderListResponse,
    dependencies=[Depends(require_database)],
    tags=["Orders"],
)
async def list_orders(
    user_id: Optional[str] = Query(None),
    status: Optional[OrderStatus] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> OrderListResponse:
    """List orders, newest first."""
    query = select(Order).order_by(Order.created_at.desc(), Order.id.desc())

    if user_id:
        query = query.where(Order.user_id == user_id)
    if status:
        query = query.where(Order.status == status)

    try:
        result = await db.execute(query)
        orders = result.scalars().all()
    except SQLAlchemyError as e:
        logger.error(f"Error listing orders: {e}")
        raise InternalServiceError("Erro ao listar pedidos")

    return OrderListResponse(
        orders=[OrderResponse.model_validate(order) for order in orders],
        count=len(orders),
    )


@app.get(
    "/orders/{order_id}",
    response_model=OrderDetailResponse,
    dependencies=[Depends(require_database)],
    tags=["Orders"],
)
async def get_order(
    order_id: int,
    db: AsyncSession = Depends(get_db),
) -> OrderDetailResponse:
    """Get a specific order by ID."""
    try:
        order = await _load_order(db, order_id)
    except SQLAlchemyError as e:
        logger.error(f"Error fetching order #{order_id}: {e}")
        raise InternalServiceError("Erro ao obter pedido")

    return OrderDetailResponse(order=OrderResponse.model_validate(order))


@app.post(
    "/orders",
    response_model=OrderMutationResponse,
    status_code=201,
    dependencies=[Depends(require_database)],
    tags=["Orders"],
)
async def create_order(
    order_data: Optional[OrderCreate] = Body(None),
    db: AsyncSession = Depends(get_db),
) -> OrderMutationResponse:
    """Create a new order in the pending state."""
    order_data = order_data or OrderCreate()
    if order_data.missing_fields():
        raise BadRequestError(
            "Dados incompletos",
            "user_id, items e total são obrigatórios",
        )
    _ensure_positive_total(order_data.total)

    new_order = Order(
        user_id=order_data.user_id,
        items=order_data.items,
        total=order_data.total,
        status=OrderStatus.PENDING,
    )

    try:
        db.add(new_order)
        await db.commit()
        await db.refresh(new_order)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error creating order for {order_data.user_id}: {e}")
        raise InternalServiceError("Erro ao criar pedido")

    logger.info(f"Order #{new_order.id} created for {new_order.user_id}")

    return OrderMutationResponse(
        order=OrderResponse.model_validate(new_order),
        message="Pedido criado com sucesso",
    )


@app.put(
    "/orders/{order_id}",
    response_model=OrderMutationResponse,
    dependencies=[Depends(require_database)],
    tags=["Orders"],
)
async def update_order(
    order_id: int,
    changes: Optional[OrderUpdate] = Body(None),
    db: AsyncSession = Depends(get_db),
) -> OrderMutationResponse:
    """Update any of status, items and total."""
    changes = changes or OrderUpdate()
    if not changes.has_changes():
        raise BadRequestError(
            "Dados insuficientes",
            "Pelo menos um campo deve ser atualizado",
        )
    _ensure_positive_total(changes.total)

    try:
        order = await _load_order(db, order_id)

        if changes.status is not None:
            order.status = changes.status
        if changes.items is not None:
            order.items = changes.items
        if changes.total is not None:
            order.total = changes.total
        order.updated_at = func.now()

        await db.commit()
        await db.refresh(order)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error updating order #{order_id}: {e}")
        raise InternalServiceError("Erro ao atualizar pedido")

    logger.info(f"Order #{order.id} updated (status={order.status.value})")

    return OrderMutationResponse(
        order=OrderResponse.model_validate(order),
        message="Pedido atualizado com sucesso",
    )


@app.delete(
    "/orders/{order_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require_database)],
    tags=["Orders"],
)
async def delete_order(
    order_id: int,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Delete an order."""
    try:
        order = await _load_order(db, order_id)
        await db.delete(order)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error deleting order #{order_id}: {e}")
        raise InternalServiceError("Erro ao deletar pedido")

    logger.info(f"Order #{order_id} deleted")

    return MessageResponse(message="Pedido deletado com sucesso")
