"""
Auth Service - FastAPI Application

Thin layer over the identity provider (Firebase in production, an
in-memory mock in development).

Endpoints:
    - GET  /health: Service and provider status
    - POST /login: Verify a client ID token and return the user
    - POST /register: Create an account
    - GET  /profile: Current user, from the Bearer token

Run with:
    uvicorn restaurant_services.auth.main:app --port 3001
"""

import logging
from typing import Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, Header
from fastapi.middleware.cors import CORSMiddleware

from restaurant_services import __version__
from restaurant_services.core.config import get_settings, setup_logging
from restaurant_services.core.errors import (
    BadRequestError,
    ConflictError,
    InternalServiceError,
    ServiceUnavailableError,
    UnauthorizedError,
    RETRY_LATER,
    register_exception_handlers,
)
from restaurant_services.core.health import health_payload
from restaurant_services.auth.identity import (
    BaseIdentityService,
    EmailAlreadyExistsError,
    IdentityError,
    IdentityUser,
    InvalidTokenError,
    InvalidUserDataError,
    get_identity_service,
)
from restaurant_services.auth.schemas import (
    LoginRequest,
    RegisterRequest,
    UserPayload,
    UserResponse,
)

SERVICE_NAME = "Auth Service"
AUTH_UNAVAILABLE = "Serviço de autenticação indisponível"

settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log which identity provider is active."""
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {SERVICE_NAME} on port {settings.auth_port}")
    logger.info(f"   Environment: {settings.env_mode.value}")

    identity = get_identity_service()
    status = "connected" if identity.is_available else "disconnected"
    logger.info(f"🔒 Identity provider: {identity.provider_name} ({status})")
    logger.info("=" * 60)

    yield

    logger.info("Shutting down...")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=SERVICE_NAME,
    description="Login, registration and profile lookup.",
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


def _require_available(identity: BaseIdentityService) -> None:
    if not identity.is_available:
        raise ServiceUnavailableError(AUTH_UNAVAILABLE, RETRY_LATER)


def _user_payload(user: IdentityUser) -> UserPayload:
    return UserPayload(**user.to_dict())


async def get_current_user(
    authorization: Optional[str] = Header(None),
    identity: BaseIdentityService = Depends(get_identity_service),
) -> IdentityUser:
    """
    Resolve the caller from an `Authorization: Bearer <token>` header.

    Raises 401 when the header is missing or the token is rejected,
    503 when the identity provider is down.
    """
    token = None
    if authorization and authorization.startswith("Bearer "):
        token = authorization[len("Bearer "):].strip()

    if not token:
        raise UnauthorizedError("Token não fornecido")

    if not identity.is_available:
        raise ServiceUnavailableError(AUTH_UNAVAILABLE)

    try:
        claims = await identity.verify_id_token(token)
    except InvalidTokenError as e:
        logger.info(f"Token verification failed: {e}")
        raise UnauthorizedError("Token inválido")

    return IdentityUser.from_claims(claims)


# =============================================================================
# HEALTH
# =============================================================================

@app.get("/health", tags=["Health"])
async def health_check(
    identity: BaseIdentityService = Depends(get_identity_service),
) -> dict[str, str]:
    """Report whether the identity provider is initialised."""
    return health_payload(SERVICE_NAME, "firebase", await identity.health_check())


# =============================================================================
# AUTH ENDPOINTS
# =============================================================================

@app.post("/login", response_model=UserResponse, tags=["Auth"])
async def login(
    credentials: LoginRequest,
    identity: BaseIdentityService = Depends(get_identity_service),
) -> UserResponse:
    """Exchange a client-side ID token for the user's profile."""
    if not credentials.id_token:
        raise BadRequestError("Token ID não fornecido")

    _require_available(identity)

    try:
        claims = await identity.verify_id_token(credentials.id_token)
    except InvalidTokenError as e:
        logger.info(f"Login rejected: {e}")
        raise UnauthorizedError("Falha na autenticação", "Verifique suas credenciais")

    user = IdentityUser.from_claims(claims)
    logger.info(f"User {user.uid} logged in")

    return UserResponse(
        user=_user_payload(user),
        message="Login realizado com sucesso",
    )


@app.post("/register", response_model=UserResponse, tags=["Auth"])
async def register(
    account: RegisterRequest,
    identity: BaseIdentityService = Depends(get_identity_service),
) -> UserResponse:
    """Create an account with email and password."""
    if not account.email or not account.password:
        raise BadRequestError("Email e senha são obrigatórios")

    _require_available(identity)

    try:
        user = await identity.create_user(
            email=account.email,
            password=account.password,
            display_name=account.display_name,
        )
    except EmailAlreadyExistsError:
        raise ConflictError("Email já cadastrado", "Use outro email ou faça login")
    except InvalidUserDataError as e:
        raise BadRequestError("Dados inválidos", str(e))
    except IdentityError as e:
        logger.error(f"Registration failed for {account.email}: {e}")
        raise InternalServiceError("Erro ao criar usuário")

    return UserResponse(
        user=_user_payload(user),
        message="Usuário criado com sucesso",
    )


@app.get(
    "/profile",
    response_model=UserResponse,
    response_model_exclude_none=True,
    tags=["Auth"],
)
async def profile(user: IdentityUser = Depends(get_current_user)) -> UserResponse:
    """Return the user behind the Bearer token."""
    return UserResponse(user=_user_payload(user))
