from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from household_ledger.config import settings
from household_ledger.core.exceptions import (
    AccountPermanentlyDeletedException,
    AuthenticationException,
    CannotDemoteOwnerException,
    CannotLeaveAsSoleOwnerException,
    CannotRemoveSoleOwnerException,
    ConcurrencyConflictException,
    ConfirmTextMismatchException,
    HasOwnedLedgersException,
    InfrastructureException,
    InsufficientRoleException,
    LedgerException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
)
from household_ledger.core.logging import configure_logging, get_logger
from household_ledger.routes import (
    account_routes,
    budget_routes,
    category_routes,
    ledger_routes,
    transaction_routes,
)

configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)
logger = get_logger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs" if settings.DEBUG else None,  # Disable in production
    redoc_url="/redoc" if settings.DEBUG else None,
)

# CORS middleware
cors_origins = settings.cors_origins_list
if cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def _error(status_code: int, exc: LedgerException, **extra) -> JSONResponse:
    content = {"detail": str(exc), "code": exc.code}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


# Exception handlers
@app.exception_handler(AuthenticationException)
async def authentication_exception_handler(request: Request, exc: AuthenticationException):
    response = _error(status.HTTP_401_UNAUTHORIZED, exc)
    response.headers["WWW-Authenticate"] = "Bearer"
    return response


@app.exception_handler(UnauthorizedException)
@app.exception_handler(InsufficientRoleException)
@app.exception_handler(CannotDemoteOwnerException)
@app.exception_handler(CannotRemoveSoleOwnerException)
@app.exception_handler(CannotLeaveAsSoleOwnerException)
async def forbidden_exception_handler(request: Request, exc: LedgerException):
    return _error(status.HTTP_403_FORBIDDEN, exc)


@app.exception_handler(NotFoundException)
async def not_found_exception_handler(request: Request, exc: NotFoundException):
    return _error(status.HTTP_404_NOT_FOUND, exc)


@app.exception_handler(ValidationException)
@app.exception_handler(ConfirmTextMismatchException)
async def validation_exception_handler(request: Request, exc: LedgerException):
    return _error(status.HTTP_400_BAD_REQUEST, exc)


@app.exception_handler(HasOwnedLedgersException)
async def has_owned_ledgers_exception_handler(request: Request, exc: HasOwnedLedgersException):
    return _error(status.HTTP_409_CONFLICT, exc, owned_ledger_count=exc.owned_ledger_count)


@app.exception_handler(AccountPermanentlyDeletedException)
async def account_deleted_exception_handler(
    request: Request, exc: AccountPermanentlyDeletedException
):
    return _error(status.HTTP_410_GONE, exc)


@app.exception_handler(ConcurrencyConflictException)
async def conflict_exception_handler(request: Request, exc: ConcurrencyConflictException):
    response = _error(status.HTTP_409_CONFLICT, exc)
    response.headers["Retry-After"] = "1"
    return response


@app.exception_handler(InfrastructureException)
async def infrastructure_exception_handler(request: Request, exc: InfrastructureException):
    logger.error("request_failed", path=request.url.path, code=exc.code, error=str(exc))
    response = _error(status.HTTP_503_SERVICE_UNAVAILABLE, exc)
    response.headers["Retry-After"] = "1"
    return response


# Health check endpoint
@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": settings.APP_VERSION}


# Root endpoint
@app.get("/")
async def root():
    return {
        "message": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs" if settings.DEBUG else "Documentation disabled in production",
    }


# Include routers
app.include_router(account_routes.router, prefix="/api/accounts", tags=["Accounts"])
app.include_router(ledger_routes.router, prefix="/api/ledgers", tags=["Ledgers"])
app.include_router(
    category_routes.router, prefix="/api/ledgers/{ledger_id}/categories", tags=["Categories"]
)
app.include_router(
    transaction_routes.router,
    prefix="/api/ledgers/{ledger_id}/transactions",
    tags=["Transactions"],
)
app.include_router(budget_routes.router, prefix="/api/ledgers/{ledger_id}/budgets", tags=["Budgets"])
