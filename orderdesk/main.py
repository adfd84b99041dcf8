import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, status
from orderdesk.core.db import init_db, close_db
from orderdesk.core.logging_config import setup_logging
from orderdesk.api.v1.orders import router as orders_router
from orderdesk.api.v1.notifications import router as notifications_router
from orderdesk.api.v1.payments import router as payments_router
from orderdesk.api.v1.auth import router as auth_router
from orderdesk.core.config import LOGIN_HOOK_SECRET, PROJECT_NAME, VERSION
from orderdesk.core.exception_handlers import setup_exception_handlers
from orderdesk.services.broadcast_hub import BroadcastHub
from orderdesk.services.login_attempts import LoginAttemptTracker
from orderdesk.services.payment_gateway import PaymentGateway
from orderdesk.services.rate_limiter import OrderRateLimiter

setup_logging()
log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handles startup and shutdown events."""
    log.info(f"Starting {PROJECT_NAME} v{VERSION}...")
    if not app.state.payment_gateway.is_configured:
        log.warning("PAYSTACK_SECRET_KEY is not set; gateway orders will be refused with 503.")
    if not LOGIN_HOOK_SECRET:
        log.warning("LOGIN_HOOK_SECRET is not set; login lockout hooks will refuse every caller.")
    await init_db() # Connect to DB and generate schemas
    yield
    await app.state.hub.close()
    await close_db()
    log.info(f"{PROJECT_NAME} stopped.")

app = FastAPI(
    title=PROJECT_NAME,
    version=VERSION,
    lifespan=lifespan,
    # Configure API documentation and paths
    docs_url="/docs",
    redoc_url="/redoc"
)

# Process-wide services, one instance each
app.state.hub = BroadcastHub()
app.state.login_tracker = LoginAttemptTracker()
app.state.payment_gateway = PaymentGateway()
app.state.order_limiter = OrderRateLimiter()

# Include routers for modular API structure
app.include_router(orders_router, prefix="/api/v1/orders", tags=["Orders"])
app.include_router(notifications_router, prefix="/api/v1/admin/notifications", tags=["Admin Notifications"])
app.include_router(payments_router, prefix="/api/v1/payments", tags=["Payments"])
app.include_router(auth_router, prefix="/api/v1/auth", tags=["Login Protection"])


setup_exception_handlers(app)

@app.get("/health", status_code=status.HTTP_200_OK)
async def health_check():
    """Simple health check endpoint."""
    return {"status": "ok", "app_name": PROJECT_NAME}
