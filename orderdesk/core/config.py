import os

# Database Configuration
# Uses default credentials for local Docker Compose setup
DB_URL = os.getenv("DATABASE_URL", "postgres://user:password@db:5432/orderdesk")

# Application Metadata
PROJECT_NAME = "OrderDesk Order Service"
VERSION = "1.0.0"
APP_ENV = os.getenv("APP_ENV", "development")  # development | production | test
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Caller identity (tokens are issued elsewhere, we only verify them)
JWT_SECRET = os.getenv("JWT_SECRET", "dev-only-secret-change-me-please")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
STAFF_ROLE = os.getenv("STAFF_ROLE", "admin")

# Payment gateway (Paystack). An empty secret means "not configured".
PAYSTACK_SECRET_KEY = os.getenv("PAYSTACK_SECRET_KEY", "")
PAYSTACK_BASE_URL = os.getenv("PAYSTACK_BASE_URL", "https://api.paystack.co")
PAYMENT_TIMEOUT_SECONDS = float(os.getenv("PAYMENT_TIMEOUT_SECONDS", 10))
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "GHS")

# Login lockout
MAX_LOGIN_ATTEMPTS = int(os.getenv("MAX_LOGIN_ATTEMPTS", 5))
LOGIN_BLOCK_DURATION_SECONDS = int(os.getenv("LOGIN_BLOCK_DURATION_SECONDS", 15 * 60))
# Shared secret the login service sends as X-Service-Key when reporting attempts; empty disables the hooks
LOGIN_HOOK_SECRET = os.getenv("LOGIN_HOOK_SECRET", "")

# Listing limits
NOTIFICATION_LIST_LIMIT = int(os.getenv("NOTIFICATION_LIST_LIMIT", 50))
NOTIFICATION_LIST_MAX = 100
ORDER_LIST_DEFAULT_LIMIT = int(os.getenv("ORDER_LIST_DEFAULT_LIMIT", 10))
ORDER_LIST_MAX_LIMIT = 100

# Live order stream
STREAM_QUEUE_SIZE = int(os.getenv("STREAM_QUEUE_SIZE", 100))  # frames buffered per subscriber
STREAM_KEEPALIVE_SECONDS = float(os.getenv("STREAM_KEEPALIVE_SECONDS", 15))

# Order creation throttle, per client ip ("<count>/<period>")
ORDER_RATE_LIMIT = os.getenv("ORDER_RATE_LIMIT", "10/minute")
