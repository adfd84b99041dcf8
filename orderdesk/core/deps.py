from fastapi import Depends, Request

from orderdesk.core.security import client_ip
from orderdesk.services.broadcast_hub import BroadcastHub
from orderdesk.services.login_attempts import LoginAttemptTracker
from orderdesk.services.payment_gateway import PaymentGateway
from orderdesk.services.rate_limiter import OrderRateLimiter


# Process-wide services live on app.state so tests can swap them via dependency_overrides

def get_hub(request: Request) -> BroadcastHub:
    return request.app.state.hub


def get_payment_gateway(request: Request) -> PaymentGateway:
    return request.app.state.payment_gateway


def get_login_tracker(request: Request) -> LoginAttemptTracker:
    return request.app.state.login_tracker


def get_order_limiter(request: Request) -> OrderRateLimiter:
    return request.app.state.order_limiter


def enforce_order_rate_limit(request: Request, limiter: OrderRateLimiter = Depends(get_order_limiter)):
    limiter.ensure_allowed(client_ip(request))
