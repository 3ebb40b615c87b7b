from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request
import logging

from social_api.config import settings
from social_api.services.rate_gate import RateGate

logger = logging.getLogger(__name__)

# Per-address request limiter for the whole API
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
    enabled=settings.RATE_LIMIT_ENABLED,
)

def get_rate_gate(request: Request) -> RateGate:
    """Dependency returning the process-wide content cooldown gate"""
    return request.app.state.rate_gate
