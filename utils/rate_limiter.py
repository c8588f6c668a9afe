"""
Rate limiting (slowapi)
Protección contra fuerza bruta en login y abuso de la API
"""
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

import config

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[config.RATE_LIMIT_DEFAULT],
    storage_uri=config.REDIS_URL,
    strategy="fixed-window",
    enabled=config.RATE_LIMIT_ENABLED,
)


def setup_rate_limiting(app):
    """Registra el limiter y el handler de 429 en la aplicación"""
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    return limiter
