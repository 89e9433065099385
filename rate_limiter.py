import time
from collections import deque
from threading import Lock
from typing import Optional

from fastapi import HTTPException, Request, status

import config

_RATE_LIMIT_BUCKETS = {}
_LOCK = Lock()


def get_client_ip(request: Request) -> Optional[str]:
    # o cabeçalho vem do cliente; sem proxy confiável ele é ignorado
    if config.TRUST_PROXY_HEADERS:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip() or None
    return request.client.host if request.client else None


def enforce_rate_limit(key: str, limit: int, window_seconds: int) -> None:
    """Janela deslizante em memória, por processo."""
    now = time.monotonic()
    with _LOCK:
        bucket = _RATE_LIMIT_BUCKETS.setdefault(key, deque())
        cutoff = now - window_seconds
        while bucket and bucket[0] <= cutoff:
            bucket.popleft()
        if len(bucket) >= limit:
            retry_after = max(1, int(bucket[0] + window_seconds - now))
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Muitas requisições. Tente novamente em instantes.",
                headers={"Retry-After": str(retry_after)},
            )
        bucket.append(now)


def reset_rate_limits() -> None:
    with _LOCK:
        _RATE_LIMIT_BUCKETS.clear()
