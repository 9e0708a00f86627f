from __future__ import annotations

import logging

from fastapi import HTTPException, status

from filepond_backend.token_codec import TokenCodec, get_token_codec

logger = logging.getLogger(__name__)


def get_codec() -> TokenCodec:
    try:
        return get_token_codec()
    except ValueError as e:
        logger.error("server ids unavailable: %s", e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="server id encryption is not configured",
        ) from e
