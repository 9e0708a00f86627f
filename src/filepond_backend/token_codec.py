"""Server ids: reversible, keyed encoding of storage paths.

Paths are never sent to the browser in clear text. A server id is the path
encrypted with Fernet and tagged with `TOKEN_PREFIX`, so telling a server id
apart from a plain path never requires guessing from length or charset.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import TypeVar

from cryptography.fernet import Fernet, InvalidToken

from filepond_backend.config import settings

logger = logging.getLogger(__name__)

TOKEN_PREFIX = "fpid."

_T = TypeVar("_T")


class TokenCodec:
    def __init__(self, fernet: Fernet) -> None:
        self._fernet = fernet

    @classmethod
    def from_key(cls, key: str) -> "TokenCodec":
        key = key.strip()
        if not key:
            raise ValueError("FILEPOND_TOKEN_KEY is not configured")
        try:
            return cls(Fernet(key.encode("utf-8")))
        except Exception as e:  # pragma: no cover
            raise ValueError("FILEPOND_TOKEN_KEY is invalid (must be a Fernet key)") from e

    @staticmethod
    def is_token(value: object) -> bool:
        return isinstance(value, str) and value.startswith(TOKEN_PREFIX)

    def encode(self, path: str) -> str:
        token = self._fernet.encrypt(path.encode("utf-8"))
        return TOKEN_PREFIX + token.decode("utf-8")

    def decode(self, value: _T) -> _T | str:
        """Return the path behind a server id, or `value` itself if it is not one."""

        if not isinstance(value, str) or not value.startswith(TOKEN_PREFIX):
            return value
        raw = value[len(TOKEN_PREFIX) :]
        try:
            return self._fernet.decrypt(raw.encode("utf-8")).decode("utf-8")
        except (InvalidToken, ValueError, UnicodeDecodeError):
            logger.warning("server id could not be decoded; treating it as a plain path")
            return value


@lru_cache(maxsize=1)
def get_token_codec() -> TokenCodec:
    return TokenCodec.from_key(settings.filepond_token_key)


def reset_token_codec_cache() -> None:
    get_token_codec.cache_clear()


def get_server_id_from_path(path: str) -> str:
    return get_token_codec().encode(path)


def get_path_from_server_id(server_id: str) -> str:
    return get_token_codec().decode(server_id)
