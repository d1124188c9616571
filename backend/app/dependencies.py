"""FastAPI dependencies: DB sessions, chain client and auth."""

from collections.abc import Generator

from fastapi import Header, HTTPException

from config import get_settings
from db.connection import get_db as get_db  # noqa: F401 (re-exported for routes)
from tipjar.services.chain_client import ChainQueryClient


def get_chain_client() -> Generator[ChainQueryClient | None, None, None]:
    """Yield a Bitquery client, or None when no API key is configured."""
    if not get_settings().indexer.is_configured:
        yield None
        return
    client: ChainQueryClient = ChainQueryClient()
    try:
        yield client
    finally:
        client.close()


def get_api_key(x_api_key: str = Header(default="")) -> str:
    """Validate API key on operator endpoints."""
    expected: str | None = get_settings().api_key
    if not expected:
        return ""  # auth disabled when no key configured
    if x_api_key != expected:
        raise HTTPException(status_code=401, detail="Invalid or missing API key")
    return x_api_key
