"""FastAPI dependencies for aihub routes."""

import hmac
import logging
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from aihub.catalog.currency import CurrencyConverter
from aihub.catalog.repository import CatalogRepository
from aihub.db.session import get_db_session
from aihub.providers.litellm import LiteLLMCatalogClient

logger = logging.getLogger(__name__)

# Security scheme for Bearer token extraction
security = HTTPBearer(auto_error=False)


async def extract_token(
    request: Request,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> Optional[str]:
    """Extract Bearer token from request.

    Args:
        request: FastAPI request
        credentials: HTTP Authorization credentials from Bearer scheme

    Returns:
        Token string if valid Bearer token present, None otherwise
    """
    if not credentials:
        auth_header = request.headers.get("authorization")
        if not auth_header:
            return None

        parts = auth_header.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            return None
        return parts[1]

    return credentials.credentials


async def require_admin(
    request: Request,
    token: Annotated[Optional[str], Depends(extract_token)],
) -> str:
    """Require the master key.

    Raises:
        HTTPException: 401 if no token was sent, 403 if it is not the master key
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    master_key = request.app.state.config.general.master_key
    if not master_key or not hmac.compare_digest(token, master_key):
        logger.warning(f"Rejected admin request to {request.url.path}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Master key required",
        )
    return token


def get_catalog_client(request: Request) -> LiteLLMCatalogClient:
    """Get the routing service client from app state."""
    return request.app.state.catalog_client


def get_currency_converter(request: Request) -> CurrencyConverter:
    """Get the currency converter from app state."""
    return request.app.state.currency_converter


async def get_catalog_repository(
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> CatalogRepository:
    return CatalogRepository(db)
