from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from motor.motor_asyncio import AsyncIOMotorDatabase
from farmease.core.database import get_database
from farmease.core.security import AuthSession, session_from_token
from farmease.services.cart_service import CartStore
from farmease.services.product_service import ProductDataService
from farmease.services.storage import InMemoryClientStorage, MongoClientStorage

# Security schemes
security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


async def get_db() -> AsyncIOMotorDatabase:
    """Dependency to get database instance."""
    return get_database()


async def get_current_session(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> AuthSession:
    """
    Dependency to get the current authenticated session.

    Verifies the access token issued by the hosted auth service.

    Raises:
        HTTPException: If the token is invalid or carries no user
    """
    session = session_from_token(credentials.credentials)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return session


async def get_optional_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security)
) -> Optional[AuthSession]:
    """
    Dependency to optionally get the current session.
    Returns None if no valid token is provided.
    """
    if not credentials:
        return None
    return session_from_token(credentials.credentials)


async def get_product_service(
    db: AsyncIOMotorDatabase = Depends(get_db)
) -> ProductDataService:
    """Dependency to get the product data service."""
    return ProductDataService(db)


async def get_cart_store(
    session: AuthSession = Depends(get_current_session),
    db: AsyncIOMotorDatabase = Depends(get_db)
) -> CartStore:
    """Dependency to get the signed-in user's cart, restored from storage."""
    return await CartStore.load(MongoClientStorage(db, session.user_id), session)


async def get_optional_cart_store(
    session: Optional[AuthSession] = Depends(get_optional_session),
    db: AsyncIOMotorDatabase = Depends(get_db)
) -> CartStore:
    """
    Dependency to get the caller's cart.

    Anonymous callers get an empty throwaway cart, which refuses additions
    with a login redirect.
    """
    if session is None:
        return await CartStore.load(InMemoryClientStorage(), None)
    return await CartStore.load(MongoClientStorage(db, session.user_id), session)
