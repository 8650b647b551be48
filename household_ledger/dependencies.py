from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from household_ledger.core.clock import Clock, utcnow
from household_ledger.core.exceptions import AuthenticationException
from household_ledger.core.security import extract_identity
from household_ledger.database import get_db
from household_ledger.models.account import Account
from household_ledger.services.lifecycle_service import LifecycleService

security = HTTPBearer()


def get_clock() -> Clock:
    """Time source for services; overridden in tests"""
    return utcnow


async def get_current_account(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> Account:
    """
    FastAPI dependency to validate JWT and resolve the caller's account.

    Flow:
    1. Extract token from Authorization: Bearer <token>
    2. Validate JWT using shared SECRET_KEY
    3. Extract account id from 'sub' claim (and 'email' if present)
    4. Reauthenticate: create on first use, restore inside the grace
       period, refuse once permanently deleted
    5. Return the Active account for use in endpoints

    Raises:
        HTTPException 401: If token invalid or expired
        AccountPermanentlyDeletedException: Mapped to 410 by the app
    """
    try:
        account_id, email = extract_identity(credentials.credentials)
    except AuthenticationException as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )

    service = LifecycleService(db, clock)
    return service.reauthenticate(account_id, email)


async def get_token_account_id(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> str:
    """
    Validate JWT and return its subject without touching the account.

    Used where reauthentication must not run (reading deletion status
    must not restore a pending account).
    """
    try:
        account_id, _ = extract_identity(credentials.credentials)
    except AuthenticationException as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    return account_id
