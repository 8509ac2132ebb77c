from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from wms.db.session import get_async_session


# PUBLIC_INTERFACE
async def get_session(session: AsyncSession = Depends(get_async_session)) -> AsyncSession:
    """
    Return the request-scoped AsyncSession.

    Services own the transaction boundaries; get_async_session closes the
    session once the request is done.
    """
    return session
