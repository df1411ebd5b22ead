"""
Shared FastAPI dependencies.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from seatsync.db.session import get_session_factory
from seatsync.services.allocation_service import AllocationCoordinator


def get_coordinator(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> AllocationCoordinator:
    return AllocationCoordinator(session_factory)
