"""Shared FastAPI dependencies."""
from typing import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config.settings import NyuchiConfig
from ..core.pipeline.service import PipelineService
from ..core.pipeline.sync import SourceSynchronizer
from ..core.security.access import AccessPolicy
from ..core.security.identity import CallerIdentity, identity_from_headers
from ..core.storage.database import get_db


async def get_session() -> AsyncIterator[AsyncSession]:
    """Get database session dependency."""
    db = get_db()
    async with db.session() as session:
        yield session


def get_config(request: Request) -> NyuchiConfig:
    return request.app.state.config


def get_policy(request: Request) -> AccessPolicy:
    return request.app.state.policy


def get_caller(request: Request) -> CallerIdentity:
    """Caller claims forwarded by the identity provider; 401 when absent."""
    return identity_from_headers(request.headers)


def get_pipeline_service(
    session: AsyncSession = Depends(get_session),
    policy: AccessPolicy = Depends(get_policy),
    config: NyuchiConfig = Depends(get_config),
) -> PipelineService:
    return PipelineService(session, policy, config)


def get_synchronizer(config: NyuchiConfig = Depends(get_config)) -> SourceSynchronizer:
    return SourceSynchronizer(get_db().session, max_attempts=config.sync_max_attempts)
