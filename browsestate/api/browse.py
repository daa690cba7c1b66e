"""
Browse state API endpoints.

Server-side access to the browse core: resolve the initial state for a
page load, encode a state into its canonical query string, and keep
session snapshots and stored preferences in the database.

Each request loads the owner's rows into a MemoryStore, runs the
synchronous core against it and writes back only what changed.
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from browsestate.db import (
    delete_session_items,
    get_preference_items,
    get_session_items,
    put_preference_item,
    sync_session_items,
)
from browsestate.db.database import get_session
from browsestate.models.filters import CatalogMode
from browsestate.schema.url_adapter import state_to_query_string
from browsestate.services.startup import resolve_startup
from browsestate.storage.backends import MemoryStore
from browsestate.storage.preferences import preference_keys, store_preference
from browsestate.storage.snapshot import (
    clear_snapshot,
    save_snapshot,
    state_from_json,
    state_to_json,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/browse", tags=["browse"])


class ResolveRequest(BaseModel):
    """Request model for resolving the initial browse state."""

    query_string: str | None = Field(
        default=None,
        description="Query string of the page being loaded; null when there is no URL",
        examples=["contentType=cards&includeRarities=rare|mythic"],
    )
    session_id: str | None = Field(
        default=None,
        description="Browsing session whose snapshots may be restored",
    )
    user_id: str | None = Field(
        default=None,
        description="User whose stored preferences apply",
    )


class ResolveResponse(BaseModel):
    """Response model for a resolved browse state."""

    active_mode: CatalogMode
    cards: dict[str, Any] = Field(default_factory=dict)
    sets: dict[str, Any] = Field(default_factory=dict)
    sources: dict[str, str] = Field(
        default_factory=dict,
        description="Where each catalog's state came from: url, snapshot or defaults",
    )
    dropped_tokens: list[str] = Field(
        default_factory=list,
        description="State keys whose URL value was malformed and ignored",
    )


class EncodeRequest(BaseModel):
    """Request model for encoding a search state."""

    mode: CatalogMode
    state: dict[str, Any] = Field(
        default_factory=dict,
        examples=[{"rarities": {"include": ["rare", "mythic"], "exclude": []}}],
    )


class EncodeResponse(BaseModel):
    """Response model for an encoded search state."""

    query_string: str
    dropped_fields: list[str] = Field(
        default_factory=list,
        description="State keys whose value was invalid and left out",
    )


class SnapshotRequest(BaseModel):
    """Request model for saving a session snapshot."""

    state: dict[str, Any] = Field(default_factory=dict)
    active_mode: CatalogMode | None = Field(
        default=None,
        description="Catalog currently shown; an empty state only clears the snapshot "
        "of the active catalog",
    )


class SnapshotResponse(BaseModel):
    """Response model for a snapshot write."""

    session_id: str
    mode: CatalogMode
    stored: bool


class DeleteResponse(BaseModel):
    """Response model for delete operations."""

    session_id: str
    deleted: int


class PreferencesRequest(BaseModel):
    """Request model for storing preferences."""

    mode: CatalogMode
    values: dict[str, Any] = Field(
        ...,
        description="Preference field -> value",
        examples=[{"sort_by": "name", "page_size": 60}],
    )


class PreferencesResponse(BaseModel):
    """Response model for stored preferences."""

    user_id: str
    mode: CatalogMode
    stored: list[str] = Field(default_factory=list)


@router.post("/resolve", response_model=ResolveResponse)
async def resolve_browse_state(
    request: ResolveRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> ResolveResponse:
    """
    Resolve the initial browse state for a page load.

    Applies URL > session snapshot > stored preferences > fallbacks.
    Never fails on bad URL or stored data; read-only.
    """
    session_store = None
    if request.session_id:
        session_store = MemoryStore(await get_session_items(session, request.session_id))

    preference_store = None
    if request.user_id:
        preference_store = MemoryStore(await get_preference_items(session, request.user_id))

    resolution = resolve_startup(request.query_string, session_store, preference_store)
    state = resolution.state

    return ResolveResponse(
        active_mode=state.active_mode,
        cards=state_to_json(state.cards_search_state, CatalogMode.CARDS),
        sets=state_to_json(state.sets_search_state, CatalogMode.SETS),
        sources={mode.value: source.value for mode, source in resolution.sources.items()},
        dropped_tokens=[error.key for error in resolution.errors],
    )


@router.post("/encode", response_model=EncodeResponse)
async def encode_browse_state(request: EncodeRequest) -> EncodeResponse:
    """
    Encode a search state into its canonical query string.

    Default and empty values are left out; invalid fields are dropped and
    reported.
    """
    state, errors = state_from_json(request.state, request.mode)
    return EncodeResponse(
        query_string=state_to_query_string(state, request.mode),
        dropped_fields=[error.key for error in errors],
    )


@router.put("/sessions/{session_id}/{mode}", response_model=SnapshotResponse)
async def save_session_snapshot(
    session_id: str,
    mode: CatalogMode,
    request: SnapshotRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> SnapshotResponse:
    """Save the snapshot for one catalog of a browsing session."""
    before = await get_session_items(session, session_id)
    store = MemoryStore(before)

    state, _ = state_from_json(request.state, mode)
    stored = save_snapshot(store, mode, state, active_mode=request.active_mode)
    await sync_session_items(session, session_id, before, store.items())

    return SnapshotResponse(session_id=session_id, mode=mode, stored=stored)


@router.delete("/sessions/{session_id}/{mode}", response_model=DeleteResponse)
async def clear_session_snapshot(
    session_id: str,
    mode: CatalogMode,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> DeleteResponse:
    """Clear one catalog's snapshot (explicit search reset)."""
    before = await get_session_items(session, session_id)
    store = MemoryStore(before)

    clear_snapshot(store, mode)
    deleted = await sync_session_items(session, session_id, before, store.items())

    return DeleteResponse(session_id=session_id, deleted=deleted)


@router.delete("/sessions/{session_id}", response_model=DeleteResponse)
async def clear_session(
    session_id: str,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> DeleteResponse:
    """Clear every snapshot of a browsing session (logout, user switch)."""
    deleted = await delete_session_items(session, session_id)
    logger.info("session_cleared", extra={"session_id": session_id, "deleted": deleted})
    return DeleteResponse(session_id=session_id, deleted=deleted)


@router.put("/preferences/{user_id}", response_model=PreferencesResponse)
async def store_preferences(
    user_id: str,
    request: PreferencesRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> PreferencesResponse:
    """
    Store browse preferences for one catalog.

    All values are validated before anything is written; one invalid
    value rejects the whole request.
    """
    store = MemoryStore()
    for field, value in request.values.items():
        try:
            store_preference(store, request.mode, field, value)
        except KeyError:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"Unknown {request.mode.value} preference: {field}",
            ) from None
        except ValidationError as e:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"Invalid value for {field}: {e.errors()[0]['msg']}",
            ) from None

    keys = preference_keys(request.mode)
    stored: list[str] = []
    for field in request.values:
        payload = store.get_item(keys[field])
        if payload is not None:
            await put_preference_item(session, user_id, keys[field], payload)
            stored.append(field)

    return PreferencesResponse(user_id=user_id, mode=request.mode, stored=stored)
