"""Bookmark CRUD. The caller supplies the user ID; identity is not verified here."""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException

from ..core.firestore_store import FirestoreStore
from ..dependencies import get_store
from ..models import Bookmark, BookmarkCreate, BookmarkDelete

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookmarks", tags=["bookmarks"])


@router.post("", response_model=Bookmark, status_code=201)
async def create_bookmark(
    bookmark: BookmarkCreate,
    store: FirestoreStore = Depends(get_store),
) -> Bookmark:
    return await asyncio.to_thread(store.save_bookmark, bookmark)


@router.get("/{user_id}", response_model=list[Bookmark])
async def list_bookmarks(
    user_id: str,
    store: FirestoreStore = Depends(get_store),
) -> list[Bookmark]:
    return await asyncio.to_thread(store.list_bookmarks, user_id)


@router.delete("/{bookmark_id}")
async def delete_bookmark(
    bookmark_id: str,
    request: BookmarkDelete,
    store: FirestoreStore = Depends(get_store),
) -> dict[str, bool]:
    deleted = await asyncio.to_thread(store.delete_bookmark, bookmark_id, request.user_id)
    if not deleted:
        logger.info(f"Bookmark {bookmark_id} not found for user {request.user_id}")
        raise HTTPException(status_code=404, detail="Bookmark not found")
    return {"deleted": True}
