# Nombre de archivo: posts.py
# Ubicación de archivo: api/app/routes/posts.py
# Descripción: Endpoints de avisos (listar, crear, borrar, comprometer asistencia, resolver)

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from api.app.deps import error_response, get_actor, get_feed, get_profile, get_session, result_response
from core.errors import CoordinationError
from core.events import ChangeEvent, ChangeFeed
from core.services.posts import NewPost, PostService
from core.services.users import Actor
from db.models.coordinacion import PostCategory, PostType, UserProfile

router = APIRouter(prefix="/api/posts", tags=["posts"])
logger = logging.getLogger(__name__)


class PostCreateRequest(BaseModel):
    """Formulario de alta de aviso."""

    type: PostType
    category: PostCategory
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=4000)
    location: str = Field("", max_length=255)
    contact: str = Field("", max_length=255)
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)


class AssistRequest(BaseModel):
    note: str = Field("", max_length=1000)


class ResolveRequest(BaseModel):
    note: Optional[str] = Field(None, max_length=1000)


@router.get("")
async def list_posts(session: Session = Depends(get_session)) -> List[Dict[str, Any]]:
    return [post.to_dict() for post in PostService(session).list_posts()]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_post(
    payload: PostCreateRequest,
    actor: Optional[Actor] = Depends(get_actor),
    session: Session = Depends(get_session),
    feed: ChangeFeed = Depends(get_feed),
):
    form = NewPost(**payload.model_dump())
    try:
        post = PostService(session).create_post(form, actor)
    except CoordinationError as exc:
        return error_response(exc)
    feed.publish(ChangeEvent(collection="posts", kind="created", doc_id=post.id))
    return JSONResponse(status_code=status.HTTP_201_CREATED, content=post.to_dict())


@router.delete("/{post_id}")
async def delete_post(
    post_id: str,
    actor: Optional[Actor] = Depends(get_actor),
    session: Session = Depends(get_session),
    feed: ChangeFeed = Depends(get_feed),
) -> JSONResponse:
    result = PostService(session).delete_post(post_id, actor)
    if result.success:
        feed.publish(ChangeEvent(collection="posts", kind="deleted", doc_id=post_id))
    return result_response(result.to_dict())


@router.post("/{post_id}/assist")
async def assist_post(
    post_id: str,
    payload: AssistRequest,
    actor: Optional[Actor] = Depends(get_actor),
    session: Session = Depends(get_session),
    feed: ChangeFeed = Depends(get_feed),
) -> JSONResponse:
    result = PostService(session).commit_assistance(post_id, actor, payload.note)
    if result.success:
        feed.publish(ChangeEvent(collection="posts", kind="updated", doc_id=post_id))
    return result_response(result.to_dict())


@router.post("/{post_id}/resolve")
async def resolve_post(
    post_id: str,
    payload: ResolveRequest,
    actor: Optional[Actor] = Depends(get_actor),
    profile: Optional[UserProfile] = Depends(get_profile),
    session: Session = Depends(get_session),
    feed: ChangeFeed = Depends(get_feed),
) -> JSONResponse:
    result = PostService(session).resolve_post(post_id, actor, profile=profile, note=payload.note)
    if result.success:
        feed.publish(ChangeEvent(collection="posts", kind="updated", doc_id=post_id))
    return result_response(result.to_dict())
