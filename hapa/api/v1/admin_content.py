#hapa/api/v1/admin_content.py
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from hapa.core.auth_deps import require_action
from hapa.core.errors import NotFoundError
from hapa.db.session import get_db
from hapa.policies.rbac import ACTION_MANAGE_CONTENT, Principal
from hapa.schemas.posts import CategoryIn, CategoryPatch, PostIn, PostPatch
from hapa.services.posts_service import (
    CategoriesService,
    PostsService,
    seo_feedback,
    serialize_category,
    serialize_post,
)

router = APIRouter(prefix="/admin", dependencies=[Depends(require_action(ACTION_MANAGE_CONTENT))])


def _post_response(post):
    return {"success": True, "post": serialize_post(post), "seo": seo_feedback(post)}


# ─────────── posts ───────────

@router.get("/posts")
def list_posts(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    posts = PostsService().list_admin(db, limit=limit, offset=offset)
    return {"success": True, "posts": [serialize_post(p) for p in posts]}


@router.post("/posts", status_code=201)
def create_post(req: PostIn, db: Session = Depends(get_db)):
    post = PostsService().create(db, req.model_dump())
    return _post_response(post)


@router.get("/posts/{post_id}")
def get_post(post_id: uuid.UUID, db: Session = Depends(get_db)):
    try:
        post = PostsService().get(db, post_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Post not found")
    return _post_response(post)


@router.patch("/posts/{post_id}")
def update_post(post_id: uuid.UUID, req: PostPatch, db: Session = Depends(get_db)):
    try:
        post = PostsService().update(db, post_id, req.model_dump(exclude_unset=True))
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Post not found")
    return _post_response(post)


@router.delete("/posts/{post_id}")
def delete_post(post_id: uuid.UUID, db: Session = Depends(get_db)):
    try:
        PostsService().delete(db, post_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Post not found")
    return {"success": True, "id": str(post_id)}


# ─────────── categories ───────────

@router.get("/categories")
def list_categories(db: Session = Depends(get_db)):
    return {"success": True, "categories": [serialize_category(c) for c in CategoriesService().list(db)]}


@router.post("/categories", status_code=201)
def create_category(req: CategoryIn, db: Session = Depends(get_db)):
    cat = CategoriesService().create(db, title=req.title, slug=req.slug)
    return {"success": True, "category": serialize_category(cat)}


@router.patch("/categories/{category_id}")
def update_category(category_id: uuid.UUID, req: CategoryPatch, db: Session = Depends(get_db)):
    try:
        cat = CategoriesService().update(db, category_id, req.model_dump(exclude_unset=True))
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Category not found")
    return {"success": True, "category": serialize_category(cat)}


@router.delete("/categories/{category_id}")
def delete_category(category_id: uuid.UUID, db: Session = Depends(get_db)):
    try:
        CategoriesService().delete(db, category_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Category not found")
    return {"success": True, "id": str(category_id)}
