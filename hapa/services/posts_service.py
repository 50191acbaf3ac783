from __future__ import annotations

import logging
import math
import re
import uuid
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from hapa.core.errors import NotFoundError
from hapa.db.base import as_aware, utcnow
from hapa.models.category import Category
from hapa.models.enums import PostStatus
from hapa.models.post import Post
from hapa.services.seo import (
    auto_generate_seo_description,
    auto_generate_seo_image,
    auto_generate_seo_title,
    extract_plain_text,
    validate_seo_field,
)

logger = logging.getLogger(__name__)

POSTS_PER_PAGE = 12
LOCALES = ("fr", "ar")


def format_slug(value: str) -> str:
    slug = re.sub(r" ", "-", value or "")
    slug = re.sub(r"[^\w-]+", "", slug)
    return slug.lower()


def localized(field: Optional[Dict[str, Any]], locale: str) -> Any:
    if not field:
        return None
    return field.get(locale) or field.get("fr")


def _unique_slug(db: Session, model, base: str, exclude_id: Optional[uuid.UUID] = None) -> str:
    base = base or "item"
    candidate, n = base, 1
    while True:
        q = select(model.id).where(model.slug == candidate)
        if exclude_id is not None:
            q = q.where(model.id != exclude_id)
        if db.execute(q).first() is None:
            return candidate
        n += 1
        candidate = f"{base}-{n}"


def apply_seo_hooks(data: Dict[str, Any], original: Optional[Post] = None) -> None:
    """
    Fills empty meta fields per locale. On update a locale whose stored meta
    value is non-empty is left alone.
    """
    operation = "update" if original is not None else "create"

    meta_title = dict(data.get("meta_title") or {})
    meta_description = dict(data.get("meta_description") or {})
    for locale in LOCALES:
        if not localized_exact(data.get("title"), locale) and locale != "fr":
            continue
        meta_title[locale] = auto_generate_seo_title(
            data,
            locale,
            meta_title.get(locale),
            operation=operation,
            original=(original.meta_title or {}).get(locale) if original else None,
        )
        meta_description[locale] = auto_generate_seo_description(
            data,
            locale,
            meta_description.get(locale),
            operation=operation,
            original=(original.meta_description or {}).get(locale) if original else None,
        )

    data["meta_title"] = {k: v for k, v in meta_title.items() if v}
    data["meta_description"] = {k: v for k, v in meta_description.items() if v}
    data["meta_image_id"] = auto_generate_seo_image(
        data,
        data.get("meta_image_id"),
        operation=operation,
        original=original.meta_image_id if original else None,
    )


def localized_exact(field: Optional[Dict[str, Any]], locale: str) -> Any:
    return (field or {}).get(locale)


def seo_feedback(post: Post) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for locale in LOCALES:
        out[locale] = {
            "title": validate_seo_field((post.meta_title or {}).get(locale), "title"),
            "description": validate_seo_field((post.meta_description or {}).get(locale), "description"),
        }
    return out


def serialize_post(post: Post, locale: Optional[str] = None) -> Dict[str, Any]:
    data = {
        "id": str(post.id),
        "slug": post.slug,
        "title": post.title,
        "content": post.content,
        "status": post.status,
        "publishedAt": as_aware(post.published_at).isoformat() if post.published_at else None,
        "heroImage": post.hero_image.url if post.hero_image else None,
        "categories": [{"id": str(c.id), "slug": c.slug, "title": c.title} for c in post.categories],
        "meta": {
            "title": post.meta_title,
            "description": post.meta_description,
            "image": str(post.meta_image_id) if post.meta_image_id else None,
        },
    }
    if locale:
        data["localizedTitle"] = localized(post.title, locale)
    return data


def serialize_category(cat: Category) -> Dict[str, Any]:
    return {"id": str(cat.id), "slug": cat.slug, "title": cat.title}


class CategoriesService:
    def list(self, db: Session) -> List[Category]:
        return list(db.execute(select(Category).order_by(Category.slug)).scalars())

    def get(self, db: Session, category_id: uuid.UUID) -> Category:
        cat = db.get(Category, category_id)
        if cat is None:
            raise NotFoundError(f"Category {category_id} not found")
        return cat

    def by_slug(self, db: Session, slug: str) -> Category | None:
        return db.execute(select(Category).where(Category.slug == slug)).scalar_one_or_none()

    def create(self, db: Session, *, title: Dict[str, str], slug: Optional[str] = None) -> Category:
        base = format_slug(slug or localized(title, "fr") or "")
        cat = Category(title=title, slug=_unique_slug(db, Category, base))
        db.add(cat)
        db.commit()
        db.refresh(cat)
        return cat

    def update(self, db: Session, category_id: uuid.UUID, changes: Dict[str, Any]) -> Category:
        cat = self.get(db, category_id)
        if changes.get("title") is not None:
            cat.title = changes["title"]
        if changes.get("slug"):
            cat.slug = _unique_slug(db, Category, format_slug(changes["slug"]), exclude_id=cat.id)
        db.commit()
        db.refresh(cat)
        return cat

    def delete(self, db: Session, category_id: uuid.UUID) -> None:
        cat = self.get(db, category_id)
        db.delete(cat)
        db.commit()


class PostsService:
    def get(self, db: Session, post_id: uuid.UUID) -> Post:
        post = db.get(Post, post_id)
        if post is None:
            raise NotFoundError(f"Post {post_id} not found")
        return post

    def _categories(self, db: Session, ids: List[uuid.UUID]) -> List[Category]:
        if not ids:
            return []
        return list(db.execute(select(Category).where(Category.id.in_(ids))).scalars())

    def create(self, db: Session, data: Dict[str, Any]) -> Post:
        data = dict(data)
        category_ids = data.pop("category_ids", [])

        base = format_slug(data.get("slug") or localized(data.get("title"), "fr") or "")
        data["slug"] = _unique_slug(db, Post, base)

        if data.get("status") == PostStatus.published.value and not data.get("published_at"):
            data["published_at"] = utcnow()

        apply_seo_hooks(data)

        post = Post(**data)
        post.categories = self._categories(db, category_ids)
        db.add(post)
        db.commit()
        db.refresh(post)

        logger.info("[posts] created %s", post.slug, extra={"post_id": str(post.id)})
        return post

    def update(self, db: Session, post_id: uuid.UUID, changes: Dict[str, Any]) -> Post:
        post = self.get(db, post_id)
        changes = dict(changes)
        category_ids = changes.pop("category_ids", None)

        if changes.get("slug"):
            changes["slug"] = _unique_slug(db, Post, format_slug(changes["slug"]), exclude_id=post.id)

        if changes.get("status") == PostStatus.published.value and not (
            changes.get("published_at") or post.published_at
        ):
            changes["published_at"] = utcnow()

        merged = {
            "title": changes.get("title", post.title),
            "content": changes.get("content", post.content),
            "hero_image_id": changes.get("hero_image_id", post.hero_image_id),
            "meta_title": changes.get("meta_title", post.meta_title),
            "meta_description": changes.get("meta_description", post.meta_description),
            "meta_image_id": changes.get("meta_image_id", post.meta_image_id),
        }
        apply_seo_hooks(merged, original=post)
        for key in ("meta_title", "meta_description", "meta_image_id"):
            changes[key] = merged[key]

        for key, value in changes.items():
            setattr(post, key, value)
        if category_ids is not None:
            post.categories = self._categories(db, category_ids)

        db.commit()
        db.refresh(post)
        logger.info("[posts] updated %s", post.slug, extra={"post_id": str(post.id)})
        return post

    def delete(self, db: Session, post_id: uuid.UUID) -> None:
        post = self.get(db, post_id)
        db.delete(post)
        db.commit()
        logger.info("[posts] deleted %s", post_id)

    def list_admin(self, db: Session, *, limit: int = 50, offset: int = 0) -> List[Post]:
        return list(
            db.execute(select(Post).order_by(Post.created_at.desc()).limit(limit).offset(offset)).scalars()
        )

    # ─────────── public reads (published only) ───────────

    def _published(self):
        return select(Post).where(Post.status == PostStatus.published.value)

    def published_page(
        self,
        db: Session,
        page: int = 1,
        *,
        category: Optional[Category] = None,
        per_page: int = POSTS_PER_PAGE,
    ) -> Tuple[List[Post], int, int]:
        """Returns (posts, total, total_pages) for one page, newest first."""
        q = self._published()
        if category is not None:
            q = q.where(Post.categories.any(Category.id == category.id))

        total = db.execute(select(func.count()).select_from(q.subquery())).scalar_one()
        pages = max(1, math.ceil(total / per_page))
        posts = list(
            db.execute(
                q.order_by(Post.published_at.desc(), Post.created_at.desc())
                .limit(per_page)
                .offset((max(page, 1) - 1) * per_page)
            ).scalars()
        )
        return posts, int(total), pages

    def by_slug(self, db: Session, slug: str) -> Post | None:
        """Any status. Used by preview mode."""
        return db.execute(select(Post).where(Post.slug == slug)).scalar_one_or_none()

    def published_by_slug(self, db: Session, slug: str) -> Post | None:
        return db.execute(self._published().where(Post.slug == slug)).scalar_one_or_none()

    def search(self, db: Session, query: str, locale: str, *, limit: int = POSTS_PER_PAGE) -> List[Post]:
        needle = (query or "").strip().lower()
        if not needle:
            return []

        hits: List[Post] = []
        for post in db.execute(self._published().order_by(Post.published_at.desc())).scalars():
            haystack = " ".join(
                str(x or "")
                for x in (
                    localized(post.title, locale),
                    localized(post.meta_title, locale),
                    localized(post.meta_description, locale),
                    post.slug,
                    " ".join(str(localized(c.title, locale) or "") for c in post.categories),
                    extract_plain_text(localized(post.content, locale)),
                )
            ).lower()
            if needle in haystack:
                hits.append(post)
                if len(hits) >= limit:
                    break
        return hits
