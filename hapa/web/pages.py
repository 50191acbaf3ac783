#hapa/web/pages.py
from __future__ import annotations

import hmac
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, get_args

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse
from fastapi.security import HTTPAuthorizationCredentials
from fastapi.templating import Jinja2Templates
from markupsafe import Markup, escape
from sqlalchemy.orm import Session

from hapa.core.auth_deps import bearer, principal_from_token
from hapa.core.config import get_settings
from hapa.core.translations import ATTACHMENT_TYPES, MEDIA_TYPES, REASONS, RELATIONSHIPS, Labels
from hapa.db.session import get_db
from hapa.policies.rbac import Principal
from hapa.schemas.forms import AttachmentTypeKey, MediaTypeKey, ReasonKey, RelationshipKey
from hapa.services.posts_service import CategoriesService, PostsService, localized
from hapa.services.seo import extract_plain_text, site_name_for, truncate_text

TEMPLATE_DIR = Path(__file__).resolve().parents[1] / "templates"
LOCALES = ("fr", "ar")

templates = Jinja2Templates(directory=str(TEMPLATE_DIR))

router = APIRouter(include_in_schema=False)
logger = logging.getLogger(__name__)

NEWS_CATEGORY = "news"

# fixed publication sections; the matching CMS category may not exist yet
PUBLICATION_CATEGORIES: Dict[str, Dict[str, str]] = {
    "decisions": {"fr": "Décisions et communiqués", "ar": "قرارات وبيانات"},
    "rapports": {"fr": "Rapports", "ar": "تقارير"},
    "lois-et-reglements": {"fr": "Lois et règlements", "ar": "قوانين وتشريعات"},
    "publications": {"fr": "Publications et éditions", "ar": "إصدرات ومنشورات"},
    "actualites": {"fr": "Actualités", "ar": "الأخبار"},
}

SITEMAP_PATHS = (
    "",
    "/posts",
    "/news",
    "/search",
    "/contact",
    "/forms/media-content-report",
    "/forms/media-content-complaint",
) + tuple(f"/publications/{slug}" for slug in PUBLICATION_CATEGORIES)

PREVIEW_DENIED = "You are not allowed to preview this page"

UI: Dict[str, Dict[str, str]] = {
    "fr": {
        "home": "Accueil",
        "posts": "Actualités",
        "news": "Actualités",
        "articles": "articles",
        "empty_category": "Aucun article dans cette catégorie pour le moment",
        "preview": "Aperçu",
        "exit_preview": "Quitter l'aperçu",
        "search": "Recherche",
        "contact": "Contact",
        "report": "Signaler un contenu",
        "complaint": "Déposer une plainte",
        "latest": "Dernières actualités",
        "no_posts": "Aucune publication pour le moment.",
        "no_results": "Aucun résultat pour",
        "results_for": "Résultats pour",
        "previous": "Précédent",
        "next": "Suivant",
        "page": "Page",
        "not_found": "Page introuvable",
        "not_found_text": "La page que vous recherchez n'existe pas.",
        "back_home": "Retour à l'accueil",
        "send": "Envoyer",
        "name": "Nom",
        "email": "E-mail",
        "phone": "Téléphone",
        "subject": "Objet",
        "message": "Message",
        "category": "Catégorie",
    },
    "ar": {
        "home": "الرئيسية",
        "posts": "الأخبار",
        "news": "الأخبار",
        "articles": "مقال",
        "empty_category": "لا توجد مقالات في هذه الفئة حاليًا",
        "preview": "معاينة",
        "exit_preview": "الخروج من المعاينة",
        "search": "بحث",
        "contact": "اتصل بنا",
        "report": "الإبلاغ عن محتوى",
        "complaint": "تقديم شكوى",
        "latest": "آخر الأخبار",
        "no_posts": "لا توجد منشورات حالياً.",
        "no_results": "لا توجد نتائج لـ",
        "results_for": "نتائج البحث عن",
        "previous": "السابق",
        "next": "التالي",
        "page": "صفحة",
        "not_found": "الصفحة غير موجودة",
        "not_found_text": "الصفحة التي تبحث عنها غير موجودة.",
        "back_home": "العودة إلى الرئيسية",
        "send": "إرسال",
        "name": "الاسم",
        "email": "البريد الإلكتروني",
        "phone": "الهاتف",
        "subject": "الموضوع",
        "message": "الرسالة",
        "category": "التصنيف",
    },
}

_BLOCK_TAGS = {"paragraph": "p", "quote": "blockquote", "listitem": "li"}
_FORMAT_TAGS = ((1, "strong"), (2, "em"), (8, "u"))


def _render_node(node: Any) -> str:
    if not isinstance(node, dict):
        return ""
    node_type = node.get("type")

    if node_type == "text":
        out = str(escape(node.get("text") or ""))
        fmt = node.get("format") or 0
        if isinstance(fmt, int):
            for bit, tag in _FORMAT_TAGS:
                if fmt & bit:
                    out = f"<{tag}>{out}</{tag}>"
        return out
    if node_type == "linebreak":
        return "<br>"

    inner = "".join(_render_node(c) for c in node.get("children") or [])
    if node_type == "heading":
        tag = node.get("tag") if node.get("tag") in ("h2", "h3", "h4", "h5", "h6") else "h2"
        return f"<{tag}>{inner}</{tag}>"
    if node_type == "list":
        tag = "ol" if node.get("listType") == "number" else "ul"
        return f"<{tag}>{inner}</{tag}>"
    if node_type == "link":
        url = (node.get("fields") or {}).get("url") or node.get("url") or "#"
        if not str(url).startswith(("http://", "https://", "/", "#", "mailto:")):
            url = "#"
        return f'<a href="{escape(url)}">{inner}</a>'
    if node_type in _BLOCK_TAGS:
        tag = _BLOCK_TAGS[node_type]
        return f"<{tag}>{inner}</{tag}>"
    return inner


def render_richtext(tree: Any) -> Markup:
    """Lexical JSON tree -> HTML. Only known node types produce markup."""
    if not isinstance(tree, dict):
        return Markup("")
    return Markup(_render_node(tree.get("root", tree)))


def excerpt(post, locale: str, length: int = 160) -> str:
    meta = localized(post.meta_description, locale)
    if meta:
        return meta
    return truncate_text(extract_plain_text(localized(post.content, locale)), length)


templates.env.filters["richtext"] = render_richtext
templates.env.globals["localized"] = localized
templates.env.globals["excerpt"] = excerpt


def _context(request: Request, locale: str, **extra: Any) -> Dict[str, Any]:
    return {
        "request": request,
        "locale": locale,
        "dir": "rtl" if locale == "ar" else "ltr",
        "other_locale": "ar" if locale == "fr" else "fr",
        "t": UI[locale],
        "site_name": site_name_for(locale),
        "site_url": get_settings().site_url,
        **extra,
    }


def not_found(request: Request, locale: Optional[str] = None) -> HTMLResponse:
    locale = locale if locale in LOCALES else get_settings().default_locale
    return templates.TemplateResponse(
        request, "not_found.html", _context(request, locale, page_title=UI[locale]["not_found"]), status_code=404
    )


def _posts_listing(
    request: Request,
    db: Session,
    locale: str,
    page: int,
    category_slug: Optional[str] = None,
):
    if locale not in LOCALES:
        return not_found(request)

    category = None
    if category_slug is not None:
        category = CategoriesService().by_slug(db, category_slug)
        if category is None:
            return not_found(request, locale)

    posts, total, pages = PostsService().published_page(db, page, category=category)
    if page < 1 or page > pages:
        return not_found(request, locale)

    base = f"/{locale}/posts/category/{category.slug}" if category else f"/{locale}/posts"
    title = localized(category.title, locale) if category else UI[locale]["posts"]
    return templates.TemplateResponse(
        request,
        "posts.html",
        _context(
            request,
            locale,
            page_title=title,
            posts=posts,
            total=total,
            page=page,
            pages=pages,
            base_url=base,
            category=category,
        ),
    )


def _section_listing(request: Request, db: Session, locale: str, page: int, slug: str, base: str, title: str):
    """Listing for a fixed site section. A missing CMS category renders as an empty section."""
    if locale not in LOCALES:
        return not_found(request)

    category = CategoriesService().by_slug(db, slug)
    if category is None:
        posts, total, pages = [], 0, 1
    else:
        posts, total, pages = PostsService().published_page(db, page, category=category)
    if page < 1 or page > pages:
        return not_found(request, locale)

    return templates.TemplateResponse(
        request,
        "posts.html",
        _context(
            request,
            locale,
            page_title=title,
            posts=posts,
            total=total,
            page=page,
            pages=pages,
            base_url=base,
            category=category,
            show_count=True,
            empty_text=UI[locale]["empty_category"],
        ),
    )


def preview_principal(request: Request) -> Optional[Principal]:
    token = request.cookies.get(get_settings().preview_cookie_name)
    if not token:
        return None
    try:
        return principal_from_token(token)
    except HTTPException:
        return None


@router.get("/")
def root():
    return RedirectResponse(url=f"/{get_settings().default_locale}", status_code=307)


@router.get("/pages-sitemap.xml")
def pages_sitemap(request: Request):
    settings = get_settings()
    base = settings.site_url.rstrip("/")
    urls = [f"{base}/{locale}{path}" for locale in LOCALES for path in SITEMAP_PATHS]
    return templates.TemplateResponse(
        request,
        "pages_sitemap.xml",
        {"request": request, "urls": urls, "lastmod": datetime.now(timezone.utc).date().isoformat()},
        media_type="application/xml",
    )


@router.get("/next/preview")
def enter_preview(
    request: Request,
    path: Optional[str] = Query(None),
    preview_secret: Optional[str] = Query(None, alias="previewSecret"),
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
):
    settings = get_settings()
    if not settings.preview_secret or not hmac.compare_digest(preview_secret or "", settings.preview_secret):
        return PlainTextResponse(PREVIEW_DENIED, status_code=403)
    if not path:
        return PlainTextResponse("Insufficient search params", status_code=404)
    if not path.startswith("/") or path.startswith("//"):
        return PlainTextResponse("This endpoint can only be used for relative previews", status_code=400)
    if creds is None:
        return PlainTextResponse(PREVIEW_DENIED, status_code=403)
    try:
        principal = principal_from_token(creds.credentials)
    except HTTPException:
        logger.info("[preview] rejected token for %s", path)
        return PlainTextResponse(PREVIEW_DENIED, status_code=403)

    logger.info("[preview] enabled for %s", principal.email, extra={"user_id": principal.user_id, "path": path})
    response = RedirectResponse(url=path, status_code=307)
    response.set_cookie(
        settings.preview_cookie_name,
        creds.credentials,
        max_age=settings.jwt_access_token_minutes * 60,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
        path="/",
    )
    return response


@router.get("/next/exit-preview")
def exit_preview():
    response = PlainTextResponse("Preview mode has been disabled")
    response.delete_cookie(get_settings().preview_cookie_name, path="/")
    return response


@router.get("/{locale}", response_class=HTMLResponse)
def home(request: Request, locale: str, db: Session = Depends(get_db)):
    if locale not in LOCALES:
        return not_found(request)
    posts, _, _ = PostsService().published_page(db, 1, per_page=6)
    return templates.TemplateResponse(
        request, "home.html", _context(request, locale, page_title=UI[locale]["home"], posts=posts)
    )


@router.get("/{locale}/posts", response_class=HTMLResponse)
def posts_index(request: Request, locale: str, db: Session = Depends(get_db)):
    return _posts_listing(request, db, locale, 1)


@router.get("/{locale}/posts/page/{page}", response_class=HTMLResponse)
def posts_page(request: Request, locale: str, page: str, db: Session = Depends(get_db)):
    if not page.isdigit():
        return not_found(request, locale)
    return _posts_listing(request, db, locale, int(page))


@router.get("/{locale}/posts/category/{slug}", response_class=HTMLResponse)
def category_index(request: Request, locale: str, slug: str, db: Session = Depends(get_db)):
    return _posts_listing(request, db, locale, 1, category_slug=slug)


@router.get("/{locale}/posts/category/{slug}/page/{page}", response_class=HTMLResponse)
def category_page(request: Request, locale: str, slug: str, page: str, db: Session = Depends(get_db)):
    if not page.isdigit():
        return not_found(request, locale)
    return _posts_listing(request, db, locale, int(page), category_slug=slug)


@router.get("/{locale}/news", response_class=HTMLResponse)
def news_index(request: Request, locale: str, db: Session = Depends(get_db)):
    return _news(request, db, locale, "1")


@router.get("/{locale}/news/page/{page}", response_class=HTMLResponse)
def news_page(request: Request, locale: str, page: str, db: Session = Depends(get_db)):
    return _news(request, db, locale, page)


def _news(request: Request, db: Session, locale: str, page: str):
    if locale not in LOCALES:
        return not_found(request)
    if not page.isdigit():
        return not_found(request, locale)
    return _section_listing(request, db, locale, int(page), NEWS_CATEGORY, f"/{locale}/news", UI[locale]["news"])


@router.get("/{locale}/publications/{category}", response_class=HTMLResponse)
def publications_index(request: Request, locale: str, category: str, db: Session = Depends(get_db)):
    return _publications(request, db, locale, category, "1")


@router.get("/{locale}/publications/{category}/page/{page}", response_class=HTMLResponse)
def publications_page(request: Request, locale: str, category: str, page: str, db: Session = Depends(get_db)):
    return _publications(request, db, locale, category, page)


def _publications(request: Request, db: Session, locale: str, category: str, page: str):
    if locale not in LOCALES:
        return not_found(request)
    titles = PUBLICATION_CATEGORIES.get(category)
    if titles is None or not page.isdigit():
        return not_found(request, locale)
    return _section_listing(
        request, db, locale, int(page), category, f"/{locale}/publications/{category}", titles[locale]
    )


@router.get("/{locale}/posts/{slug}", response_class=HTMLResponse)
def post_detail(request: Request, locale: str, slug: str, db: Session = Depends(get_db)):
    if locale not in LOCALES:
        return not_found(request)
    previewing = preview_principal(request) is not None
    service = PostsService()
    post = service.by_slug(db, slug) if previewing else service.published_by_slug(db, slug)
    if post is None:
        return not_found(request, locale)

    response = templates.TemplateResponse(
        request,
        "post.html",
        _context(
            request,
            locale,
            page_title=localized(post.meta_title, locale) or localized(post.title, locale),
            meta_description=localized(post.meta_description, locale),
            meta_image=post.meta_image.url if post.meta_image else None,
            post=post,
            content=localized(post.content, locale),
            preview=previewing,
        ),
    )
    if previewing:
        response.headers["Cache-Control"] = "no-store"
    return response


@router.get("/{locale}/search", response_class=HTMLResponse)
def search(request: Request, locale: str, q: str = Query(""), db: Session = Depends(get_db)):
    if locale not in LOCALES:
        return not_found(request)
    results = PostsService().search(db, q, locale) if q.strip() else []
    return templates.TemplateResponse(
        request,
        "search.html",
        _context(
            request,
            locale,
            page_title=UI[locale]["search"],
            query=q,
            results=results,
            categories=CategoriesService().list(db),
        ),
    )


@router.get("/{locale}/contact", response_class=HTMLResponse)
def contact(request: Request, locale: str):
    if locale not in LOCALES:
        return not_found(request)
    return templates.TemplateResponse(
        request, "contact.html", _context(request, locale, page_title=UI[locale]["contact"])
    )


def _options(table: Labels, keys) -> Labels:
    return {k: table[k] for k in get_args(keys)}


def _form_page(request: Request, locale: str, form_type: str):
    if locale not in LOCALES:
        return not_found(request)
    return templates.TemplateResponse(
        request,
        "media_form.html",
        _context(
            request,
            locale,
            page_title=UI[locale][form_type],
            form_type=form_type,
            media_types=_options(MEDIA_TYPES, MediaTypeKey),
            reasons=_options(REASONS, ReasonKey),
            relationships=_options(RELATIONSHIPS, RelationshipKey),
            attachment_types=_options(ATTACHMENT_TYPES, AttachmentTypeKey),
        ),
    )


@router.get("/{locale}/forms/media-content-report", response_class=HTMLResponse)
def report_form(request: Request, locale: str):
    return _form_page(request, locale, "report")


@router.get("/{locale}/forms/media-content-complaint", response_class=HTMLResponse)
def complaint_form(request: Request, locale: str):
    return _form_page(request, locale, "complaint")
