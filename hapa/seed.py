from sqlalchemy import select
from sqlalchemy.orm import Session

from hapa.db.session import SessionLocal
from hapa.models.post import Post
from hapa.services.posts_service import CategoriesService, PostsService

CATEGORIES = [
    {"slug": "communiques", "title": {"fr": "Communiqués", "ar": "بلاغات"}},
    {"slug": "decisions", "title": {"fr": "Décisions", "ar": "قرارات"}},
    {"slug": "rapports", "title": {"fr": "Rapports", "ar": "تقارير"}},
]


def _paragraph(text: str) -> dict:
    return {
        "root": {
            "type": "root",
            "children": [{"type": "paragraph", "children": [{"type": "text", "text": text}]}],
        }
    }


POSTS = [
    {
        "slug": "lancement-du-portail-de-signalement",
        "category": "communiques",
        "title": {
            "fr": "Lancement du portail de signalement des contenus médiatiques",
            "ar": "إطلاق بوابة الإبلاغ عن المحتوى الإعلامي",
        },
        "content": {
            "fr": _paragraph(
                "La HAPA met à la disposition du public un formulaire en ligne permettant de signaler "
                "tout contenu médiatique contraire à la réglementation. Chaque signalement est examiné "
                "par les services de l'Autorité."
            ),
            "ar": _paragraph(
                "تضع الهيئة العليا للصحافة والإعلام السمعي البصري في متناول الجمهور استمارة إلكترونية "
                "للإبلاغ عن أي محتوى إعلامي مخالف للقوانين."
            ),
        },
    },
    {
        "slug": "rapport-annuel-pluralisme",
        "category": "rapports",
        "title": {
            "fr": "Rapport annuel sur le pluralisme dans les médias audiovisuels",
            "ar": "التقرير السنوي حول التعددية في وسائل الإعلام السمعية البصرية",
        },
        "content": {
            "fr": _paragraph(
                "Le rapport annuel présente les temps de parole relevés sur les chaînes de télévision "
                "et de radio. Il formule des recommandations à l'attention des éditeurs."
            ),
        },
    },
]


def seed(db: Session) -> dict:
    """Idempotent: existing slugs are left alone."""
    created = {"categories": 0, "posts": 0}
    categories = CategoriesService()
    posts = PostsService()

    by_slug = {}
    for item in CATEGORIES:
        cat = categories.by_slug(db, item["slug"])
        if cat is None:
            cat = categories.create(db, title=item["title"], slug=item["slug"])
            created["categories"] += 1
        by_slug[item["slug"]] = cat

    for item in POSTS:
        exists = db.execute(select(Post.id).where(Post.slug == item["slug"])).first()
        if exists:
            continue
        posts.create(
            db,
            {
                "title": item["title"],
                "slug": item["slug"],
                "content": item["content"],
                "status": "published",
                "category_ids": [by_slug[item["category"]].id],
            },
        )
        created["posts"] += 1

    return created


if __name__ == "__main__":
    db = SessionLocal()
    try:
        print(seed(db))
    finally:
        db.close()
