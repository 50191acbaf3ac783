from hapa.services.posts_service import format_slug
from hapa.services.seo import SITE_NAMES


def _paragraph(text):
    return {"root": {"type": "root", "children": [{"type": "paragraph", "children": [{"type": "text", "text": text}]}]}}


BODY = (
    "La Haute Autorité a publié son rapport annuel sur le pluralisme dans les médias audiovisuels. "
    "Le document détaille les temps de parole relevés pendant l'année."
)


def test_format_slug():
    assert format_slug("Rapport annuel 2025") == "rapport-annuel-2025"
    assert format_slug("Décision n°12: l'avis!") == "décision-n12-lavis"
    assert format_slug("") == ""


def test_content_requires_editor_or_admin(client, moderator_headers, editor_headers, admin_headers):
    assert client.get("/api/admin/posts", headers=moderator_headers).status_code == 403
    assert client.get("/api/admin/posts", headers=editor_headers).status_code == 200
    assert client.get("/api/admin/categories", headers=admin_headers).status_code == 200


def test_create_post_fills_seo_fields(client, editor_headers):
    r = client.post(
        "/api/admin/posts",
        json={
            "title": {"fr": "Rapport annuel sur le pluralisme", "ar": "التقرير السنوي"},
            "content": {"fr": _paragraph(BODY)},
            "status": "published",
        },
        headers=editor_headers,
    )
    assert r.status_code == 201
    body = r.json()
    post = body["post"]

    assert post["slug"] == "rapport-annuel-sur-le-pluralisme"
    assert post["publishedAt"] is not None
    assert post["meta"]["title"]["fr"] == "Rapport annuel sur le pluralisme — HAPA"
    assert post["meta"]["title"]["ar"].endswith(" — " + SITE_NAMES["ar"])
    assert len(post["meta"]["title"]["ar"]) <= 60
    assert len(post["meta"]["description"]["fr"]) <= 160
    assert post["meta"]["description"]["fr"].startswith("La Haute Autorité a publié")
    # no Arabic body: the French content is summarized
    assert post["meta"]["description"]["ar"] == post["meta"]["description"]["fr"]
    assert body["seo"]["fr"]["title"]["status"] == "good"


def test_manual_meta_is_kept_on_update(client, editor_headers):
    created = client.post(
        "/api/admin/posts",
        json={"title": {"fr": "Communiqué"}, "meta_title": {"fr": "Titre manuel"}},
        headers=editor_headers,
    ).json()["post"]
    assert created["meta"]["title"]["fr"] == "Titre manuel"
    assert created["status"] == "draft"
    assert created["publishedAt"] is None

    updated = client.patch(
        f"/api/admin/posts/{created['id']}",
        json={"title": {"fr": "Communiqué modifié"}, "status": "published"},
        headers=editor_headers,
    ).json()["post"]
    assert updated["meta"]["title"]["fr"] == "Titre manuel"
    assert updated["title"]["fr"] == "Communiqué modifié"
    assert updated["publishedAt"] is not None


def test_duplicate_slugs_get_suffix(client, editor_headers):
    slugs = [
        client.post("/api/admin/posts", json={"title": {"fr": "Avis"}}, headers=editor_headers).json()["post"]["slug"]
        for _ in range(3)
    ]
    assert slugs == ["avis", "avis-2", "avis-3"]


def test_post_with_categories_and_delete(client, editor_headers):
    cat = client.post(
        "/api/admin/categories",
        json={"title": {"fr": "Décisions", "ar": "قرارات"}},
        headers=editor_headers,
    ).json()["category"]
    assert cat["slug"] == "décisions"

    post = client.post(
        "/api/admin/posts",
        json={"title": {"fr": "Décision 12"}, "category_ids": [cat["id"]]},
        headers=editor_headers,
    ).json()["post"]
    assert [c["id"] for c in post["categories"]] == [cat["id"]]

    renamed = client.patch(
        f"/api/admin/categories/{cat['id']}", json={"slug": "decisions"}, headers=editor_headers
    ).json()["category"]
    assert renamed["slug"] == "decisions"

    assert client.delete(f"/api/admin/posts/{post['id']}", headers=editor_headers).status_code == 200
    assert client.get(f"/api/admin/posts/{post['id']}", headers=editor_headers).status_code == 404
    assert client.delete(f"/api/admin/categories/{cat['id']}", headers=editor_headers).status_code == 200
    assert client.get("/api/admin/categories", headers=editor_headers).json()["categories"] == []


def test_unknown_post_fields_rejected(client, editor_headers):
    r = client.post("/api/admin/posts", json={"title": {"fr": "X"}, "author": "moi"}, headers=editor_headers)
    assert r.status_code == 400
