import pytest

from conftest import auth

from hapa.services.posts_service import POSTS_PER_PAGE, CategoriesService, PostsService
from hapa.web.pages import render_richtext


def _post(db, title, status="published", slug=None, categories=()):
    return PostsService().create(
        db,
        {
            "title": {"fr": title, "ar": f"{title} (ar)"},
            "slug": slug,
            "content": {
                "fr": {
                    "root": {
                        "type": "root",
                        "children": [
                            {"type": "paragraph", "children": [{"type": "text", "text": f"Contenu de {title}"}]}
                        ],
                    }
                }
            },
            "status": status,
            "category_ids": [c.id for c in categories],
        },
    )


def test_root_redirects_to_default_locale(client):
    r = client.get("/", follow_redirects=False)
    assert r.status_code == 307
    assert r.headers["location"] == "/fr"


def test_locale_direction(client):
    fr = client.get("/fr")
    assert fr.status_code == 200
    assert '<html lang="fr" dir="ltr">' in fr.text

    ar = client.get("/ar")
    assert ar.status_code == 200
    assert '<html lang="ar" dir="rtl">' in ar.text


def test_unknown_locale_is_404(client):
    r = client.get("/en")
    assert r.status_code == 404
    assert "Page introuvable" in r.text
    assert client.get("/en/posts").status_code == 404


def test_pagination(client, db):
    for i in range(POSTS_PER_PAGE + 1):
        _post(db, f"Article {i}")

    first = client.get("/fr/posts")
    assert first.status_code == 200
    assert 'rel="next" href="/fr/posts/page/2"' in first.text

    second = client.get("/fr/posts/page/2")
    assert second.status_code == 200
    assert 'rel="prev"' in second.text
    assert second.text.count('class="post-card"') == 1


@pytest.mark.parametrize("page", ["0", "3", "abc"])
def test_out_of_range_pages_are_404(client, db, page):
    for i in range(POSTS_PER_PAGE + 1):
        _post(db, f"Article {i}")
    assert client.get(f"/fr/posts/page/{page}").status_code == 404


def test_post_detail_and_drafts(client, db):
    _post(db, "Publié", slug="publie")
    _post(db, "Brouillon", status="draft", slug="brouillon")

    r = client.get("/fr/posts/publie")
    assert r.status_code == 200
    assert "Contenu de Publié" in r.text
    assert '<meta name="description"' in r.text

    ar = client.get("/ar/posts/publie")
    assert "Publié (ar)" in ar.text

    assert client.get("/fr/posts/brouillon").status_code == 404
    assert client.get("/fr/posts/absent").status_code == 404


def test_category_listing(client, db):
    cat = CategoriesService().create(db, title={"fr": "Rapports"}, slug="rapports")
    _post(db, "Dans la catégorie", categories=[cat])
    _post(db, "Hors catégorie")

    r = client.get("/fr/posts/category/rapports")
    assert r.status_code == 200
    assert "Dans la catégorie" in r.text
    assert "Hors catégorie" not in r.text
    assert client.get("/fr/posts/category/inconnue").status_code == 404


def test_search(client, db):
    _post(db, "Pluralisme politique")
    _post(db, "Publicité")

    r = client.get("/fr/search", params={"q": "pluralisme"})
    assert r.status_code == 200
    assert "Pluralisme politique" in r.text
    assert "Publicité" not in r.text

    empty = client.get("/fr/search", params={"q": "introuvable"})
    assert "Aucun résultat pour" in empty.text


def test_form_pages(client):
    report = client.get("/fr/forms/media-content-report")
    assert report.status_code == 200
    assert "hateSpeech" in report.text

    complaint = client.get("/ar/forms/media-content-complaint")
    assert complaint.status_code == 200
    assert 'dir="rtl"' in complaint.text

    assert client.get("/ar/contact").status_code == 200


def test_richtext_escapes_and_filters_links():
    tree = {
        "root": {
            "type": "root",
            "children": [
                {
                    "type": "paragraph",
                    "children": [
                        {"type": "text", "text": "<script>x</script>", "format": 1},
                        {"type": "link", "fields": {"url": "javascript:alert(1)"}, "children": [{"type": "text", "text": "lien"}]},
                    ],
                },
                {"type": "heading", "tag": "h1", "children": [{"type": "text", "text": "Titre"}]},
            ],
        }
    }
    html = str(render_richtext(tree))
    assert "<strong>&lt;script&gt;x&lt;/script&gt;</strong>" in html
    assert '<a href="#">lien</a>' in html
    assert "<h2>Titre</h2>" in html


def test_news_section(client, db):
    news = CategoriesService().create(db, title={"fr": "Actualités"}, slug="news")
    _post(db, "Communiqué du jour", categories=[news])
    _post(db, "Autre rubrique")

    r = client.get("/fr/news")
    assert r.status_code == 200
    assert "Communiqué du jour" in r.text
    assert "Autre rubrique" not in r.text
    assert "1 articles" in r.text
    assert client.get("/fr/news/page/1").status_code == 200
    assert client.get("/fr/news/page/2").status_code == 404
    assert client.get("/fr/news/page/abc").status_code == 404


def test_news_section_without_category_is_empty(client):
    r = client.get("/ar/news")
    assert r.status_code == 200
    assert "الأخبار" in r.text
    assert "لا توجد مقالات في هذه الفئة حاليًا" in r.text


def test_publication_sections(client, db):
    rapports = CategoriesService().create(db, title={"fr": "Rapports annuels"}, slug="rapports")
    _post(db, "Rapport 2024", categories=[rapports])

    r = client.get("/fr/publications/rapports")
    assert r.status_code == 200
    assert "<h1>Rapports</h1>" in r.text
    assert "Rapport 2024" in r.text

    empty = client.get("/ar/publications/lois-et-reglements")
    assert empty.status_code == 200
    assert "قوانين وتشريعات" in empty.text
    assert "لا توجد مقالات في هذه الفئة حاليًا" in empty.text

    fr_empty = client.get("/fr/publications/decisions")
    assert "Décisions et communiqués" in fr_empty.text
    assert "Aucun article dans cette catégorie pour le moment" in fr_empty.text


@pytest.mark.parametrize(
    "url",
    [
        "/fr/publications/inconnue",
        "/fr/publications/rapports/page/2",
        "/fr/publications/rapports/page/0",
        "/fr/publications/rapports/page/x",
        "/en/publications/rapports",
    ],
)
def test_publication_sections_not_found(client, url):
    assert client.get(url).status_code == 404


def test_draft_preview_cycle(client, db):
    _post(db, "Brouillon", status="draft", slug="brouillon")
    assert client.get("/fr/posts/brouillon").status_code == 404

    r = client.get(
        "/next/preview",
        params={"path": "/fr/posts/brouillon", "previewSecret": "preview-secret"},
        headers=auth("editor"),
        follow_redirects=False,
    )
    assert r.status_code == 307
    assert r.headers["location"] == "/fr/posts/brouillon"
    assert "httponly" in r.headers["set-cookie"].lower()

    draft = client.get("/fr/posts/brouillon")
    assert draft.status_code == 200
    assert "Contenu de Brouillon" in draft.text
    assert draft.headers["cache-control"] == "no-store"
    assert "/next/exit-preview" in draft.text

    out = client.get("/next/exit-preview")
    assert out.status_code == 200
    assert out.text == "Preview mode has been disabled"
    assert client.get("/fr/posts/brouillon").status_code == 404


def test_preview_rejects_bad_requests(client):
    params = {"path": "/fr/posts/x", "previewSecret": "preview-secret"}

    wrong = client.get("/next/preview", params={**params, "previewSecret": "nope"}, headers=auth("editor"))
    assert wrong.status_code == 403
    assert wrong.text == "You are not allowed to preview this page"

    assert client.get("/next/preview", params=params, follow_redirects=False).status_code == 403
    assert client.get("/next/preview", params=params, headers=auth("user"), follow_redirects=False).status_code == 403
    bad = {"Authorization": "Bearer not-a-token"}
    assert client.get("/next/preview", params=params, headers=bad, follow_redirects=False).status_code == 403

    missing = client.get("/next/preview", params={"previewSecret": "preview-secret"}, headers=auth("editor"))
    assert missing.status_code == 404
    assert missing.text == "Insufficient search params"

    external = {"path": "//evil.example", "previewSecret": "preview-secret"}
    assert client.get("/next/preview", params=external, headers=auth("editor")).status_code == 400


def test_forged_preview_cookie_is_ignored(client, db):
    _post(db, "Brouillon", status="draft", slug="brouillon")
    client.cookies.set("hapa_preview", "forged")
    assert client.get("/fr/posts/brouillon").status_code == 404


def test_pages_sitemap(client):
    r = client.get("/pages-sitemap.xml")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("application/xml")
    assert "<loc>http://localhost:8000/fr</loc>" in r.text
    assert "<loc>http://localhost:8000/ar/news</loc>" in r.text
    assert "<loc>http://localhost:8000/fr/publications/lois-et-reglements</loc>" in r.text
    assert "<loc>http://localhost:8000/ar/forms/media-content-complaint</loc>" in r.text
