"""API tests for the blog and FAQ endpoints."""

import pytest


async def _create_post(test_client, admin_headers, **overrides):
    data = {
        "title": "Le spiagge di Leporano",
        "slug": "spiagge-leporano",
        "content": "Guida alle calette vicino alla villa.",
        "category": "territorio",
        "tags": ["mare", "puglia"],
        "published": True,
    }
    data.update(overrides)
    response = await test_client.post("/api/blog", json=data, headers=admin_headers)
    assert response.status_code == 201, response.text
    return response.json()


async def _create_faq(test_client, admin_headers, **overrides):
    data = {
        "question": "A che ora è il check-in?",
        "answer": "Dalle 16:00 alle 20:00.",
        "category": "arrivo",
    }
    data.update(overrides)
    response = await test_client.post("/api/faqs", json=data, headers=admin_headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_create_post(test_client, admin_headers):
    post = await _create_post(test_client, admin_headers)

    assert post["slug"] == "spiagge-leporano"
    assert post["tags"] == ["mare", "puglia"]
    assert post["viewCount"] == 0
    assert post["author"]["fullName"] == "Giulia Bianchi"


@pytest.mark.asyncio
async def test_create_post_requires_admin(test_client, guest_headers):
    response = await test_client.post(
        "/api/blog",
        json={"title": "Titolo", "slug": "titolo", "content": "Testo"},
        headers=guest_headers,
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_post_duplicate_slug(test_client, admin_headers):
    await _create_post(test_client, admin_headers)

    response = await test_client.post(
        "/api/blog",
        json={"title": "Altro", "slug": "spiagge-leporano", "content": "Testo"},
        headers=admin_headers,
    )

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_invalid_slug_rejected(test_client, admin_headers):
    response = await test_client.post(
        "/api/blog",
        json={"title": "Titolo", "slug": "Non Valido!", "content": "Testo"},
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.json()["violations"][0]["path"] == "slug"


@pytest.mark.asyncio
async def test_drafts_visible_to_admins_only(test_client, admin_headers, guest_headers):
    """Test unpublished posts are hidden from guests and anonymous readers."""
    await _create_post(test_client, admin_headers)
    await _create_post(test_client, admin_headers, slug="bozza", title="Bozza", published=False)

    public = await test_client.get("/api/blog")
    guest = await test_client.get("/api/blog", headers=guest_headers)
    admin = await test_client.get("/api/blog", headers=admin_headers)

    assert [p["slug"] for p in public.json()] == ["spiagge-leporano"]
    assert [p["slug"] for p in guest.json()] == ["spiagge-leporano"]
    assert {p["slug"] for p in admin.json()} == {"spiagge-leporano", "bozza"}

    assert (await test_client.get("/api/blog/bozza")).status_code == 404
    assert (await test_client.get("/api/blog/bozza", headers=admin_headers)).status_code == 200


@pytest.mark.asyncio
async def test_reading_post_counts_views(test_client, admin_headers):
    await _create_post(test_client, admin_headers)

    first = await test_client.get("/api/blog/spiagge-leporano")
    second = await test_client.get("/api/blog/spiagge-leporano")

    assert first.json()["viewCount"] == 1
    assert second.json()["viewCount"] == 2


@pytest.mark.asyncio
async def test_filter_posts_by_category(test_client, admin_headers):
    await _create_post(test_client, admin_headers)
    await _create_post(test_client, admin_headers, slug="ricette", category="cucina")

    response = await test_client.get("/api/blog?category=cucina")

    assert [p["slug"] for p in response.json()] == ["ricette"]


@pytest.mark.asyncio
async def test_update_and_delete_post(test_client, admin_headers):
    post = await _create_post(test_client, admin_headers, published=False)

    updated = await test_client.put(
        f"/api/blog/{post['id']}", json={"published": True, "title": "Spiagge"}, headers=admin_headers
    )
    assert updated.status_code == 200
    assert updated.json()["published"] is True
    assert updated.json()["content"] == post["content"]

    deleted = await test_client.delete(f"/api/blog/{post['id']}", headers=admin_headers)
    assert deleted.json()["success"] is True
    assert (await test_client.get("/api/blog/spiagge-leporano")).status_code == 404


@pytest.mark.asyncio
async def test_faq_search(test_client, admin_headers):
    await _create_faq(test_client, admin_headers)
    await _create_faq(test_client, admin_headers, question="C'è il parcheggio?", answer="Sì, privato.")
    await _create_faq(test_client, admin_headers, question="Check-out tardivo?", answer="Su richiesta.", isActive=False)

    found = await test_client.get("/api/faqs/search", params={"q": "CHECK"})
    blank = await test_client.get("/api/faqs/search", params={"q": "  "})

    assert [f["question"] for f in found.json()] == ["A che ora è il check-in?"]
    assert blank.json() == []


@pytest.mark.asyncio
async def test_inactive_faqs_not_listed(test_client, admin_headers):
    await _create_faq(test_client, admin_headers)
    await _create_faq(test_client, admin_headers, question="Nascosta?", published=False)

    response = await test_client.get("/api/faqs")

    assert len(response.json()) == 1


@pytest.mark.asyncio
async def test_faq_view_counter(test_client, admin_headers):
    faq = await _create_faq(test_client, admin_headers)

    await test_client.post(f"/api/faqs/{faq['id']}/view")
    response = await test_client.post(f"/api/faqs/{faq['id']}/view")

    assert response.json()["viewCount"] == 2
    assert (await test_client.post("/api/faqs/999/view")).status_code == 404


@pytest.mark.asyncio
async def test_faq_voting(test_client, admin_headers, guest_headers):
    """Test one vote per user, with a repeated vote replacing the earlier one."""
    faq = await _create_faq(test_client, admin_headers)
    url = f"/api/faqs/{faq['id']}/vote"

    anonymous = await test_client.post(url, json={"isHelpful": True})
    assert anonymous.status_code == 401

    await test_client.post(url, json={"isHelpful": True}, headers=guest_headers)
    await test_client.post(url, json={"isHelpful": True}, headers=admin_headers)
    response = await test_client.post(url, json={"isHelpful": False}, headers=guest_headers)

    assert response.status_code == 200
    assert response.json()["helpfulVotes"] == 1
    assert response.json()["notHelpfulVotes"] == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["title", "slug", "content", "tags", "published"])
async def test_update_post_rejects_null_for_required_fields(test_client, admin_headers, field):
    post = await _create_post(test_client, admin_headers)

    response = await test_client.put(f"/api/blog/{post['id']}", json={field: None}, headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["violations"][0]["path"] == field
    unchanged = await test_client.get("/api/blog/spiagge-leporano")
    assert unchanged.json()["title"] == "Le spiagge di Leporano"


@pytest.mark.asyncio
async def test_update_post_clears_optional_field(test_client, admin_headers):
    post = await _create_post(test_client, admin_headers)

    response = await test_client.put(f"/api/blog/{post['id']}", json={"category": None}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["category"] is None


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{"question": None}, {"answer": None}, {"category": None}, {"isActive": None}])
async def test_update_faq_rejects_null(test_client, admin_headers, payload):
    faq = await _create_faq(test_client, admin_headers)

    response = await test_client.put(f"/api/faqs/{faq['id']}", json=payload, headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["violations"]


@pytest.mark.asyncio
async def test_faq_search_treats_wildcards_literally(test_client, admin_headers):
    await _create_faq(test_client, admin_headers)
    await _create_faq(test_client, admin_headers, question="Sconto del 10% per soggiorni lunghi?", answer="Da 7 notti.")

    percent = await test_client.get("/api/faqs/search", params={"q": "%"})
    underscore = await test_client.get("/api/faqs/search", params={"q": "_"})

    assert [f["question"] for f in percent.json()] == ["Sconto del 10% per soggiorni lunghi?"]
    assert underscore.json() == []


@pytest.mark.asyncio
async def test_inactive_faq_hidden_from_public(test_client, admin_headers, guest_headers):
    faq = await _create_faq(test_client, admin_headers, isActive=False)
    url = f"/api/faqs/{faq['id']}"

    assert (await test_client.get(url)).status_code == 404
    assert (await test_client.get(url, headers=guest_headers)).status_code == 404
    admin_view = await test_client.get(url, headers=admin_headers)
    assert admin_view.status_code == 200
    assert admin_view.json()["isActive"] is False
