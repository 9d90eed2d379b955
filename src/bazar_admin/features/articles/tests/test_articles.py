import pytest
from fastapi import status
from httpx import AsyncClient

from bazar_admin.features.articles.models import Article, ArticleImage, AISuggestion, Category
from bazar_admin.features.audit.models import AdminLog
from bazar_admin.features.notifications.models import EmailTemplate
from bazar_admin.features.notifications.service import seed_default_templates


@pytest.mark.asyncio
async def test_list_articles_with_report_counts_and_primary_image(
    support_client: AsyncClient, make_article, make_report
):
    flagged = await make_article(title="Suspicious phone", price=20.0)
    await make_article(title="Plain bicycle", price=150.0)
    await make_report(reported_article=flagged)
    await make_report(reported_article=flagged, status="resolved")
    await ArticleImage.create(article=flagged, filename="side.jpg", file_path="/img/side.jpg", sort_order=2)
    await ArticleImage.create(article=flagged, filename="front.jpg", file_path="/img/front.jpg", is_primary=True)

    response = await support_client.get("/api/v1/admin/articles/", params={"sort_by": "price", "sort_order": "asc"})
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["total"] == 2
    assert data["has_more"] is False
    assert [a["title"] for a in data["articles"]] == ["Suspicious phone", "Plain bicycle"]

    first = data["articles"][0]
    assert first["pending_reports"] == 1
    assert first["primary_image"] == "front.jpg"
    assert first["seller_username"] == "customerfixture"
    assert first["category_name"] == "Electronics"


@pytest.mark.asyncio
async def test_list_articles_filters(support_client: AsyncClient, make_article, make_report):
    flagged = await make_article(title="Fake sneakers", description="brand new", status="active")
    await make_article(title="Old lamp", description="vintage sneakers box", ai_generated=True)
    await make_article(title="Desk", status="sold")
    await make_report(reported_article=flagged)
    # Reports that target a user only must not affect the unflagged listing
    await make_report()

    search = await support_client.get("/api/v1/admin/articles/", params={"search": "SNEAKERS"})
    assert search.json()["total"] == 2

    only_flagged = await support_client.get("/api/v1/admin/articles/", params={"flagged": "true"})
    assert [a["title"] for a in only_flagged.json()["articles"]] == ["Fake sneakers"]

    not_flagged = await support_client.get("/api/v1/admin/articles/", params={"flagged": "false"})
    assert not_flagged.json()["total"] == 2

    ai = await support_client.get("/api/v1/admin/articles/", params={"ai_generated": "true"})
    assert [a["title"] for a in ai.json()["articles"]] == ["Old lamp"]

    sold = await support_client.get("/api/v1/admin/articles/", params={"status": "sold", "search": ""})
    assert [a["title"] for a in sold.json()["articles"]] == ["Desk"]


@pytest.mark.asyncio
async def test_list_articles_blank_filters_are_ignored(support_client: AsyncClient, make_article, make_report):
    reported = await make_article(title="Camera")
    await make_article(title="Tripod", ai_generated=True)
    await make_report(reported_article=reported)

    response = await support_client.get(
        "/api/v1/admin/articles/",
        params={"flagged": "", "ai_generated": "", "search": "", "status": "", "category": ""},
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["total"] == 2


@pytest.mark.asyncio
async def test_list_articles_category_filter_and_paging(
    support_client: AsyncClient, make_article, category: Category
):
    garden = await Category.create(name="Garden", slug="garden")
    for i in range(3):
        await make_article(title=f"Gadget {i}")
    await make_article(title="Rake", category=garden)

    response = await support_client.get(
        "/api/v1/admin/articles/", params={"category": category.public_id, "limit": 2, "offset": 0}
    )
    data = response.json()
    assert data["total"] == 3
    assert len(data["articles"]) == 2
    assert data["has_more"] is True


@pytest.mark.asyncio
async def test_unknown_sort_column_falls_back_to_created_at(support_client: AsyncClient, make_article):
    await make_article(title="First")
    await make_article(title="Second")

    response = await support_client.get(
        "/api/v1/admin/articles/", params={"sort_by": "price; DROP TABLE articles", "sort_order": "sideways"}
    )
    assert response.status_code == status.HTTP_200_OK
    assert [a["title"] for a in response.json()["articles"]] == ["Second", "First"]


@pytest.mark.asyncio
async def test_article_details(support_client: AsyncClient, make_article, make_report, category: Category):
    article = await make_article(title="Camera", price=100.0)
    await ArticleImage.create(article=article, filename="b.jpg", file_path="/b.jpg", sort_order=2)
    await ArticleImage.create(article=article, filename="a.jpg", file_path="/a.jpg", sort_order=1)
    await AISuggestion.create(article=article, suggestion_type="title", suggested_value="Camera X", confidence_score=0.4)
    await AISuggestion.create(article=article, suggestion_type="price", suggested_value="95", confidence_score=0.9)
    await make_report(reported_article=article, report_type="fraud")

    await make_article(title="Similar cheap", price=85.0, status="active")
    await make_article(title="Too expensive", price=130.0, status="active")
    await make_article(title="Not active", price=100.0, status="draft")
    other_category = await Category.create(name="Toys", slug="toys")
    await make_article(title="Other category", price=100.0, status="active", category=other_category)

    response = await support_client.get(f"/api/v1/admin/articles/{article.public_id}")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["article"]["seller_email"] == "customerfixture@example.com"
    assert [i["filename"] for i in data["images"]] == ["a.jpg", "b.jpg"]
    assert [s["suggestion_type"] for s in data["ai_suggestions"]] == ["price", "title"]
    assert len(data["reports"]) == 1
    assert data["reports"][0]["reporter_username"] == "reporterfixture"
    assert [s["title"] for s in data["similar_articles"]] == ["Similar cheap"]


@pytest.mark.asyncio
async def test_article_details_not_found(support_client: AsyncClient):
    response = await support_client.get("/api/v1/admin/articles/missing")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"] == "Article not found"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "action, field, expected, past_tense",
    [
        ("approve", "status", "active", "approved"),
        ("reject", "status", "moderated", "rejected"),
        ("archive", "status", "archived", "archived"),
        ("feature", "is_featured", True, "featured"),
    ],
)
async def test_moderate_article(
    moderator_client: AsyncClient, make_article, action, field, expected, past_tense
):
    article = await make_article()
    response = await moderator_client.post(
        f"/api/v1/admin/articles/{article.public_id}/moderate",
        json={"action": action, "reason": "checked"},
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["message"] == f"Article {past_tense} successfully"

    await article.refresh_from_db()
    assert getattr(article, field) == expected

    log = await AdminLog.get(action=f"article_{action}")
    assert log.target_type == "articles"
    assert log.target_id == article.public_id
    assert log.description == f"Article {action}: Used film camera. Reason: checked"
    assert log.ip_address == "127.0.0.1"


@pytest.mark.asyncio
async def test_moderate_article_unknown_action(moderator_client: AsyncClient, make_article):
    article = await make_article()
    response = await moderator_client.post(
        f"/api/v1/admin/articles/{article.public_id}/moderate", json={"action": "burn"}
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


@pytest.mark.asyncio
async def test_moderate_missing_article(moderator_client: AsyncClient):
    response = await moderator_client.post(
        "/api/v1/admin/articles/does-not-exist/moderate", json={"action": "approve"}
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert await AdminLog.all().count() == 0


@pytest.mark.asyncio
async def test_reject_renders_seller_email(moderator_client: AsyncClient, make_article, caplog):
    await seed_default_templates()
    article = await make_article(title="Knock-off watch")

    with caplog.at_level("INFO", logger="bazar_admin.features.notifications.service"):
        response = await moderator_client.post(
            f"/api/v1/admin/articles/{article.public_id}/moderate",
            json={"action": "reject", "reason": "counterfeit"},
        )
    assert response.status_code == status.HTTP_200_OK
    assert "Moderation email to=customerfixture@example.com" in caplog.text
    assert "Knock-off watch" in caplog.text


@pytest.mark.asyncio
async def test_approve_without_template_still_succeeds(moderator_client: AsyncClient, make_article, caplog):
    article = await make_article()
    assert await EmailTemplate.all().count() == 0

    with caplog.at_level("WARNING", logger="bazar_admin.features.notifications.service"):
        response = await moderator_client.post(
            f"/api/v1/admin/articles/{article.public_id}/moderate", json={"action": "approve"}
        )
    assert response.status_code == status.HTTP_200_OK
    assert "Email template 'article_approved' not found" in caplog.text


@pytest.mark.asyncio
async def test_bulk_operation(admin_client: AsyncClient, make_article):
    first = await make_article(title="One")
    second = await make_article(title="Two")

    response = await admin_client.post(
        "/api/v1/admin/articles/bulk",
        json={"article_ids": [first.public_id, "ghost", second.public_id], "operation": "approve"},
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["success_count"] == 2
    assert data["errors"] == ["Article ID ghost not found"]
    assert data["message"] == "Bulk operation completed. 2 articles processed successfully."
    assert await Article.filter(status="active").count() == 2
    assert await AdminLog.filter(action="bulk_approve_article").count() == 2


@pytest.mark.asyncio
async def test_bulk_operation_requires_admin_role(moderator_client: AsyncClient, make_article):
    article = await make_article()
    response = await moderator_client.post(
        "/api/v1/admin/articles/bulk", json={"article_ids": [article.public_id], "operation": "archive"}
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.asyncio
async def test_bulk_operation_rejects_empty_list(admin_client: AsyncClient):
    response = await admin_client.post(
        "/api/v1/admin/articles/bulk", json={"article_ids": [], "operation": "archive"}
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
