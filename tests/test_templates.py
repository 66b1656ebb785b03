"""
Tests for saved hashtag templates
"""
from decimal import Decimal

import pytest

from replivity.db import HashtagTemplate, Product
from replivity.services.billing_service import BillingService
from replivity.services.template_service import DEFAULT_TEMPLATE_LIMIT

TEMPLATES_URL = "/v1/templates"


@pytest.fixture
def basic_plan(db_session, test_user):
    """test_user on a non-Pro plan"""
    product = Product(
        name="Basic",
        description="Basic plan",
        price=Decimal("9.99"),
        limit=100,
        type="subscription",
        mode="monthly",
        status="active",
    )
    db_session.add(product)
    db_session.commit()
    return BillingService(db_session).assign_plan(test_user.id, product.id)


@pytest.fixture
def create_template(client, auth_headers, active_plan):
    def _create(name="Launch day", hashtags=None, headers=None, **fields):
        response = client.post(TEMPLATES_URL, headers=headers or auth_headers, json={
            "name": name,
            "hashtags": hashtags or ["#launch", "startup"],
            **fields,
        })
        assert response.status_code == 201, response.text
        return response.json()

    return _create


def fill_templates(db_session, user, count):
    for i in range(count):
        db_session.add(HashtagTemplate(user_id=user.id, name=f"Saved {i}", hashtags=["#x"]))
    db_session.commit()


class TestCreateTemplate:
    """POST /v1/templates"""

    def test_create(self, create_template):
        """Hashtags are normalized and category defaults to general"""
        template = create_template(hashtags=[" #launch", "startup", "#launch", "  "])

        assert template["name"] == "Launch day"
        assert template["hashtags"] == ["#launch", "#startup"]
        assert template["category"] == "general"
        assert template["platform"] == "all"

    def test_requires_active_plan(self, client, auth_headers):
        """Templates need an active subscription"""
        response = client.post(TEMPLATES_URL, headers=auth_headers, json={"name": "x", "hashtags": ["#a"]})

        assert response.status_code == 403
        assert response.json()["code"] == "NO_ACTIVE_SUBSCRIPTION"
        assert response.json()["message"] == "Active subscription required to create templates"

    def test_limit_on_basic_plan(self, client, db_session, auth_headers, test_user, basic_plan):
        """Non-Pro plans keep at most 20 templates"""
        fill_templates(db_session, test_user, DEFAULT_TEMPLATE_LIMIT)

        response = client.post(TEMPLATES_URL, headers=auth_headers, json={"name": "x", "hashtags": ["#a"]})

        assert response.status_code == 403
        data = response.json()
        assert data["code"] == "USAGE_LIMIT_EXCEEDED"
        assert data["message"] == "Template creation limit reached (20)"
        assert data["details"]["limit"] == 20

    def test_pro_plan_allows_more(self, create_template, db_session, test_user):
        """Pro plans are not stopped at 20"""
        fill_templates(db_session, test_user, DEFAULT_TEMPLATE_LIMIT)
        assert create_template()["id"]

    def test_hashtag_validation(self, client, auth_headers, active_plan):
        """Hashtag lists must hold 1..30 real hashtags"""
        blank = client.post(TEMPLATES_URL, headers=auth_headers, json={"name": "x", "hashtags": ["#", " "]})
        too_many = client.post(TEMPLATES_URL, headers=auth_headers, json={
            "name": "x", "hashtags": [f"#t{i}" for i in range(31)],
        })
        bad_platform = client.post(TEMPLATES_URL, headers=auth_headers, json={
            "name": "x", "hashtags": ["#a"], "platform": "myspace",
        })

        assert blank.status_code == 422
        assert too_many.status_code == 422
        assert bad_platform.status_code == 422


class TestReadTemplates:
    """Listing, fetching, categories and usage"""

    def test_list_newest_first(self, client, auth_headers, create_template):
        """Templates are listed newest first with paging info"""
        create_template(name="First")
        create_template(name="Second")

        data = client.get(TEMPLATES_URL, headers=auth_headers, params={"limit": 1}).json()

        assert data["total_count"] == 2
        assert data["has_more"] is True
        assert [t["name"] for t in data["templates"]] == ["Second"]

    def test_filters(self, client, auth_headers, create_template):
        """category narrows exactly; platform also includes all-platform templates"""
        create_template(name="Insta", category="travel", platform="instagram")
        create_template(name="Anywhere", category="travel")
        create_template(name="Work", category="business", platform="linkedin")

        travel = client.get(TEMPLATES_URL, headers=auth_headers, params={"category": "travel"}).json()
        instagram = client.get(TEMPLATES_URL, headers=auth_headers, params={"platform": "instagram"}).json()

        assert {t["name"] for t in travel["templates"]} == {"Insta", "Anywhere"}
        assert {t["name"] for t in instagram["templates"]} == {"Insta", "Anywhere"}

    def test_only_own_templates(self, client, create_template, make_user, make_headers):
        """Other users neither list nor fetch someone else's templates"""
        template = create_template()
        stranger = make_headers(make_user("stranger@example.com"))

        assert client.get(TEMPLATES_URL, headers=stranger).json()["total_count"] == 0
        response = client.get(f"{TEMPLATES_URL}/{template['id']}", headers=stranger)
        assert response.status_code == 404
        assert response.json()["message"] == "Template not found"

    def test_categories(self, client, auth_headers, create_template):
        """Distinct categories in alphabetical order"""
        create_template(category="travel")
        create_template(category="business")
        create_template(category="travel")
        create_template()

        response = client.get(f"{TEMPLATES_URL}/categories", headers=auth_headers)
        assert response.json() == ["business", "general", "travel"]

    def test_usage_stats(self, client, auth_headers, create_template):
        """Usage counts the saved templates against the plan limit"""
        for i in range(5):
            create_template(name=f"T{i}")

        stats = client.get(f"{TEMPLATES_URL}/usage", headers=auth_headers).json()
        assert stats == {"current": 5, "limit": 100, "percentage": 5, "has_active_subscription": True}

    def test_usage_stats_without_plan(self, client, auth_headers):
        """Users without a plan see the default limit"""
        stats = client.get(f"{TEMPLATES_URL}/usage", headers=auth_headers).json()
        assert stats == {"current": 0, "limit": 20, "percentage": 0, "has_active_subscription": False}


class TestChangeTemplates:
    """PATCH, DELETE and duplicate"""

    def test_update(self, client, auth_headers, create_template):
        """Only sent fields change; an empty category resets to general"""
        template = create_template(category="travel", description="Trips")

        response = client.patch(f"{TEMPLATES_URL}/{template['id']}", headers=auth_headers, json={
            "hashtags": ["wanderlust"],
            "category": "",
        })

        data = response.json()
        assert response.status_code == 200
        assert data["hashtags"] == ["#wanderlust"]
        assert data["category"] == "general"
        assert data["description"] == "Trips"
        assert data["name"] == "Launch day"

    def test_delete(self, client, auth_headers, create_template):
        """Deleted templates are gone"""
        template = create_template()

        response = client.delete(f"{TEMPLATES_URL}/{template['id']}", headers=auth_headers)

        assert response.json() == {"success": True}
        assert client.get(f"{TEMPLATES_URL}/{template['id']}", headers=auth_headers).status_code == 404

    def test_duplicate(self, client, auth_headers, create_template):
        """Copies keep the content and get a (Copy) suffix"""
        template = create_template(category="travel", platform="instagram")

        response = client.post(f"{TEMPLATES_URL}/{template['id']}/duplicate", headers=auth_headers)

        copy = response.json()
        assert response.status_code == 201
        assert copy["id"] != template["id"]
        assert copy["name"] == "Launch day (Copy)"
        assert copy["hashtags"] == template["hashtags"]
        assert copy["category"] == "travel"
        assert copy["platform"] == "instagram"

    def test_duplicate_respects_limit(self, client, db_session, auth_headers, test_user, basic_plan):
        """Duplicating counts towards the plan limit"""
        fill_templates(db_session, test_user, DEFAULT_TEMPLATE_LIMIT)
        template_id = db_session.query(HashtagTemplate).first().id

        response = client.post(f"{TEMPLATES_URL}/{template_id}/duplicate", headers=auth_headers)
        assert response.status_code == 403

    def test_duplicate_missing(self, client, auth_headers, active_plan):
        """Duplicating a missing template is 404"""
        assert client.post(f"{TEMPLATES_URL}/9999/duplicate", headers=auth_headers).status_code == 404
