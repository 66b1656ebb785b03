"""
Tests for generation statistics
"""
from datetime import datetime, timedelta

import pytest

from replivity.db import Generation
from replivity.services.generation_service import percentage_change, shift_months


@pytest.fixture
def add_generation(db_session, product):
    """Insert a generation row with an explicit timestamp"""
    def _add(user, source="twitter", created_at=None, author=None):
        generation = Generation(
            user_id=user.id,
            product_id=product.id,
            source=source,
            post="original post",
            reply="generated reply",
            author=author,
            created_at=created_at or datetime.utcnow(),
        )
        db_session.add(generation)
        db_session.commit()
        return generation

    return _add


class TestHelpers:
    """Pure date and percentage helpers"""

    def test_percentage_change(self):
        """0 when both totals are 0, 100 when there is no previous total"""
        assert percentage_change(0, 0) == 0
        assert percentage_change(5, 0) == 100
        assert percentage_change(3, 1) == 200
        assert percentage_change(1, 2) == -50

    def test_shift_months_clamps_day(self):
        """Month arithmetic clamps to the end of shorter months"""
        assert shift_months(datetime(2024, 3, 31, 10, 0), -1) == datetime(2024, 2, 29, 10, 0)
        assert shift_months(datetime(2024, 1, 15), -1) == datetime(2023, 12, 15)
        assert shift_months(datetime(2024, 12, 1), 1) == datetime(2025, 1, 1)


class TestSourceStats:
    """GET /v1/generations/stats/{source}"""

    def test_stats_with_previous_period(self, client, auth_headers, test_user, add_generation):
        """Rows older than a month make up the previous total"""
        add_generation(test_user)
        add_generation(test_user)
        add_generation(test_user, created_at=datetime.utcnow() - timedelta(days=70))
        add_generation(test_user, source="facebook")

        response = client.get("/v1/generations/stats/twitter", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"total": 3, "percentage_change": 200}

    def test_stats_empty(self, client, auth_headers):
        """No generations means zero change"""
        response = client.get("/v1/generations/stats/linkedin", headers=auth_headers)
        assert response.json() == {"total": 0, "percentage_change": 0}

    def test_stats_date_range(self, client, auth_headers, test_user, add_generation):
        """from/to restrict the counted rows"""
        now = datetime.utcnow()
        add_generation(test_user, source="facebook", created_at=now - timedelta(days=1))
        add_generation(test_user, source="facebook", created_at=now - timedelta(days=10))

        response = client.get(
            "/v1/generations/stats/facebook",
            params={
                "from": (now - timedelta(days=5)).isoformat(),
                "to": (now + timedelta(days=1)).isoformat(),
            },
            headers=auth_headers,
        )

        assert response.json()["total"] == 1

    def test_stats_only_count_own_rows(self, client, auth_headers, test_user, admin_user, add_generation):
        """Other users' generations are not counted"""
        add_generation(test_user)
        add_generation(admin_user)

        response = client.get("/v1/generations/stats/twitter", headers=auth_headers)
        assert response.json()["total"] == 1

    def test_site_wide_requires_admin(self, client, auth_headers):
        """Regular users cannot see site-wide numbers"""
        response = client.get(
            "/v1/generations/stats/twitter",
            params={"site_wide": "true"},
            headers=auth_headers,
        )
        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"
        assert response.json()["message"] == "Admin access required for site-wide statistics"

    def test_site_wide_for_admin(self, client, admin_headers, test_user, admin_user, add_generation):
        """Admins see every user's generations"""
        add_generation(test_user)
        add_generation(admin_user)

        response = client.get(
            "/v1/generations/stats/twitter",
            params={"site_wide": "true"},
            headers=admin_headers,
        )
        assert response.json()["total"] == 2

    def test_unknown_source(self, client, auth_headers):
        """Only facebook, twitter and linkedin are tracked"""
        response = client.get("/v1/generations/stats/instagram", headers=auth_headers)
        assert response.status_code == 422

    def test_hashtag_stats(self, client, auth_headers, test_user, add_generation):
        """Hashtag stats count the hashtag generator's rows"""
        add_generation(test_user, source="twitter", author="AI Hashtag Generator")
        add_generation(test_user, source="linkedin", author="AI Hashtag Generator")
        add_generation(test_user, source="twitter", author="Ada")

        response = client.get("/v1/generations/stats/hashtags", headers=auth_headers)
        assert response.json()["total"] == 2


class TestAggregates:
    """Overview, daily and totals"""

    def test_overview_has_twelve_months(self, client, auth_headers, test_user, add_generation):
        """Current-year generations grouped per month"""
        add_generation(test_user, source="linkedin")
        add_generation(test_user, source="twitter")

        response = client.get("/v1/generations/overview", headers=auth_headers)

        data = response.json()
        assert len(data) == 12
        assert data[0]["name"] == "Jan"
        current = data[datetime.utcnow().month - 1]
        assert current["linkedin"] == 1
        assert current["twitter"] == 1
        assert current["total"] == 2

    def test_daily_stats(self, client, auth_headers, test_user, add_generation):
        """One entry per day, oldest first, today last"""
        add_generation(test_user, source="facebook")
        add_generation(test_user, source="facebook", created_at=datetime.utcnow() - timedelta(days=20))

        response = client.get("/v1/generations/daily", params={"days": 7}, headers=auth_headers)

        data = response.json()
        assert len(data) == 7
        assert data[-1]["date"] == datetime.utcnow().date().isoformat()
        assert data[-1]["facebook"] == 1
        assert sum(day["total"] for day in data) == 1
        assert data[0]["date"] < data[-1]["date"]

    def test_daily_days_bounds(self, client, auth_headers):
        """days must be within 1..90"""
        assert client.get("/v1/generations/daily", params={"days": 0}, headers=auth_headers).status_code == 422
        assert client.get("/v1/generations/daily", params={"days": 91}, headers=auth_headers).status_code == 422

    def test_totals(self, client, auth_headers, test_user, active_plan, add_generation):
        """Per-source totals with the plan limit and this month's count"""
        add_generation(test_user, source="twitter")
        add_generation(test_user, source="twitter")
        add_generation(test_user, source="facebook")

        response = client.get("/v1/generations/totals", headers=auth_headers)

        data = response.json()
        totals = {row["source"]: row["total"] for row in data["sources"]}
        assert totals == {"twitter": 2, "facebook": 1}
        assert data["plan_limit"] == 3
        assert data["current_month_total"] == 3
        assert data["current_month"] == datetime.utcnow().strftime("%B")

    def test_totals_of_another_user(self, client, auth_headers, admin_headers, test_user, admin_user, add_generation):
        """Only admins may read another user's totals"""
        add_generation(test_user)

        forbidden = client.get(
            "/v1/generations/totals", params={"user_id": admin_user.id}, headers=auth_headers
        )
        allowed = client.get(
            "/v1/generations/totals", params={"user_id": test_user.id}, headers=admin_headers
        )

        assert forbidden.status_code == 403
        assert forbidden.json()["code"] == "FORBIDDEN"
        assert allowed.status_code == 200
        assert allowed.json()["current_month_total"] == 1
        assert allowed.json()["plan_limit"] == 0
