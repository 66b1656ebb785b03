"""
Tests for blog posts, categories and tags
"""
import pytest

from replivity.services.blog_service import calculate_reading_time, escape_like, slugify


@pytest.fixture
def create_post(client, auth_headers):
    """Create a post through the API as test_user"""
    def _create(title="Hello World", content="Some words here", headers=None, **fields):
        response = client.post(
            "/v1/blog/posts",
            headers=headers or auth_headers,
            json={"title": title, "content": content, **fields},
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _create


@pytest.fixture
def category(client, auth_headers):
    return client.post("/v1/blog/categories", headers=auth_headers, json={"name": "Product News"}).json()


@pytest.fixture
def tag(client, auth_headers):
    return client.post("/v1/blog/tags", headers=auth_headers, json={"name": "Growth"}).json()


class TestHelpers:

    def test_slugify(self):
        """Lowercase, punctuation removed, dashes collapsed"""
        assert slugify("Hello World! 2024") == "hello-world-2024"
        assert slugify("  Multiple   spaces -- and dashes ") == "multiple-spaces-and-dashes"
        assert slugify("Ünïcode & symbols?") == "ncode-symbols"
        assert slugify("!!!") == ""

    def test_escape_like(self):
        """LIKE wildcards and the escape character are escaped"""
        assert escape_like("50% off_now") == "50\\% off\\_now"
        assert escape_like("a\\b") == "a\\\\b"
        assert escape_like("plain") == "plain"

    def test_reading_time(self):
        """200 words per minute, rounded up, never below one"""
        assert calculate_reading_time("") == 1
        assert calculate_reading_time("word " * 200) == 1
        assert calculate_reading_time("word " * 201) == 2
        assert calculate_reading_time("word " * 450) == 3


class TestPosts:
    """/v1/blog/posts"""

    def test_create_draft(self, create_post, test_user):
        """Slug and reading time are derived from the post"""
        post = create_post(title="Hello World! 2024", content="word " * 450)

        assert post["slug"] == "hello-world-2024"
        assert post["reading_time"] == 3
        assert post["status"] == "draft"
        assert post["published_at"] is None
        assert post["view_count"] == 0
        assert post["author"]["id"] == test_user.id

    def test_publish_sets_published_at(self, create_post):
        """Publishing without a date stamps the current time"""
        post = create_post(status="published")
        assert post["published_at"] is not None

    def test_explicit_slug_and_terms(self, create_post, category, tag):
        """Posts keep a given slug and attach categories and tags"""
        post = create_post(slug="custom-slug", category_ids=[category["id"]], tag_ids=[tag["id"]])

        assert post["slug"] == "custom-slug"
        assert [c["slug"] for c in post["categories"]] == ["product-news"]
        assert [t["slug"] for t in post["tags"]] == ["growth"]

    def test_duplicate_slug(self, client, auth_headers, create_post):
        """Slugs are unique"""
        create_post(title="Same Title")
        response = client.post("/v1/blog/posts", headers=auth_headers, json={
            "title": "Same Title",
            "content": "again",
        })

        assert response.status_code == 409
        assert response.json()["message"] == "A post with this slug already exists"

    def test_title_without_slug_characters(self, client, auth_headers):
        """A title that yields an empty slug is rejected"""
        response = client.post("/v1/blog/posts", headers=auth_headers, json={"title": "???", "content": "x"})
        assert response.status_code == 400

    def test_requires_login(self, client):
        """Anonymous visitors cannot write posts"""
        response = client.post("/v1/blog/posts", json={"title": "x", "content": "y"})
        assert response.status_code == 401

    def test_get_by_id_and_slug(self, client, create_post):
        """Posts are readable by id or slug; views count only when asked"""
        post = create_post()

        by_id = client.get(f"/v1/blog/posts/{post['id']}")
        viewed = client.get("/v1/blog/posts/by-slug/hello-world", params={"increment_view": "true"})
        missing = client.get("/v1/blog/posts/by-slug/nope")

        assert by_id.json()["view_count"] == 0
        assert viewed.json()["view_count"] == 1
        assert missing.status_code == 404
        assert missing.json()["message"] == "Post not found"

    def test_update_own_post(self, client, auth_headers, create_post, category):
        """Content changes recompute the reading time"""
        post = create_post()

        response = client.patch(f"/v1/blog/posts/{post['id']}", headers=auth_headers, json={
            "content": "word " * 401,
            "status": "published",
            "category_ids": [category["id"]],
        })

        data = response.json()
        assert response.status_code == 200
        assert data["reading_time"] == 3
        assert data["status"] == "published"
        assert data["published_at"] is not None
        assert data["title"] == "Hello World"
        assert len(data["categories"]) == 1

    def test_update_someone_elses_post(self, client, admin_headers, create_post):
        """Only the creator may edit"""
        post = create_post()
        response = client.patch(f"/v1/blog/posts/{post['id']}", headers=admin_headers, json={"title": "Hijack"})

        assert response.status_code == 403
        assert response.json()["message"] == "You can only edit your own posts"

    def test_update_to_taken_slug(self, client, auth_headers, create_post):
        """Renaming onto another post's slug conflicts"""
        create_post(title="First")
        second = create_post(title="Second")

        response = client.patch(f"/v1/blog/posts/{second['id']}", headers=auth_headers, json={"slug": "first"})
        assert response.status_code == 409

    def test_delete_post(self, client, auth_headers, admin_headers, create_post):
        """Creators delete their posts; others cannot"""
        post = create_post()

        assert client.delete(f"/v1/blog/posts/{post['id']}", headers=admin_headers).status_code == 403
        response = client.delete(f"/v1/blog/posts/{post['id']}", headers=auth_headers)
        assert response.json() == {"success": True}
        assert client.get(f"/v1/blog/posts/{post['id']}").status_code == 404
        assert client.delete("/v1/blog/posts/9999", headers=auth_headers).status_code == 404


class TestPostListing:
    """GET /v1/blog/posts filtering, sorting and paging"""

    def test_pagination(self, client, create_post):
        """has_more reports further pages"""
        for i in range(3):
            create_post(title=f"Post {i}")

        first_page = client.get("/v1/blog/posts", params={"limit": 2}).json()
        last_page = client.get("/v1/blog/posts", params={"limit": 2, "offset": 2}).json()

        assert first_page["total_count"] == 3
        assert len(first_page["posts"]) == 2
        assert first_page["has_more"] is True
        assert len(last_page["posts"]) == 1
        assert last_page["has_more"] is False

    def test_newest_first_by_default(self, client, create_post):
        """Default order is created_at descending"""
        create_post(title="Older")
        create_post(title="Newer")

        titles = [p["title"] for p in client.get("/v1/blog/posts").json()["posts"]]
        assert titles == ["Newer", "Older"]

    def test_sort_by_title(self, client, create_post):
        """sort_by and sort_order are honoured"""
        for title in ("Banana", "Apple", "Cherry"):
            create_post(title=title)

        posts = client.get("/v1/blog/posts", params={"sort_by": "title", "sort_order": "asc"}).json()["posts"]
        assert [p["title"] for p in posts] == ["Apple", "Banana", "Cherry"]

    def test_invalid_sort_column(self, client):
        """Unknown sort columns fail validation"""
        assert client.get("/v1/blog/posts", params={"sort_by": "password"}).status_code == 422

    def test_status_filter(self, client, create_post):
        """status narrows the list"""
        create_post(title="Draft one")
        create_post(title="Live one", status="published")

        posts = client.get("/v1/blog/posts", params={"status": "published"}).json()["posts"]
        assert [p["title"] for p in posts] == ["Live one"]

    def test_search(self, client, create_post):
        """search matches title, excerpt and content case-insensitively"""
        create_post(title="Scaling Postgres", content="indexes")
        create_post(title="Unrelated", content="We love POSTGRES replicas")
        create_post(title="Other", content="nothing")

        data = client.get("/v1/blog/posts", params={"search": "postgres"}).json()
        assert data["total_count"] == 2

    def test_search_wildcards_match_literally(self, client, create_post):
        """% and _ in a search term are not wildcards"""
        create_post(title="Save 100% today", content="deal")
        create_post(title="Save 1000 today", content="deal")
        create_post(title="snake_case names", content="style")
        create_post(title="snakeXcase names", content="style")

        percent = client.get("/v1/blog/posts", params={"search": "100%"}).json()
        underscore = client.get("/v1/blog/posts", params={"search": "snake_case"}).json()

        assert [p["title"] for p in percent["posts"]] == ["Save 100% today"]
        assert [p["title"] for p in underscore["posts"]] == ["snake_case names"]

    def test_category_and_tag_filters(self, client, create_post, category, tag):
        """category_id and tag_id narrow the list"""
        create_post(title="Tagged", category_ids=[category["id"]], tag_ids=[tag["id"]])
        create_post(title="Plain")

        by_category = client.get("/v1/blog/posts", params={"category_id": category["id"]}).json()
        by_tag = client.get("/v1/blog/posts", params={"tag_id": tag["id"]}).json()

        assert [p["title"] for p in by_category["posts"]] == ["Tagged"]
        assert [p["title"] for p in by_tag["posts"]] == ["Tagged"]

    def test_stats(self, client, auth_headers, create_post):
        """Stats count the user's posts, published posts and views"""
        create_post(title="Draft")
        create_post(title="Live", status="published")
        client.get("/v1/blog/posts/by-slug/live", params={"increment_view": "true"})
        client.get("/v1/blog/posts/by-slug/live", params={"increment_view": "true"})

        stats = client.get("/v1/blog/stats", headers=auth_headers).json()
        assert stats == {"total_posts": 2, "published_posts": 1, "total_views": 2}


class TestCategoriesAndTags:
    """/v1/blog/categories and /v1/blog/tags"""

    def test_create_category(self, client, auth_headers):
        """Slugs are generated and colors normalized"""
        response = client.post("/v1/blog/categories", headers=auth_headers, json={
            "name": "Case Studies",
            "color": "#ff00aa",
        })

        assert response.status_code == 201
        assert response.json()["slug"] == "case-studies"
        assert response.json()["color"] == "#FF00AA"

    def test_invalid_color(self, client, auth_headers):
        """Colors must be six-digit hex"""
        response = client.post("/v1/blog/categories", headers=auth_headers, json={"name": "x", "color": "red"})
        assert response.status_code == 422

    def test_duplicate_category(self, client, auth_headers, category):
        """Category slugs are unique"""
        response = client.post("/v1/blog/categories", headers=auth_headers, json={"name": "Product News"})
        assert response.status_code == 409
        assert response.json()["message"] == "A category with this slug already exists"

    def test_inactive_categories_are_hidden(self, client, auth_headers, category):
        """Deactivated categories drop out of the list"""
        client.post("/v1/blog/categories", headers=auth_headers, json={"name": "Announcements"})
        client.patch(f"/v1/blog/categories/{category['id']}", headers=auth_headers, json={"is_active": False})

        names = [c["name"] for c in client.get("/v1/blog/categories").json()]
        assert names == ["Announcements"]

    def test_category_not_found(self, client, auth_headers):
        """Updating or deleting a missing category is 404"""
        assert client.patch("/v1/blog/categories/9999", headers=auth_headers, json={"name": "x"}).status_code == 404
        assert client.delete("/v1/blog/categories/9999", headers=auth_headers).status_code == 404

    def test_tags_sorted_by_name(self, client, auth_headers):
        """Tags are listed alphabetically"""
        for name in ("SEO", "Analytics", "Growth Hacking"):
            client.post("/v1/blog/tags", headers=auth_headers, json={"name": name})

        tags = client.get("/v1/blog/tags").json()
        assert [t["slug"] for t in tags] == ["analytics", "growth-hacking", "seo"]

    def test_tag_slug_conflict_on_update(self, client, auth_headers, tag):
        """Renaming a tag's slug onto another tag conflicts"""
        other = client.post("/v1/blog/tags", headers=auth_headers, json={"name": "Retention"}).json()

        response = client.patch(f"/v1/blog/tags/{other['id']}", headers=auth_headers, json={"slug": "growth"})
        assert response.status_code == 409
        assert response.json()["message"] == "A tag with this slug already exists"

    def test_delete_tag_keeps_posts(self, client, auth_headers, create_post, tag):
        """Deleting a tag detaches it from posts"""
        post = create_post(tag_ids=[tag["id"]])

        assert client.delete(f"/v1/blog/tags/{tag['id']}", headers=auth_headers).json() == {"success": True}
        assert client.get(f"/v1/blog/posts/{post['id']}").json()["tags"] == []
