"""API tests for /api/v1/posts: guard ordering, ownership and image uploads."""

import os
import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

from _helpers import PNG_BYTES, ApiTestCase, encode_token
from sqlalchemy.exc import OperationalError

from app.services.post_store import PostStore

POSTS = "/api/v1/posts"


class TestOwnershipScenario(ApiTestCase):
    """User A (id=1) owns post 77; user B (id=2) tries to delete it."""

    def setUp(self) -> None:
        super().setUp()
        self.insert_user(1)
        self.insert_user(2)
        self.insert_post(77, owner_id=1)

    def test_scenario(self) -> None:
        r = self.client.delete(f"{POSTS}/77", headers=self.auth_headers(2))
        self.assertEqual(r.status_code, 403)
        self.assertEqual(r.json()["kind"], "forbidden")

        r = self.client.delete(f"{POSTS}/999", headers=self.auth_headers(2))
        self.assertEqual(r.status_code, 404)
        self.assertEqual(r.json()["kind"], "not_found")

        r = self.client.delete(f"{POSTS}/77", headers=self.auth_headers(1))
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json(), {"status": "success", "message": "Post deleted"})

        r = self.client.get(f"{POSTS}/77")
        self.assertEqual(r.status_code, 404)

    def test_missing_post_is_not_found_for_any_authenticated_caller(self) -> None:
        for user_id in (1, 2):
            for method in ("delete", "patch"):
                with self.subTest(user_id=user_id, method=method):
                    r = self.client.request(
                        method.upper(),
                        f"{POSTS}/999",
                        headers=self.auth_headers(user_id),
                        json={"title": "t", "content": "c"},
                    )
                    self.assertEqual(r.status_code, 404)

    def test_out_of_range_and_noncanonical_ids_not_found(self) -> None:
        huge = "99999999999999999999"
        cases = [
            ("GET", f"{POSTS}/{huge}", None),
            ("DELETE", f"{POSTS}/{huge}", 1),
            ("GET", f"{POSTS}/profile/{huge}", 1),
            ("DELETE", f"{POSTS}/7_7", 1),
            ("DELETE", f"{POSTS}/+77", 1),
            ("DELETE", f"{POSTS}/077", 1),
            ("GET", f"{POSTS}/\u0663", None),
        ]
        for method, path, user_id in cases:
            with self.subTest(method=method, path=path):
                headers = self.auth_headers(user_id) if user_id else None
                r = self.client.request(method, path, headers=headers)
                self.assertEqual(r.status_code, 404)
                self.assertEqual(r.json()["kind"], "not_found")

        # post 77 survived the non-canonical deletes
        self.assertEqual(self.client.get(f"{POSTS}/77").status_code, 200)

    def test_non_owner_update_is_forbidden(self) -> None:
        r = self.client.patch(
            f"{POSTS}/77",
            headers=self.auth_headers(2),
            json={"title": "Hijacked", "content": "nope"},
        )
        self.assertEqual(r.status_code, 403)
        self.assertEqual(self.client.get(f"{POSTS}/77").json()["post"]["title"], "Post 77")

    def test_owner_update(self) -> None:
        r = self.client.patch(
            f"{POSTS}/77",
            headers=self.auth_headers(1),
            json={"title": "  New title ", "content": "New body"},
        )
        self.assertEqual(r.status_code, 200)
        post = r.json()["post"]
        self.assertEqual(post["title"], "New title")
        self.assertEqual(post["content"], "New body")
        self.assertEqual(post["user_id"], 1)

    def test_owner_delete_runs_handler_once(self) -> None:
        original = PostStore.delete
        with patch.object(PostStore, "delete", autospec=True, side_effect=original) as spy:
            r = self.client.delete(f"{POSTS}/77", headers=self.auth_headers(1))
        self.assertEqual(r.status_code, 200)
        self.assertEqual(spy.call_count, 1)

    def test_rejected_delete_never_reaches_handler(self) -> None:
        with patch.object(PostStore, "delete", autospec=True) as spy:
            self.client.delete(f"{POSTS}/77", headers=self.auth_headers(2))
            self.client.delete(f"{POSTS}/999", headers=self.auth_headers(1))
            self.client.delete(f"{POSTS}/77")
        spy.assert_not_called()

    def test_invalid_update_body_from_owner(self) -> None:
        r = self.client.patch(
            f"{POSTS}/77", headers=self.auth_headers(1), json={"title": "", "content": "x"}
        )
        self.assertEqual(r.status_code, 422)
        self.assertEqual(r.json()["kind"], "validation_error")


class TestAuthenticationFirst(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.insert_user(1)
        self.insert_post(77, owner_id=1)

    def test_no_token_means_no_post_lookup(self) -> None:
        with patch.object(PostStore, "find_by_id") as spy:
            for method, path in (
                ("DELETE", f"{POSTS}/77"),
                ("DELETE", f"{POSTS}/999"),
                ("PATCH", f"{POSTS}/77"),
            ):
                with self.subTest(method=method, path=path):
                    r = self.client.request(method, path, json={"title": "t", "content": "c"})
                    self.assertEqual(r.status_code, 401)
                    self.assertEqual(r.json()["kind"], "unauthenticated")
                    self.assertEqual(r.headers["www-authenticate"], "Bearer")
        spy.assert_not_called()

    def test_protected_listing_routes_need_token(self) -> None:
        for path in (f"{POSTS}/me", f"{POSTS}/profile/1"):
            with self.subTest(path=path):
                self.assertEqual(self.client.get(path).status_code, 401)

    def test_header_without_bearer_prefix(self) -> None:
        token = self.auth_headers(1)["Authorization"].removeprefix("Bearer ")
        r = self.client.get(f"{POSTS}/me", headers={"Authorization": token})
        self.assertEqual(r.status_code, 401)
        self.assertEqual(r.json()["kind"], "unauthenticated")

    def test_expired_and_forged_tokens_report_distinct_kinds(self) -> None:
        expired = encode_token("1", issued_at=datetime.now(UTC) - timedelta(hours=5))
        forged = encode_token("1", secret="a-completely-different-secret-value!")
        cases = {expired: "token_expired", forged: "token_invalid", "x.y": "token_malformed"}
        for token, kind in cases.items():
            with self.subTest(kind=kind):
                r = self.client.delete(
                    f"{POSTS}/77", headers={"Authorization": f"Bearer {token}"}
                )
                self.assertEqual(r.status_code, 401)
                self.assertEqual(r.json()["kind"], kind)

    def test_inactive_user_token_rejected(self) -> None:
        self.insert_user(5, status="inactive")
        r = self.client.get(f"{POSTS}/me", headers=self.auth_headers(5))
        self.assertEqual(r.status_code, 401)


class TestPublicReads(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.insert_user(1)
        self.insert_user(2)
        self.insert_post(10, owner_id=1, image_urls=["/uploads/posts/a.png", "/uploads/posts/b.png"])
        self.insert_post(11, owner_id=2)

    def test_list_without_token(self) -> None:
        r = self.client.get(POSTS)
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertEqual(body["results"], 2)
        self.assertEqual({p["id"] for p in body["posts"]}, {10, 11})

    def test_detail_without_token(self) -> None:
        r = self.client.get(f"{POSTS}/10")
        self.assertEqual(r.status_code, 200)
        post = r.json()["post"]
        self.assertEqual(post["owner"]["id"], 1)
        self.assertEqual(
            [img["url"] for img in post["images"]],
            ["/uploads/posts/a.png", "/uploads/posts/b.png"],
        )

    def test_detail_unknown_or_bad_id(self) -> None:
        for path in (f"{POSTS}/999", f"{POSTS}/abc"):
            with self.subTest(path=path):
                r = self.client.get(path)
                self.assertEqual(r.status_code, 404)
                self.assertEqual(r.json()["detail"], "Post not found")

    def test_my_posts(self) -> None:
        r = self.client.get(f"{POSTS}/me", headers=self.auth_headers(2))
        self.assertEqual(r.status_code, 200)
        self.assertEqual([p["id"] for p in r.json()["posts"]], [11])

    def test_profile_posts(self) -> None:
        r = self.client.get(f"{POSTS}/profile/1", headers=self.auth_headers(2))
        self.assertEqual(r.status_code, 200)
        self.assertEqual([p["id"] for p in r.json()["posts"]], [10])

    def test_profile_of_unknown_user(self) -> None:
        r = self.client.get(f"{POSTS}/profile/404", headers=self.auth_headers(2))
        self.assertEqual(r.status_code, 404)
        self.assertEqual(r.json()["detail"], "User not found")

    def test_store_failure_is_server_error(self) -> None:
        with patch.object(
            PostStore, "list_all", side_effect=OperationalError("SELECT", {}, Exception("down"))
        ):
            r = self.client.get(POSTS)
        self.assertEqual(r.status_code, 500)
        self.assertEqual(r.json(), {"detail": "Internal server error", "kind": "server_error"})


class TestCreatePost(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.insert_user(1)

    def test_create_without_images(self) -> None:
        r = self.client.post(
            POSTS,
            headers=self.auth_headers(1),
            data={"title": "Hello", "content": "World"},
        )
        self.assertEqual(r.status_code, 201)
        post = r.json()["post"]
        self.assertEqual(post["user_id"], 1)
        self.assertEqual(post["images"], [])

    def test_create_with_images_keeps_order(self) -> None:
        files = [
            ("postImgs", ("first.png", PNG_BYTES, "image/png")),
            ("postImgs", ("second.jpg", PNG_BYTES, "image/jpeg")),
        ]
        r = self.client.post(
            POSTS,
            headers=self.auth_headers(1),
            data={"title": "Pics", "content": "Two images"},
            files=files,
        )
        self.assertEqual(r.status_code, 201)
        images = r.json()["post"]["images"]
        self.assertEqual([img["position"] for img in images], [0, 1])
        self.assertTrue(images[0]["url"].endswith(".png"))
        self.assertTrue(images[1]["url"].endswith(".jpg"))
        for img in images:
            self.assertTrue(self.blobs.path_for(img["url"]).exists())

    def test_too_many_images(self) -> None:
        files = [("postImgs", (f"{i}.png", PNG_BYTES, "image/png")) for i in range(4)]
        r = self.client.post(
            POSTS,
            headers=self.auth_headers(1),
            data={"title": "Pics", "content": "Too many"},
            files=files,
        )
        self.assertEqual(r.status_code, 422)
        self.assertFalse(os.path.exists(os.path.join(self.upload_dir, "posts")))

    def test_non_image_upload_rejected(self) -> None:
        r = self.client.post(
            POSTS,
            headers=self.auth_headers(1),
            data={"title": "Doc", "content": "Not an image"},
            files=[("postImgs", ("notes.txt", b"hello", "text/plain"))],
        )
        self.assertEqual(r.status_code, 422)
        self.assertEqual(r.json()["kind"], "validation_error")

    def test_missing_title(self) -> None:
        r = self.client.post(POSTS, headers=self.auth_headers(1), data={"content": "x"})
        self.assertEqual(r.status_code, 422)

    def test_anonymous_create(self) -> None:
        r = self.client.post(POSTS, data={"title": "Hello", "content": "World"})
        self.assertEqual(r.status_code, 401)

    def test_delete_removes_stored_images(self) -> None:
        r = self.client.post(
            POSTS,
            headers=self.auth_headers(1),
            data={"title": "Pics", "content": "One image"},
            files=[("postImgs", ("one.png", PNG_BYTES, "image/png"))],
        )
        post = r.json()["post"]
        path = self.blobs.path_for(post["images"][0]["url"])
        self.assertTrue(path.exists())

        r = self.client.delete(f"{POSTS}/{post['id']}", headers=self.auth_headers(1))
        self.assertEqual(r.status_code, 200)
        self.assertFalse(path.exists())


class TestAdminBypassDisabled(ApiTestCase):
    def test_admin_cannot_delete_others_post(self) -> None:
        self.insert_user(1)
        self.insert_user(9, role="admin")
        self.insert_post(77, owner_id=1)
        r = self.client.delete(f"{POSTS}/77", headers=self.auth_headers(9, role="admin"))
        self.assertEqual(r.status_code, 403)


class TestAdminBypassEnabled(ApiTestCase):
    settings_overrides = {"OWNER_ADMIN_BYPASS": True}

    def setUp(self) -> None:
        super().setUp()
        self.insert_user(1)
        self.insert_user(2)
        self.insert_user(9, role="admin")
        self.insert_post(77, owner_id=1)

    def test_admin_can_delete_others_post(self) -> None:
        r = self.client.delete(f"{POSTS}/77", headers=self.auth_headers(9, role="admin"))
        self.assertEqual(r.status_code, 200)

    def test_plain_user_still_forbidden(self) -> None:
        r = self.client.delete(f"{POSTS}/77", headers=self.auth_headers(2))
        self.assertEqual(r.status_code, 403)


if __name__ == "__main__":
    unittest.main()
