"""API tests for /api/preferences."""

import unittest

from app.models import Preference
from tests.support import ApiTestCase


class TestCreatePreference(ApiTestCase):

    def test_defaults_applied(self) -> None:
        user = self.post_user()
        response = self.client.post("/api/preferences", json={"user": user["id"]})
        self.assertEqual(response.status_code, 201, response.text)
        body = response.json()
        self.assertEqual(set(body), {"id", "langue", "theme", "notifications"})
        self.assertEqual((body["langue"], body["theme"], body["notifications"]), ("fr", "light", True))

        shown = self.client.get(f"/api/users/{user['id']}").json()
        self.assertEqual(shown["preference"], body)

    def test_owner_is_required(self) -> None:
        for body in ({}, {"theme": "dark"}, {"user": None}):
            with self.subTest(body=body):
                response = self.client.post("/api/preferences", json=body)
                self.assertEqual(response.status_code, 400)
                self.assertEqual(
                    response.json()["errors"], {"user": "L'utilisateur ne peut pas être nul"}
                )

    def test_unknown_owner(self) -> None:
        response = self.client.post("/api/preferences", json={"user": 42})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["errors"], {"user": "L'utilisateur 42 n'existe pas"})

    def test_owner_with_existing_preference(self) -> None:
        user = self.post_user()
        self.client.post("/api/preferences", json={"user": user["id"]})
        response = self.client.post("/api/preferences", json={"user": user["id"], "theme": "dark"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json()["errors"], {"user": "Cet utilisateur a déjà des préférences"}
        )
        self.assertEqual(self.fresh_session().query(Preference).count(), 1)

    def test_field_and_owner_violations_reported_together(self) -> None:
        response = self.client.post(
            "/api/preferences", json={"theme": "blue", "langue": "f"}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(set(response.json()["errors"]), {"langue", "theme", "user"})

    def test_wrong_notifications_type(self) -> None:
        user = self.post_user()
        response = self.client.post(
            "/api/preferences", json={"user": user["id"], "notifications": "yes"}
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("notifications", response.json()["errors"])
        self.assertEqual(self.fresh_session().query(Preference).count(), 0)


class TestPreferenceCrud(ApiTestCase):

    def setUp(self) -> None:
        super().setUp()
        self.user = self.post_user()
        response = self.client.post(
            "/api/preferences",
            json={"user": self.user["id"], "langue": "en", "notifications": False},
        )
        self.assertEqual(response.status_code, 201, response.text)
        self.preference = response.json()
        self.url = f"/api/preferences/{self.preference['id']}"

    def test_show(self) -> None:
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), self.preference)

    def test_partial_update_changes_only_given_field(self) -> None:
        response = self.client.put(self.url, json={"theme": "dark"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {**self.preference, "theme": "dark"})
        self.assertEqual(self.client.get(self.url).json()["theme"], "dark")

    def test_update_rejects_invalid_theme(self) -> None:
        response = self.client.put(self.url, json={"theme": "blue"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["errors"], {"theme": "Le thème doit être 'light' ou 'dark'"})
        self.assertEqual(self.client.get(self.url).json()["theme"], "light")

    def test_update_cannot_move_owner(self) -> None:
        other = self.post_user(2)
        response = self.client.put(self.url, json={"user": other["id"], "langue": "de"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.get(f"/api/users/{self.user['id']}").json()["preference"]["langue"], "de")
        self.assertIsNone(self.client.get(f"/api/users/{other['id']}").json()["preference"])

    def test_list_and_filters(self) -> None:
        other = self.post_user(2)
        self.client.post("/api/preferences", json={"user": other["id"], "theme": "dark"})

        listed = self.client.get("/api/preferences").json()
        self.assertEqual([p["langue"] for p in listed], ["en", "fr"])
        dark = self.client.get("/api/preferences", params={"theme": "dark"}).json()
        self.assertEqual([p["langue"] for p in dark], ["fr"])
        english = self.client.get("/api/preferences", params={"langue": "en"}).json()
        self.assertEqual(english, [self.preference])
        none = self.client.get("/api/preferences", params={"theme": "dark", "langue": "en"}).json()
        self.assertEqual(none, [])

    def test_delete(self) -> None:
        response = self.client.delete(self.url)
        self.assertEqual(response.status_code, 204)
        self.assertEqual(response.content, b"")
        self.assertEqual(self.client.get(self.url).status_code, 404)

        user_url = f"/api/users/{self.user['id']}"
        self.assertIsNone(self.client.get(user_url).json()["preference"])
        self.assertEqual(self.client.get(f"{user_url}/preferences").status_code, 404)

    def test_unknown_preference(self) -> None:
        for method in ("get", "put", "delete"):
            with self.subTest(method=method):
                kwargs = {"json": {"theme": "dark"}} if method == "put" else {}
                response = getattr(self.client, method)("/api/preferences/999", **kwargs)
                self.assertEqual(response.status_code, 404)
                self.assertEqual(response.json()["code"], "NOT_FOUND")


if __name__ == "__main__":
    unittest.main()
