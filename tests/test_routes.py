"""Tests for the JSON API."""

import unittest
from unittest.mock import MagicMock, patch

from firebase_admin import firestore
from mockfirestore import MockFirestore

from meetup import create_app
from meetup.errors import ProviderRejectedError, ProviderUnavailableError
from tests.conftest import patch_array_transforms, patch_mockfirestore
from tests.mock_utils import FakeGroupProvider, add_user, passthrough_transaction

ITEM_BODY = {
    "image": "https://example.com/a.jpg",
    "people": 4,
    "attendant": 1,
    "latitude": 25.0,
    "longitude": 121.5,
}


class ApiTestCase(unittest.TestCase):
    """Base test case with a Flask client over an in-memory Firestore."""

    def setUp(self):
        """Set up a test client and a comprehensive mock environment."""
        patch_mockfirestore()
        patch_array_transforms(self)
        self.db = MockFirestore()
        passthrough_transaction(self.db)

        patchers = {
            "init_app": patch("firebase_admin.initialize_app"),
            "client": patch.object(firestore, "client", return_value=self.db),
            "transactional": patch.object(firestore, "transactional", lambda fn: fn),
        }
        self.mocks = {name: p.start() for name, p in patchers.items()}
        for p in patchers.values():
            self.addCleanup(p.stop)

        self.app = create_app({"TESTING": True, "SERVER_NAME": "localhost"})
        self.provider = FakeGroupProvider()
        state = self.app.extensions["messaging"]
        state.group_client = self.provider
        state.notifier = MagicMock()
        state.verifier = MagicMock()
        state.verifier.is_valid.return_value = True
        self.state = state
        self.client = self.app.test_client()

        self.u1 = add_user(self.db, "u1")
        self.u2 = add_user(self.db, "u2")

    def headers(self, identity):
        return {"Instance-Id": identity.instance_id}

    def create_item(self, identity=None, body=None):
        return self.client.post(
            "/api/0.1/items",
            json=body or ITEM_BODY,
            headers=self.headers(identity or self.u1),
        )


class UserRoutesTestCase(ApiTestCase):
    """Test case for device registration."""

    def test_register_device(self):
        response = self.client.put(
            "/api/0.1/users/me",
            json={"registrationToken": "iid9:tok"},
            headers={"Instance-Id": "iid9"},
        )
        self.assertEqual(response.status_code, 200)
        user_id = response.get_json()["userId"]
        self.assertTrue(self.db.collection("users").document(user_id).get().exists)

    def test_register_with_bad_token(self):
        self.state.verifier.is_valid.return_value = False
        response = self.client.put(
            "/api/0.1/users/me",
            json={"registrationToken": "iid9:tok"},
            headers={"Instance-Id": "iid9"},
        )
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.get_json()["retryable"])


class ItemRoutesTestCase(ApiTestCase):
    """Test case for the item endpoints."""

    def test_create_item(self):
        response = self.create_item()
        self.assertEqual(response.status_code, 201)
        data = response.get_json()
        self.assertTrue(response.headers["Location"].endswith(f"/api/0.1/items/{data['id']}"))
        self.assertEqual(data["members"], [{"userKey": "u1", "attendant": 1}])

    def test_missing_instance_header(self):
        response = self.client.post("/api/0.1/items", json=ITEM_BODY)
        self.assertEqual(response.status_code, 400)

    def test_unknown_instance_is_forbidden(self):
        response = self.client.post(
            "/api/0.1/items", json=ITEM_BODY, headers={"Instance-Id": "stranger"}
        )
        self.assertEqual(response.status_code, 403)

    def test_invalid_item(self):
        response = self.create_item(body={**ITEM_BODY, "attendant": 5})
        self.assertEqual(response.status_code, 400)
        self.assertIn("error", response.get_json())

    def test_get_list_and_search(self):
        item_id = self.create_item().get_json()["id"]

        response = self.client.get(f"/api/0.1/items/{item_id}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["people"], 4)

        response = self.client.get("/api/0.1/items")
        self.assertEqual([i["id"] for i in response.get_json()], [item_id])

        response = self.client.get("/api/0.1/items?people=5")
        self.assertEqual(response.get_json(), [])

    def test_get_missing_item(self):
        response = self.client.get("/api/0.1/items/missing")
        self.assertEqual(response.status_code, 404)

    def test_attendance_flow(self):
        item_id = self.create_item().get_json()["id"]

        response = self.client.put(
            f"/api/0.1/items/{item_id}",
            json={"attendant": 3},
            headers=self.headers(self.u2),
        )
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data["outcome"], "append_member")
        self.assertTrue(data["itemFull"])
        self.assertEqual(data["item"]["attendant"], 4)

        response = self.client.put(
            f"/api/0.1/items/{item_id}",
            json={"attendant": -1},
            headers=self.headers(self.u1),
        )
        data = response.get_json()
        self.assertEqual(data["outcome"], "close")
        self.assertIsNone(data["item"])
        self.assertEqual(self.client.get(f"/api/0.1/items/{item_id}").status_code, 404)

    def test_capacity_error(self):
        item_id = self.create_item().get_json()["id"]
        response = self.client.put(
            f"/api/0.1/items/{item_id}",
            json={"attendant": 4},
            headers=self.headers(self.u2),
        )
        self.assertEqual(response.status_code, 400)

    def test_provider_unavailable_is_retryable(self):
        item_id = self.create_item().get_json()["id"]
        self.provider.fail_on("add", ProviderUnavailableError())
        response = self.client.put(
            f"/api/0.1/items/{item_id}",
            json={"attendant": 1},
            headers=self.headers(self.u2),
        )
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.headers["Retry-After"], "1")
        self.assertTrue(response.get_json()["retryable"])

    def test_provider_rejection_is_bad_gateway(self):
        item_id = self.create_item().get_json()["id"]
        self.provider.fail_on("add", ProviderRejectedError(provider_status=400))
        response = self.client.put(
            f"/api/0.1/items/{item_id}",
            json={"attendant": 1},
            headers=self.headers(self.u2),
        )
        self.assertEqual(response.status_code, 502)
        self.assertFalse(response.get_json()["retryable"])

    def test_malformed_item_is_server_error(self):
        self.db.collection("items").document("broken").set({"people": "abc"})
        response = self.client.put(
            "/api/0.1/items/broken",
            json={"attendant": 1},
            headers=self.headers(self.u2),
        )
        self.assertEqual(response.status_code, 500)
        self.assertFalse(response.get_json()["retryable"])

    def test_delete_item(self):
        item_id = self.create_item().get_json()["id"]
        response = self.client.delete(
            f"/api/0.1/items/{item_id}", headers=self.headers(self.u2)
        )
        self.assertEqual(response.status_code, 403)
        response = self.client.delete(
            f"/api/0.1/items/{item_id}", headers=self.headers(self.u1)
        )
        self.assertEqual(response.status_code, 204)


class GroupRoutesTestCase(ApiTestCase):
    """Test case for the group endpoints."""

    def test_join_and_leave(self):
        response = self.client.put(
            "/api/0.1/groups", json={"groupName": "teamA"}, headers=self.headers(self.u1)
        )
        self.assertEqual(response.status_code, 204)
        response = self.client.put(
            "/api/0.1/groups", json={"groupName": "teamA"}, headers=self.headers(self.u2)
        )
        self.assertEqual(response.status_code, 204)
        self.assertEqual(self.provider.operations(), ["create", "add"])

        response = self.client.delete("/api/0.1/groups/teamA", headers=self.headers(self.u1))
        self.assertEqual(response.status_code, 204)
        self.assertEqual(list(self.db.collection("groups").stream()), [])

    def test_join_without_name(self):
        response = self.client.put("/api/0.1/groups", json={}, headers=self.headers(self.u1))
        self.assertEqual(response.status_code, 400)

    def test_leave_unknown_group(self):
        response = self.client.delete("/api/0.1/groups/teamZ", headers=self.headers(self.u1))
        self.assertEqual(response.status_code, 404)


class MessageRoutesTestCase(ApiTestCase):
    """Test case for the message endpoints."""

    def test_user_message(self):
        response = self.client.post(
            "/api/0.1/user-messages",
            json={"userId": "u2", "message": "hi"},
            headers=self.headers(self.u1),
        )
        self.assertEqual(response.status_code, 204)
        self.state.notifier.send.assert_called_once()

    def test_topic_message(self):
        response = self.client.post(
            "/api/0.1/topic-messages",
            json={"topic": "news", "message": "hi"},
            headers=self.headers(self.u1),
        )
        self.assertEqual(response.status_code, 204)

    def test_group_message_unknown_group(self):
        response = self.client.post(
            "/api/0.1/group-messages",
            json={"groupName": "teamZ", "message": "hi"},
            headers=self.headers(self.u1),
        )
        self.assertEqual(response.status_code, 404)


class AppTestCase(ApiTestCase):
    """Test case for app-level behaviour."""

    def test_unknown_route_is_json_404(self):
        response = self.client.get("/api/0.1/nothing")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()["error"], "Not found.")

    def test_messaging_config_comes_from_app_config(self):
        app = create_app(
            {"TESTING": True, "FCM_SERVER_KEY": "secret", "FCM_PROJECT_NUMBER": "42"}
        )
        config = app.extensions["messaging"].config
        self.assertEqual(config.server_key, "secret")
        self.assertEqual(config.project_number, "42")
        # No sessions, so no signing key is configured.
        self.assertIsNone(app.config["SECRET_KEY"])


if __name__ == "__main__":
    unittest.main()
