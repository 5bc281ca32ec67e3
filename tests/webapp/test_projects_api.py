import unittest

from tests.webapp.base import WebappTestCase
from tests.webapp.models import InternalProject


class ProjectsIndexTests(WebappTestCase):
    def setUp(self):
        super().setUp()
        self.user_id = self.create_user("owner@example.com")
        self.other_user_id = self.create_user("other@example.com")
        self.project_id = self.create_project(user_id=self.user_id, name="Mine")
        self.other_project_id = self.create_project(user_id=self.other_user_id, name="Theirs")

    def test_index_is_limited_to_parent_resources(self):
        response = self.client.get(f"/users/{self.user_id}/projects")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual([row["id"] for row in body["rows"]], [self.project_id])
        self.assertEqual(body["total"], 1)

    def test_index_paginates_collection(self):
        response = self.client.get(f"/users/{self.user_id}/projects", params={"page": 10, "per": 2})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["page"], {"limit": 2, "offset": 18})
        self.assertEqual(body["rows"], [])
        self.assertEqual(body["total"], 1)

    def test_index_sorts_by_allowed_fields(self):
        second_id = self.create_project(user_id=self.user_id, name="Alpha")
        path = f"/users/{self.user_id}/projects"

        response = self.client.get(path)
        self.assertEqual([row["id"] for row in response.json()["rows"]], [self.project_id, second_id])

        response = self.client.get(path, params={"sort_desc": "true"})
        self.assertEqual([row["id"] for row in response.json()["rows"]], [second_id, self.project_id])

        response = self.client.get(path, params={"sort[name]": "asc", "sort[user_id]": "desc"})
        self.assertEqual([row["name"] for row in response.json()["rows"]], ["Alpha", "Mine"])

    def test_unknown_parent_is_not_found(self):
        response = self.client.get("/users/-1/projects")
        self.assertEqual(response.status_code, 404)

    def test_malformed_parent_id_is_bad_request(self):
        response = self.client.get("/users/abc/projects")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["value"], "abc")

    def test_malformed_page_is_bad_request(self):
        response = self.client.get(f"/users/{self.user_id}/projects", params={"per": "many"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("Error while parsing", response.json()["detail"])

    def test_oversized_numbers_are_bad_request(self):
        huge = "10000000000000000000000"
        for path in (f"/users/{self.user_id}/projects?page={huge}", f"/users/{huge}/projects"):
            with self.subTest(path=path):
                response = self.client.get(path)
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.json()["value"], huge)

    def test_parse_error_is_logged(self):
        with self.assertLogs("resourcekit.http", "WARNING") as logs:
            response = self.client.get("/users/abc/projects")
        self.assertEqual(response.status_code, 400)
        self.assertIn("parse_error", logs.output[0])
        self.assertIn("'abc'", logs.output[0])


class ProjectsCreateTests(WebappTestCase):
    def setUp(self):
        super().setUp()
        self.user_id = self.create_user("owner@example.com")
        self.other_user_id = self.create_user("other@example.com")
        self.payload = {
            "name": "New project",
            "user_id": self.other_user_id,
            "department": "D",
            "company": "C",
            "type": "Project::Internal",
        }

    def test_create_uses_parent_and_type_permitted_attributes(self):
        response = self.client.post(f"/users/{self.user_id}/projects", json=self.payload)
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(
            self.project_attributes(body["id"]),
            {
                "name": "New project",
                "department": "D",
                "company": None,
                "type": "Project::Internal",
                "user_id": self.user_id,
            },
        )

    def test_create_respects_per_type_allowed_attributes(self):
        self.payload["type"] = "Project::External"
        response = self.client.post(f"/users/{self.user_id}/projects", json=self.payload)
        self.assertEqual(response.status_code, 201)
        attributes = self.project_attributes(response.json()["id"])
        self.assertEqual(attributes["department"], None)
        self.assertEqual(attributes["company"], "C")

    def test_create_failure_returns_unsaved_resource(self):
        del self.payload["name"]
        response = self.client.post(f"/users/{self.user_id}/projects", json=self.payload)
        self.assertEqual(response.status_code, 422)
        detail = response.json()["detail"]
        self.assertEqual(detail["errors"], {"name": "can't be blank"})
        self.assertEqual(detail["resource"]["user_id"], self.user_id)
        self.assertIsNone(detail["resource"]["name"])
        self.assertEqual(detail["resource"]["department"], "D")
        self.assertIsNone(detail["resource"]["company"])

        index = self.client.get(f"/users/{self.user_id}/projects").json()
        self.assertEqual(index["total"], 0)

    def test_hidden_type_is_not_found(self):
        self.payload["type"] = "Project::Hidden"
        response = self.client.post(f"/users/{self.user_id}/projects", json=self.payload)
        self.assertEqual(response.status_code, 404)

    def test_missing_type_builds_base_model(self):
        del self.payload["type"]
        response = self.client.post(f"/users/{self.user_id}/projects", json=self.payload)
        self.assertEqual(response.status_code, 422)
        detail = response.json()["detail"]
        self.assertEqual(detail["errors"], {"type": "can't be blank"})
        self.assertIsNone(detail["resource"]["department"])
        self.assertIsNone(detail["resource"]["company"])

    def test_unknown_parent_is_not_found(self):
        response = self.client.post("/users/-1/projects", json={"type": "Project::External"})
        self.assertEqual(response.status_code, 404)


class ProjectsMemberTests(WebappTestCase):
    def setUp(self):
        super().setUp()
        self.user_id = self.create_user("owner@example.com")
        self.other_user_id = self.create_user("other@example.com")
        self.project_id = self.create_project(user_id=self.user_id, name="Old", company="Old Co")
        self.payload = {
            "name": "New project",
            "user_id": self.other_user_id,
            "department": "D",
            "company": "C",
            "type": "Project::Hidden",
        }

    def test_show(self):
        response = self.client.get(f"/projects/{self.project_id}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["type"], "Project::External")

    def test_show_unknown_is_not_found(self):
        response = self.client.get("/projects/999")
        self.assertEqual(response.status_code, 404)

    def test_show_oversized_id_is_bad_request(self):
        response = self.client.get("/projects/10000000000000000000000")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["value"], "10000000000000000000000")

    def test_update_keeps_type_and_parent(self):
        response = self.client.patch(f"/projects/{self.project_id}", json=self.payload)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            self.project_attributes(self.project_id),
            {
                "name": "New project",
                "department": None,
                "company": "C",
                "type": "Project::External",
                "user_id": self.user_id,
            },
        )

    def test_update_respects_type_of_resource(self):
        internal_id = self.create_project(InternalProject, user_id=self.user_id, name="Internal")
        response = self.client.patch(f"/projects/{internal_id}", json=self.payload)
        self.assertEqual(response.status_code, 200)
        attributes = self.project_attributes(internal_id)
        self.assertEqual(attributes["department"], "D")
        self.assertIsNone(attributes["company"])
        self.assertEqual(attributes["type"], "Project::Internal")

    def test_update_failure_does_not_persist(self):
        before = self.project_attributes(self.project_id)
        self.payload["name"] = ""
        response = self.client.patch(f"/projects/{self.project_id}", json=self.payload)
        self.assertEqual(response.status_code, 422)
        resource = response.json()["detail"]["resource"]
        self.assertEqual(resource["name"], "")
        self.assertEqual(resource["company"], "C")
        self.assertEqual(resource["type"], "Project::External")
        self.assertEqual(resource["user_id"], self.user_id)
        self.assertEqual(self.project_attributes(self.project_id), before)

    def test_destroy(self):
        response = self.client.delete(f"/projects/{self.project_id}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.get(f"/projects/{self.project_id}").status_code, 404)


if __name__ == "__main__":
    unittest.main()
