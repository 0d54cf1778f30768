"""API test for /api/health."""

from unittest.mock import patch

from api_support import ApiTestCase


class TestHealth(ApiTestCase):
    def test_reports_database_without_session(self) -> None:
        resp = self.client.get("/api/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(
            resp.json(),
            {
                "status": "ok",
                "environment": "dev",
                "database": "connected",
                "admin_identity_configured": True,
            },
        )

    def test_degraded_when_database_unreachable(self) -> None:
        self.settings = self.settings.model_copy(update={"SUPABASE_SERVICE_ROLE_KEY": None})
        with patch("salesdesk.api.health.check_db_connected", return_value=False):
            body = self.client.get("/api/health").json()
        self.assertEqual(body["status"], "degraded")
        self.assertEqual(body["database"], "disconnected")
        self.assertFalse(body["admin_identity_configured"])

    def test_validation_errors_are_400(self) -> None:
        self.sign_in_as("staff-1")
        resp = self.client.post("/api/categories", content=b"not json", headers={"Content-Type": "application/json"})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("error", resp.json())
