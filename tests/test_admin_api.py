"""API tests for /api/admin: account deletion order of checks, creation and role changes."""

from unittest.mock import patch

from api_support import ApiTestCase
from salesdesk.core.database import get_db
from salesdesk.main import app
from salesdesk.models import Account, UserProfile


class TestDeleteUser(ApiTestCase):
    """POST /api/admin/users/delete answers with the first failing check."""

    def test_no_session_is_401_before_database(self) -> None:
        calls: list[str] = []

        def tracking_get_db():
            calls.append("db")
            yield self.db()

        app.dependency_overrides[get_db] = tracking_get_db
        resp = self.client.post("/api/admin/users/delete", json={"userId": "u2"})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["error"], "Không có quyền truy cập: Chưa đăng nhập")
        self.assertEqual(calls, [])

    def test_missing_user_id(self) -> None:
        self.add_account("admin-1", role="admin")
        self.sign_in_as("admin-1")
        resp = self.client.post("/api/admin/users/delete", json={})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "User ID không được để trống")

    def test_self_delete_refused_for_any_role(self) -> None:
        for role in ("admin", "staff"):
            user_id = f"{role}-self"
            self.add_account(user_id, role=role)
            self.sign_in_as(user_id)
            resp = self.client.post("/api/admin/users/delete", json={"userId": user_id})
            self.assertEqual(resp.status_code, 400, role)
            self.assertEqual(resp.json(), {"error": "Không thể xóa tài khoản của chính mình"})

    def test_non_admin_forbidden(self) -> None:
        self.add_account("staff-1", role="staff")
        self.add_account("staff-2", role="staff")
        self.sign_in_as("staff-1")
        resp = self.client.post("/api/admin/users/delete", json={"userId": "staff-2"})
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(
            resp.json()["error"],
            "Không có quyền truy cập: Chỉ admin mới có thể xóa người dùng",
        )
        self.assertIsNotNone(self.db().query(Account).filter(Account.user_id == "staff-2").first())

    def test_actor_without_account_forbidden(self) -> None:
        self.add_account("staff-2", role="staff")
        self.sign_in_as("ghost")
        resp = self.client.post("/api/admin/users/delete", json={"userId": "staff-2"})
        self.assertEqual(resp.status_code, 403)

    def test_admin_target_refused(self) -> None:
        self.add_account("admin-1", role="admin")
        self.add_account("admin-2", role="admin")
        self.sign_in_as("admin-1")
        resp = self.client.post("/api/admin/users/delete", json={"userId": "admin-2"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "Không thể xóa tài khoản admin khác")

    def test_admin_deletes_staff(self) -> None:
        self.add_account("admin-1", role="admin")
        self.add_account("staff-1", role="staff", full_name="Nguyễn Văn A")
        self.sign_in_as("admin-1")
        resp = self.client.post("/api/admin/users/delete", json={"userId": "staff-1"})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["message"], "Đã xóa tài khoản của Nguyễn Văn A thành công")
        self.assertTrue(body["identity_deleted"])
        self.assertEqual(len(self.identity.calls("DELETE", "/admin/users/staff-1")), 1)

        db = self.db()
        self.assertIsNone(db.query(Account).filter(Account.user_id == "staff-1").first())
        profile = db.get(UserProfile, "staff-1")
        self.assertTrue(profile.deleted)
        self.assertIsNone(profile.email)

    def test_identity_failure_reported_not_raised(self) -> None:
        self.add_account("admin-1", role="admin")
        self.add_account("staff-1", role="staff")
        self.identity.admin_delete_status = 500
        self.sign_in_as("admin-1")
        resp = self.client.post("/api/admin/users/delete", json={"userId": "staff-1"})
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(resp.json()["identity_deleted"])
        self.assertNotIn("upstream failure", resp.text)


class TestCreateUser(ApiTestCase):
    """POST /api/admin/create-user creates the login and both rows."""

    def test_creates_active_account(self) -> None:
        self.add_account("admin-1", role="admin")
        self.sign_in_as("admin-1")
        resp = self.client.post(
            "/api/admin/create-user",
            json={
                "email": "new@example.com",
                "password": "secret123",
                "fullName": "Trần Thị B",
                "role": "staff",
                "phone": "0900000001",
            },
        )
        self.assertEqual(resp.status_code, 200)
        user_id = resp.json()["user"]["id"]
        self.assertTrue(self.identity.created_users[0]["user_metadata"]["require_password_change"])

        db = self.db()
        account = db.query(Account).filter(Account.user_id == user_id).first()
        self.assertEqual(account.role, "staff")
        self.assertEqual(account.status, "active")
        self.assertEqual(db.get(UserProfile, user_id).phone, "0900000001")

    def test_missing_fields(self) -> None:
        self.add_account("admin-1", role="admin")
        self.sign_in_as("admin-1")
        resp = self.client.post("/api/admin/create-user", json={"email": "x@example.com"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.identity.created_users, [])

    def test_duplicate_phone_refused_before_identity_call(self) -> None:
        self.add_account("admin-1", role="admin")
        with self.SessionTesting() as db:
            db.get(UserProfile, "admin-1").phone = "0900000002"
            db.commit()
        self.sign_in_as("admin-1")
        resp = self.client.post(
            "/api/admin/create-user",
            json={
                "email": "dup@example.com",
                "password": "secret123",
                "fullName": "C",
                "role": "staff",
                "phone": "0900000002",
            },
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.identity.created_users, [])

    def test_rows_failure_removes_login(self) -> None:
        from sqlalchemy.exc import OperationalError

        self.add_account("admin-1", role="admin")
        self.sign_in_as("admin-1")
        with patch(
            "salesdesk.api.admin.create_account_records",
            side_effect=OperationalError("INSERT", {}, Exception("db down")),
        ):
            resp = self.client.post(
                "/api/admin/create-user",
                json={"email": "n@example.com", "password": "secret123", "fullName": "N", "role": "staff"},
            )
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(len(self.identity.calls("DELETE", "/admin/users/created-1")), 1)

    def test_staff_cannot_create(self) -> None:
        self.add_account("staff-1", role="staff")
        self.sign_in_as("staff-1")
        resp = self.client.post(
            "/api/admin/create-user",
            json={"email": "n@example.com", "password": "secret123", "fullName": "N", "role": "admin"},
        )
        self.assertEqual(resp.status_code, 403)


class TestUsersAndRoles(ApiTestCase):
    def test_list_users_joins_profiles(self) -> None:
        self.add_account("admin-1", role="admin", full_name="Admin")
        self.add_account("staff-1", role="staff", full_name="Staff")
        self.sign_in_as("admin-1")
        resp = self.client.get("/api/admin/users")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["count"], 2)
        self.assertEqual([u["full_name"] for u in body["users"]], ["Admin", "Staff"])

    def test_change_role(self) -> None:
        self.add_account("admin-1", role="admin")
        self.add_account("staff-1", role="staff")
        self.sign_in_as("admin-1")
        resp = self.client.patch("/api/admin/users/staff-1/role", json={"role": "manager"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["role"], "manager")

    def test_cannot_change_own_or_admin_role(self) -> None:
        self.add_account("admin-1", role="admin")
        self.add_account("admin-2", role="admin")
        self.sign_in_as("admin-1")
        own = self.client.patch("/api/admin/users/admin-1/role", json={"role": "staff"})
        other = self.client.patch("/api/admin/users/admin-2/role", json={"role": "staff"})
        self.assertEqual(own.status_code, 400)
        self.assertEqual(other.status_code, 400)
