"""API tests for payment methods, paying orders and order deliveries."""

import unittest
from datetime import UTC, datetime

from api_support import ApiTestCase
from salesdesk.models import Order, PaymentMethod, Shipping
from salesdesk.services.shipping import new_shipping_id

ITEMS = [{"product_id": 1, "name_product": "Trà", "quantity": 2, "unit_price": 15000}]


class TestNewShippingId(unittest.TestCase):
    def test_format_uses_day(self) -> None:
        shipping_id = new_shipping_id(lambda key: False, now=datetime(2026, 10, 19, tzinfo=UTC))
        self.assertRegex(shipping_id, r"^SHP-20261019-\d{5}$")

    def test_gives_up(self) -> None:
        with self.assertRaises(RuntimeError):
            new_shipping_id(lambda key: True, attempts=3)


class TestPaymentMethods(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.add_account("admin-1", role="admin")
        self.sign_in_as("admin-1")

    def test_admin_creates_and_staff_lists_by_name(self) -> None:
        for name in ("Tiền mặt", "Chuyển khoản"):
            resp = self.client.post("/api/payments", json={"payment_method_name": name})
            self.assertEqual(resp.status_code, 200)

        self.add_account("staff-1", role="staff")
        self.sign_in_as("staff-1")
        names = [m["payment_method_name"] for m in self.client.get("/api/payments").json()]
        self.assertEqual(names, ["Chuyển khoản", "Tiền mặt"])
        self.assertEqual(
            self.client.post("/api/payments", json={"payment_method_name": "Thẻ"}).status_code,
            403,
        )

    def test_duplicate_and_blank_names(self) -> None:
        self.client.post("/api/payments", json={"payment_method_name": "Tiền mặt"})
        self.assertEqual(
            self.client.post("/api/payments", json={"payment_method_name": "Tiền mặt"}).status_code,
            400,
        )
        self.assertEqual(self.client.post("/api/payments", json={}).status_code, 400)
        self.assertEqual(self.db().query(PaymentMethod).count(), 1)


class TestPayOrder(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.sign_in_as("staff-1")
        with self.SessionTesting() as db:
            db.add(PaymentMethod(payment_id=1, payment_method_name="Tiền mặt"))
            db.commit()
        self.order_id = self.client.post(
            "/api/orders", json={"customer_id": "cust-1", "items": ITEMS}
        ).json()["order_id"]

    def test_marks_paid_once(self) -> None:
        resp = self.client.post(f"/api/orders/{self.order_id}/payment", json={"payment_method": 1})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "Đã thanh toán")
        self.assertEqual(resp.json()["payment_method"], 1)

        again = self.client.post(f"/api/orders/{self.order_id}/payment", json={"payment_method": 1})
        self.assertEqual(again.status_code, 400)

    def test_unknown_method_leaves_order_unpaid(self) -> None:
        resp = self.client.post(f"/api/orders/{self.order_id}/payment", json={"payment_method": 7})
        self.assertEqual(resp.status_code, 400)
        order = self.db().get(Order, self.order_id)
        self.assertEqual(order.status, "Chưa thanh toán")
        self.assertIsNone(order.payment_method)

    def test_missing_method_or_order(self) -> None:
        self.assertEqual(self.client.post(f"/api/orders/{self.order_id}/payment", json={}).status_code, 400)
        self.assertEqual(
            self.client.post("/api/orders/ORD00000000/payment", json={"payment_method": 1}).status_code,
            404,
        )


class TestShippings(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.sign_in_as("staff-1")
        self.order_id = self.client.post(
            "/api/orders", json={"customer_id": "cust-1", "items": ITEMS}
        ).json()["order_id"]

    def _create(self, **overrides):
        payload = {
            "order_id": self.order_id,
            "name_customer": "Phạm Minh",
            "phone_customer": "0903000111",
            "shipping_address": "5 Trần Phú, Phường 4, Quận 5",
            "carrier": "Giao hàng nhanh",
            "shipping_cost": 30000,
            "cod_shipping": 30000,
            "weight": 1.5,
            "unit_weight": "kg",
        }
        payload.update(overrides)
        return self.client.post("/api/shippings", json=payload)

    def test_create_flags_order(self) -> None:
        resp = self._create()
        self.assertEqual(resp.status_code, 200)
        shipping = resp.json()
        self.assertRegex(shipping["shipping_id"], r"^SHP-\d{8}-\d{5}$")
        self.assertEqual(shipping["status"], "pending")
        self.assertEqual(shipping["shipping_cost"], 30000.0)
        self.assertTrue(self.db().get(Order, self.order_id).is_shipping)

    def test_one_delivery_per_order(self) -> None:
        self._create()
        resp = self._create()
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.db().query(Shipping).count(), 1)

    def test_rejected_input_writes_nothing(self) -> None:
        self.assertEqual(self._create(order_id="ORD00000000").status_code, 404)
        self.assertEqual(self._create(shipping_address=" ").status_code, 400)
        self.assertEqual(self._create(shipping_cost=-1).status_code, 400)
        resp = self.client.post(
            "/api/shippings",
            content=(
                b'{"order_id": "' + self.order_id.encode() + b'", "name_customer": "A",'
                b' "phone_customer": "1", "shipping_address": "B", "cod_shipping": Infinity}'
            ),
            headers={"Content-Type": "application/json"},
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.db().query(Shipping).count(), 0)
        self.assertFalse(self.db().get(Order, self.order_id).is_shipping)

    def test_delivered_stamps_actual_date(self) -> None:
        shipping_id = self._create().json()["shipping_id"]
        resp = self.client.patch(
            f"/api/shippings/{shipping_id}",
            json={"status": "delivered", "tracking_number": "TRK123"},
        )
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["status"], "delivered")
        self.assertEqual(body["tracking_number"], "TRK123")
        self.assertIsNotNone(body["actual_delivery_date"])
        self.assertEqual(body["carrier"], "Giao hàng nhanh")

    def test_invalid_update(self) -> None:
        shipping_id = self._create().json()["shipping_id"]
        path = f"/api/shippings/{shipping_id}"
        resp = self.client.patch(path, json={"status": "lost"})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("delivered", resp.json()["allowed"])
        self.assertEqual(self.client.patch(path, json={"shipping_cost": None}).status_code, 400)
        self.assertEqual(self.client.patch(path, json={"name_customer": ""}).status_code, 400)
        self.assertEqual(self.client.patch("/api/shippings/SHP-0", json={"status": "shipped"}).status_code, 404)
        self.assertEqual(self.client.get(path).json()["status"], "pending")

    def test_list_by_status(self) -> None:
        shipping_id = self._create().json()["shipping_id"]
        second_order = self.client.post(
            "/api/orders", json={"customer_id": "cust-2", "items": ITEMS}
        ).json()["order_id"]
        self._create(order_id=second_order)
        self.client.patch(f"/api/shippings/{shipping_id}", json={"status": "shipped"})

        self.assertEqual(self.client.get("/api/shippings").json()["count"], 2)
        shipped = self.client.get("/api/shippings", params={"status": "shipped"}).json()
        self.assertEqual([s["shipping_id"] for s in shipped["data"]], [shipping_id])
