from datetime import timedelta

from orderflow.models.order import Order
from orderflow.models.product import Product
from orderflow.models.status import OrderStatus
from orderflow.utils.security import create_access_token


class TestAuth:
    def test_missing_token(self, client):
        resp = client.get("/api/orders/")
        assert resp.status_code == 401
        assert resp.json() == {"error": "Unauthorized", "message": "Not authenticated"}

    def test_garbage_token(self, client):
        resp = client.get("/api/orders/", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401
        assert resp.json()["message"] == "Invalid or expired token"

    def test_expired_token(self, client, customer):
        token = create_access_token(customer.id, expires_delta=timedelta(minutes=-5))
        resp = client.get("/api/orders/", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_unknown_user(self, client):
        resp = client.get("/api/orders/", headers={"Authorization": f"Bearer {create_access_token(8675309)}"})
        assert resp.status_code == 401
        assert resp.json()["message"] == "Invalid user"


class TestCustomerOrders:
    def test_list_and_get(self, client, auth, customer, make_product, make_order):
        order = make_order([(make_product(), 2)])
        resp = client.get("/api/orders/", headers=auth(customer))
        assert resp.status_code == 200
        assert [o["id"] for o in resp.json()] == [order.id]

        resp = client.get(f"/api/orders/{order.id}", headers=auth(customer))
        body = resp.json()
        assert body["status"] == "pending"
        assert body["items"][0]["quantity"] == 2
        assert body["shippingAddress"]["city"] == "Springfield"

    def test_get_missing(self, client, auth, customer):
        resp = client.get("/api/orders/31337", headers=auth(customer))
        assert resp.status_code == 404
        assert resp.json()["error"] == "NotFound"

    def test_cancel(self, client, auth, customer, make_product, make_order, reload):
        p = make_product(stock=10)
        order = make_order([(p, 3)])
        resp = client.post(f"/api/orders/{order.id}/cancel", headers=auth(customer))
        assert resp.status_code == 200
        body = resp.json()
        assert body["message"].startswith("Order cancelled successfully")
        assert body["order"]["status"] == "cancelled"
        assert body["order"]["paymentStatus"] == "paid"
        assert body["order"]["cancelledAt"] is not None
        assert reload(Product, p.id).stock_quantity == 13

    def test_cancel_shipped(self, client, auth, customer, make_product, make_order):
        order = make_order([(make_product(), 1)], status=OrderStatus.SHIPPED)
        resp = client.post(f"/api/orders/{order.id}/cancel", headers=auth(customer))
        assert resp.status_code == 400
        body = resp.json()
        assert body["error"] == "InvalidTransition"
        assert body["details"]["from"] == "shipped"

    def test_cancel_non_returnable(self, client, auth, customer, make_product, make_order):
        order = make_order([(make_product(returnable=False, name="Gift Card"), 1)])
        resp = client.post(f"/api/orders/{order.id}/cancel", headers=auth(customer))
        assert resp.status_code == 400
        assert resp.json()["error"] == "PolicyViolation"
        assert "Gift Card" in resp.json()["message"]

    def test_cancel_someone_elses(self, client, auth, make_user, make_product, make_order, reload):
        p = make_product(stock=10)
        order = make_order([(p, 1)])
        resp = client.post(f"/api/orders/{order.id}/cancel", headers=auth(make_user()))
        assert resp.status_code == 403
        assert resp.json()["error"] == "Forbidden"

        fresh = reload(Order, order.id)
        assert fresh.status == "pending"
        assert fresh.cancelled_at is None
        assert fresh.payment_status == "pending"
        assert reload(Product, p.id).stock_quantity == 10


class TestVendorOrders:
    def test_list_with_counts(self, client, auth, vendor, other_vendor, make_product, make_order):
        mine = make_product()
        make_order([(mine, 1)])
        make_order([(mine, 1)], status=OrderStatus.CONFIRMED)
        make_order([(make_product(owner=other_vendor), 1)])

        resp = client.get("/api/vendor/orders/", headers=auth(vendor))
        assert resp.status_code == 200
        body = resp.json()
        assert body["total"] == 2
        assert body["counts"]["all"] == 2
        assert body["counts"]["pending"] == 1
        assert body["counts"]["confirmed"] == 1
        assert body["limit"] == 50

        resp = client.get("/api/vendor/orders/?status=confirmed", headers=auth(vendor))
        assert len(resp.json()["orders"]) == 1

    def test_customer_forbidden(self, client, auth, customer):
        resp = client.get("/api/vendor/orders/", headers=auth(customer))
        assert resp.status_code == 403

    def test_bad_limit(self, client, auth, vendor):
        resp = client.get("/api/vendor/orders/?limit=0", headers=auth(vendor))
        assert resp.status_code == 422
        assert resp.json()["error"] == "ValidationError"

    def test_confirm_then_advance(self, client, auth, vendor, make_product, make_order, reload):
        order = make_order([(make_product(), 1)])
        resp = client.post(f"/api/vendor/orders/{order.id}/confirm", headers=auth(vendor))
        assert resp.status_code == 200
        assert resp.json()["order"]["expectedDeliveryDate"] is not None

        resp = client.patch(
            f"/api/vendor/orders/{order.id}/status", json={"status": "dispatched"}, headers=auth(vendor),
        )
        assert resp.status_code == 200
        assert resp.json()["message"] == "Order status updated to dispatched successfully"

        resp = client.patch(
            f"/api/vendor/orders/{order.id}/status", json={"status": "delivered"}, headers=auth(vendor),
        )
        assert resp.status_code == 400
        assert reload(Order, order.id).status == "dispatched"

    def test_status_body_required(self, client, auth, vendor, make_product, make_order):
        order = make_order([(make_product(), 1)], status=OrderStatus.CONFIRMED)
        resp = client.patch(f"/api/vendor/orders/{order.id}/status", json={}, headers=auth(vendor))
        assert resp.status_code == 422
        body = resp.json()
        assert body["error"] == "ValidationError"
        assert body["details"]

    def test_unknown_status_value(self, client, auth, vendor, make_product, make_order):
        order = make_order([(make_product(), 1)], status=OrderStatus.CONFIRMED)
        resp = client.patch(
            f"/api/vendor/orders/{order.id}/status", json={"status": "teleported"}, headers=auth(vendor),
        )
        assert resp.status_code == 422

    def test_vendor_cancel_with_reason(self, client, auth, vendor, make_product, make_order, reload):
        p = make_product(stock=0)
        order = make_order([(p, 2)], status=OrderStatus.CONFIRMED)
        resp = client.post(
            f"/api/vendor/orders/{order.id}/cancel",
            json={"cancellationReason": "Supplier delay"},
            headers=auth(vendor),
        )
        assert resp.status_code == 200
        assert resp.json()["order"]["cancellationReason"] == "Supplier delay"
        assert reload(Product, p.id).stock_quantity == 2

    def test_reject_without_body(self, client, auth, vendor, make_product, make_order, reload):
        p = make_product(stock=0)
        order = make_order([(p, 1)])
        resp = client.post(f"/api/vendor/orders/{order.id}/reject", headers=auth(vendor))
        assert resp.status_code == 200
        assert resp.json()["order"]["status"] == "rejected"
        assert reload(Product, p.id).stock_quantity == 1

    def test_vendor_view_hides_other_items(self, client, auth, vendor, other_vendor, make_product, make_order):
        order = make_order([(make_product(), 1), (make_product(owner=other_vendor), 1)])
        resp = client.get(f"/api/vendor/orders/{order.id}", headers=auth(vendor))
        assert resp.status_code == 200
        assert [i["vendorId"] for i in resp.json()["order"]["items"]] == [vendor.id]


class TestReturnReplace:
    def test_return_approve_flow(self, client, auth, customer, vendor, make_product, make_order, reload):
        p = make_product(stock=10, price="8.00")
        order = make_order([(p, 4)], status=OrderStatus.DELIVERED)
        item_id = order.items[0].id

        resp = client.post(
            f"/api/orders/{order.id}/return",
            json={"orderItemId": item_id, "reason": "Too small"},
            headers=auth(customer),
        )
        assert resp.status_code == 200
        req = resp.json()["request"]
        assert req["status"] == "pending"
        assert req["orderStatus"] == "return_requested"
        assert req["returnAmount"] == 32.0

        resp = client.post(
            f"/api/orders/{order.id}/return", json={"orderItemId": item_id}, headers=auth(customer),
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "PolicyViolation"

        resp = client.get("/api/vendor/return-replace/", headers=auth(vendor))
        assert [r["id"] for r in resp.json()] == [req["id"]]

        resp = client.post(f"/api/vendor/return-replace/{req['id']}/approve", headers=auth(vendor))
        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Request approved successfully. Refund processed."
        assert body["request"]["status"] == "processed"
        assert body["request"]["orderStatus"] == "return_processed"
        assert reload(Product, p.id).stock_quantity == 14

    def test_replace_reject_flow(self, client, auth, customer, vendor, make_product, make_order, reload):
        order = make_order([(make_product(), 1)], status=OrderStatus.DELIVERED)
        resp = client.post(
            f"/api/orders/{order.id}/replace", json={"orderItemId": order.items[0].id}, headers=auth(customer),
        )
        req_id = resp.json()["request"]["id"]

        resp = client.post(
            f"/api/vendor/return-replace/{req_id}/reject",
            json={"rejectionReason": "Item shows wear"},
            headers=auth(vendor),
        )
        assert resp.status_code == 200
        assert resp.json()["request"]["rejectedReason"] == "Item shows wear"
        assert reload(Order, order.id).status == "delivered"

    def test_return_unknown_item(self, client, auth, customer, make_product, make_order):
        order = make_order([(make_product(), 1)], status=OrderStatus.DELIVERED)
        resp = client.post(f"/api/orders/{order.id}/return", json={"orderItemId": 0}, headers=auth(customer))
        assert resp.status_code == 404

    def test_other_vendor_cannot_approve(self, client, auth, customer, other_vendor, make_product, make_order):
        order = make_order([(make_product(), 1)], status=OrderStatus.DELIVERED)
        resp = client.post(
            f"/api/orders/{order.id}/return", json={"orderItemId": order.items[0].id}, headers=auth(customer),
        )
        req_id = resp.json()["request"]["id"]
        resp = client.post(f"/api/vendor/return-replace/{req_id}/approve", headers=auth(other_vendor))
        assert resp.status_code == 403

    def test_bad_type_filter(self, client, auth, vendor):
        resp = client.get("/api/vendor/return-replace/?type=exchange", headers=auth(vendor))
        assert resp.status_code == 422
