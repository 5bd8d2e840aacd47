"""
HTTP tests for the voucher catalog, redemption and retailer endpoints.
"""
import os
import re
import uuid
from datetime import timedelta

from loyaltytree.models.voucher_redemption import VoucherRedemption
from loyaltytree.time_utils import utcnow


def _voucher_form(**overrides):
    data = {
        "title": "Free Coffee",
        "description": "One free filter coffee",
        "pointsRequired": "300",
        "quantity": "20",
        "expiryDate": "2099-01-31T12:00:00Z",
    }
    data.update(overrides)
    return data


def _stored_files(settings):
    if not os.path.isdir(settings.upload_dir):
        return []
    return os.listdir(settings.upload_dir)


class TestAvailableVouchers:

    def test_public_listing(self, client, make_retailer, make_voucher):
        retailer = make_retailer()
        make_voucher(retailer, points_required=900, title="Pricey", image_url="/uploads/p.png")
        make_voucher(retailer, points_required=100, title="Cheap")
        make_voucher(retailer, quantity=0, title="Gone")

        response = client.get("/vouchers/available")

        assert response.status_code == 200
        body = response.json()
        assert [v["title"] for v in body] == ["Cheap", "Pricey"]
        assert body[0]["retailer"]["name"] == "Green Coffee"
        assert body[1]["imageUrl"] == "/uploads/p.png"

    def test_placeholder_stable_across_reads(self, client, make_retailer, make_voucher):
        make_voucher(make_retailer())

        first = client.get("/vouchers/available").json()
        second = client.get("/vouchers/available").json()

        assert first[0]["imageUrl"]
        assert first[0]["imageUrl"] == second[0]["imageUrl"]


class TestRedeemEndpoint:

    def test_redeem(self, client, db, make_customer, make_retailer, make_voucher, auth_headers):
        customer = make_customer(points=600)
        voucher = make_voucher(make_retailer(), points_required=500, quantity=3)

        response = client.post(
            "/vouchers/redeem", json={"voucherId": str(voucher.id)}, headers=auth_headers(customer)
        )

        assert response.status_code == 200
        body = response.json()
        assert body["remainingPoints"] == 100
        redemption = body["redemption"]
        assert redemption["pointsSpent"] == 500
        assert redemption["status"] == "active"
        assert redemption["expiresAt"].endswith("Z")
        assert re.match(r"^VR-[A-Z0-9]{8}$", redemption["redemptionCode"])
        assert redemption["voucher"]["id"] == str(voucher.id)
        assert redemption["voucher"]["retailer"]["name"] == "Green Coffee"

        db.refresh(voucher)
        assert voucher.quantity == 2

    def test_insufficient_points(self, client, db, make_customer, make_retailer, make_voucher, auth_headers):
        customer = make_customer(points=10)
        voucher = make_voucher(make_retailer(), points_required=500)

        response = client.post(
            "/vouchers/redeem", json={"voucherId": str(voucher.id)}, headers=auth_headers(customer)
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Insufficient points", "code": "insufficient_points"}
        assert db.query(VoucherRedemption).count() == 0

    def test_unknown_voucher(self, client, make_customer, auth_headers):
        response = client.post(
            "/vouchers/redeem", json={"voucherId": str(uuid.uuid4())}, headers=auth_headers(make_customer())
        )

        assert response.status_code == 404

    def test_retailer_cannot_redeem(self, client, make_retailer, make_voucher, auth_headers):
        retailer = make_retailer()
        voucher = make_voucher(retailer)

        response = client.post(
            "/vouchers/redeem", json={"voucherId": str(voucher.id)}, headers=auth_headers(retailer)
        )

        assert response.status_code == 403

    def test_my_redemptions(self, client, make_customer, make_retailer, make_voucher, auth_headers):
        customer = make_customer(points=1000)
        voucher = make_voucher(make_retailer(), points_required=100, title="Seedling")
        headers = auth_headers(customer)
        client.post("/vouchers/redeem", json={"voucherId": str(voucher.id)}, headers=headers)

        response = client.get("/vouchers/my-redemptions", headers=headers)

        assert response.status_code == 200
        [item] = response.json()
        assert item["voucher"]["title"] == "Seedling"
        assert item["voucher"]["retailer"]["name"] == "Green Coffee"


class TestRetailerVoucherEndpoints:

    def test_create_and_list(self, client, make_retailer, auth_headers):
        retailer = make_retailer()
        headers = auth_headers(retailer)

        created = client.post("/vouchers", data=_voucher_form(), headers=headers)
        assert created.status_code == 201

        [listed] = client.get("/vouchers/retailer", headers=headers).json()
        for key in ("title", "description", "pointsRequired", "quantity", "expiryDate"):
            assert listed[key] == created.json()[key]
        assert listed["expiryDate"] == "2099-01-31T12:00:00Z"
        assert listed["createdAt"].endswith("Z")
        assert listed["imageUrl"]

    def test_create_with_image(self, client, make_retailer, auth_headers):
        response = client.post(
            "/vouchers",
            data=_voucher_form(),
            files={"image": ("promo.png", b"\x89PNG\r\n", "image/png")},
            headers=auth_headers(make_retailer()),
        )

        assert response.status_code == 201
        assert response.json()["imageUrl"].startswith("/uploads/")

    def test_create_rejects_zero_quantity(self, client, make_retailer, auth_headers):
        response = client.post("/vouchers", data=_voucher_form(quantity="0"), headers=auth_headers(make_retailer()))

        assert response.status_code == 400
        assert response.json()["code"] == "validation_error"

    def test_create_rejects_bad_date(self, client, make_retailer, auth_headers):
        response = client.post(
            "/vouchers", data=_voucher_form(expiryDate="next tuesday"), headers=auth_headers(make_retailer())
        )

        assert response.status_code == 400

    def test_rejected_create_leaves_no_image(self, client, settings, make_retailer, auth_headers):
        response = client.post(
            "/vouchers",
            data=_voucher_form(quantity="0"),
            files={"image": ("promo.png", b"\x89PNG\r\n", "image/png")},
            headers=auth_headers(make_retailer()),
        )

        assert response.status_code == 400
        assert _stored_files(settings) == []

    def test_rejected_update_leaves_no_image(self, client, settings, make_retailer, make_voucher, auth_headers):
        retailer = make_retailer()
        voucher = make_voucher(retailer)

        response = client.put(
            f"/vouchers/{voucher.id}",
            data={"pointsRequired": "-5"},
            files={"image": ("promo.png", b"\x89PNG\r\n", "image/png")},
            headers=auth_headers(retailer),
        )

        assert response.status_code == 400
        assert _stored_files(settings) == []

    def test_customer_cannot_create(self, client, make_customer, auth_headers):
        response = client.post("/vouchers", data=_voucher_form(), headers=auth_headers(make_customer()))

        assert response.status_code == 403

    def test_update_partial(self, client, make_retailer, make_voucher, auth_headers):
        retailer = make_retailer()
        voucher = make_voucher(retailer, points_required=500, quantity=3, title="Old")

        response = client.put(f"/vouchers/{voucher.id}", data={"title": "New"}, headers=auth_headers(retailer))

        assert response.status_code == 200
        assert response.json()["title"] == "New"
        assert response.json()["pointsRequired"] == 500
        assert response.json()["quantity"] == 3

    def test_update_foreign_voucher(self, client, make_retailer, make_voucher, auth_headers):
        voucher = make_voucher(make_retailer())

        response = client.put(
            f"/vouchers/{voucher.id}", data={"title": "Mine now"}, headers=auth_headers(make_retailer())
        )

        assert response.status_code == 404

    def test_delete(self, client, make_retailer, make_voucher, auth_headers):
        retailer = make_retailer()
        voucher = make_voucher(retailer)
        headers = auth_headers(retailer)

        response = client.delete(f"/vouchers/{voucher.id}", headers=headers)

        assert response.status_code == 200
        assert client.get("/vouchers/retailer", headers=headers).json() == []

    def test_stats(self, client, make_customer, make_retailer, make_voucher, auth_headers):
        retailer = make_retailer()
        customer = make_customer(points=10_000)
        five_hundred = make_voucher(retailer, points_required=500, quantity=3)
        thousand = make_voucher(retailer, points_required=1000, quantity=5)
        customer_headers = auth_headers(customer)
        for voucher_id in (five_hundred.id, five_hundred.id, five_hundred.id, thousand.id):
            client.post("/vouchers/redeem", json={"voucherId": str(voucher_id)}, headers=customer_headers)

        response = client.get("/vouchers/retailer/stats", headers=auth_headers(retailer))

        assert response.status_code == 200
        assert response.json() == {"activeVouchers": 1, "totalRedemptions": 4, "totalPointsRedeemed": 2500}

    def test_mark_redemption_used(self, client, make_customer, make_retailer, make_voucher, auth_headers):
        retailer = make_retailer()
        customer = make_customer(points=1000)
        voucher = make_voucher(retailer, expiry_date=utcnow() + timedelta(days=3))
        redeemed = client.post(
            "/vouchers/redeem", json={"voucherId": str(voucher.id)}, headers=auth_headers(customer)
        ).json()
        code = redeemed["redemption"]["redemptionCode"]

        response = client.post(f"/vouchers/redemptions/{code}/use", headers=auth_headers(retailer))

        assert response.status_code == 200
        assert response.json()["status"] == "used"

        again = client.post(f"/vouchers/redemptions/{code}/use", headers=auth_headers(retailer))
        assert again.status_code == 400
        assert again.json()["code"] == "redemption_not_active"


class TestAdminExpire:

    def test_sweep_requires_admin(self, client, make_customer, auth_headers):
        response = client.post("/admin/redemptions/expire", headers=auth_headers(make_customer()))

        assert response.status_code == 403

    def test_sweep_with_nothing_due(self, client, make_customer, make_retailer, make_voucher, auth_headers):
        customer = make_customer(points=1000)
        voucher = make_voucher(make_retailer())
        client.post("/vouchers/redeem", json={"voucherId": str(voucher.id)}, headers=auth_headers(customer))

        response = client.post("/admin/redemptions/expire", headers=auth_headers(make_customer(role="admin")))

        assert response.status_code == 200
        assert response.json() == {"expired": 0}


class TestUnexpectedErrors:

    def test_internal_error_is_generic(self, client, make_customer, make_retailer, make_voucher, auth_headers, monkeypatch):
        from fastapi.testclient import TestClient

        from loyaltytree.main import app
        from loyaltytree.routes import vouchers as vouchers_route

        def _boom(*_args, **_kwargs):
            raise RuntimeError("connection refused")

        monkeypatch.setattr(vouchers_route, "redeem_voucher", _boom)
        customer = make_customer(points=1000)
        voucher = make_voucher(make_retailer())

        response = TestClient(app, raise_server_exceptions=False).post(
            "/vouchers/redeem", json={"voucherId": str(voucher.id)}, headers=auth_headers(customer)
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error", "code": "internal_error"}
