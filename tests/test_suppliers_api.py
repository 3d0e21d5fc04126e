"""Tests for the supplier registry endpoints."""

import pytest
from conftest import ADMIN_ID, OTHER_SUPPLIER_ORG_ID, SUPPLIER_ID, SUPPLIER_ORG_ID, make_token, seed_proposal, seed_tender


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


ADMIN = _bearer(make_token(sub=ADMIN_ID))
SUPPLIER = _bearer(make_token(sub=SUPPLIER_ID))


@pytest.fixture
def acme(procurement) -> dict:
    return procurement.seed(
        "suppliers",
        id=SUPPLIER_ORG_ID,
        name="Acme Tech SRL",
        rnc="131-00001-1",
        status="active",
        certified=True,
        certifications=["ISO 9001"],
        experience_years=8,
        support_months=12,
        contact_email="sales@acme.do",
    )


class TestSupplierRegistry:
    def test_admin_lists_and_searches(self, client, procurement, acme) -> None:
        procurement.seed("suppliers", id="sup-2", name="Beta Systems", rnc="131-00002-2", contact_email="info@beta.do")

        response = client.get("/api/suppliers", params={"search": "acme"}, headers=ADMIN)

        assert response.status_code == 200
        assert [s["id"] for s in response.json()["items"]] == [SUPPLIER_ORG_ID]

    def test_certified_filter(self, client, procurement, acme) -> None:
        procurement.seed("suppliers", id="sup-2", name="Beta Systems", certified=False)
        response = client.get("/api/suppliers", params={"certified": "false"}, headers=ADMIN)
        assert [s["id"] for s in response.json()["items"]] == ["sup-2"]

    def test_supplier_cannot_list(self, client, acme) -> None:
        assert client.get("/api/suppliers", headers=SUPPLIER).status_code == 403

    def test_supplier_reads_own_record(self, client, acme) -> None:
        response = client.get("/api/suppliers/me", headers=SUPPLIER)
        assert response.status_code == 200
        assert response.json()["name"] == "Acme Tech SRL"
        assert client.get(f"/api/suppliers/{SUPPLIER_ORG_ID}", headers=SUPPLIER).status_code == 200

    def test_supplier_cannot_read_others(self, client, procurement, acme) -> None:
        procurement.seed("suppliers", id=OTHER_SUPPLIER_ORG_ID, name="Other SRL")
        assert client.get(f"/api/suppliers/{OTHER_SUPPLIER_ORG_ID}", headers=SUPPLIER).status_code == 404

    def test_me_without_link(self, client) -> None:
        response = client.get("/api/suppliers/me", headers=ADMIN)
        assert response.status_code == 404
        assert response.json()["detail"] == "No supplier is linked to this account."


class TestSupplierWrites:
    def test_create(self, client, procurement) -> None:
        response = client.post(
            "/api/suppliers",
            json={"name": "Gamma SRL", "rnc": "131-00003-3", "contact_email": "hi@gamma.do", "experience_years": 3},
            headers=ADMIN,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "active"
        assert body["certified"] is False
        assert procurement.actions("supplier") == ["created"]

    def test_create_invalid_email(self, client) -> None:
        response = client.post("/api/suppliers", json={"name": "Gamma SRL", "contact_email": "nope"}, headers=ADMIN)
        assert response.status_code == 422

    @pytest.mark.parametrize("field, value", [("rnc", "131-00001-1"), ("contact_email", "sales@acme.do")])
    def test_create_duplicate(self, client, acme, field, value) -> None:
        body = {"name": "Copycat SRL", field: value}
        assert client.post("/api/suppliers", json=body, headers=ADMIN).status_code == 409

    def test_supplier_cannot_create(self, client) -> None:
        assert client.post("/api/suppliers", json={"name": "Mine SRL"}, headers=SUPPLIER).status_code == 403

    def test_update_keeps_own_rnc(self, client, acme) -> None:
        response = client.patch(
            f"/api/suppliers/{SUPPLIER_ORG_ID}",
            json={"rnc": "131-00001-1", "status": "suspended"},
            headers=ADMIN,
        )
        assert response.status_code == 200
        assert response.json()["status"] == "suspended"

    def test_update_rnc_taken(self, client, procurement, acme) -> None:
        other = procurement.seed("suppliers", id="sup-2", name="Beta Systems", rnc="131-00002-2")
        response = client.patch(f"/api/suppliers/{other['id']}", json={"rnc": "131-00001-1"}, headers=ADMIN)
        assert response.status_code == 409

    def test_delete_with_linked_users(self, client, acme) -> None:
        response = client.delete(f"/api/suppliers/{SUPPLIER_ORG_ID}", headers=ADMIN)
        assert response.status_code == 422
        assert response.json()["detail"] == "A supplier with linked users cannot be deleted."

    def test_delete_with_proposals(self, client, procurement) -> None:
        procurement.seed("suppliers", id="sup-9", name="Old SRL")
        seed_proposal(procurement, seed_tender(procurement)["id"], supplier_id="sup-9")
        assert client.delete("/api/suppliers/sup-9", headers=ADMIN).status_code == 422

    def test_delete(self, client, procurement) -> None:
        procurement.seed("suppliers", id="sup-9", name="Old SRL")
        assert client.delete("/api/suppliers/sup-9", headers=ADMIN).status_code == 204
        assert procurement.get("suppliers", "sup-9") is None
        assert procurement.actions("supplier") == ["deleted"]
