"""
Lookup lists and app config.
"""


class TestLookups:

    def test_admin_adds_and_everyone_reads(self, client, admin_headers, sale1_headers):
        for category, value in [("bank", "Vietcombank"), ("bank", "ACB"), ("pos", "POS 01"), ("cardType", "Visa")]:
            response = client.post(
                "/api/settings", json={"category": category, "value": value}, headers=admin_headers
            )
            assert response.status_code == 201

        grouped = client.get("/api/settings", headers=sale1_headers).json()
        assert grouped == {
            "agencies": [],
            "banks": ["ACB", "Vietcombank"],
            "card_types": ["Visa"],
            "pos_machines": ["POS 01"],
        }

    def test_duplicate_value(self, client, admin_headers):
        client.post("/api/settings", json={"category": "agency", "value": "Đại lý A"}, headers=admin_headers)
        response = client.post(
            "/api/settings", json={"category": "agency", "value": "Đại lý A"}, headers=admin_headers
        )
        assert response.status_code == 400

    def test_non_admin_cannot_write(self, client, manager_headers):
        response = client.post(
            "/api/settings", json={"category": "bank", "value": "ACB"}, headers=manager_headers
        )
        assert response.status_code == 403

    def test_delete(self, client, admin_headers):
        created = client.post(
            "/api/settings", json={"category": "bank", "value": "ACB"}, headers=admin_headers
        ).json()
        assert client.delete(f"/api/settings/{created['id']}", headers=admin_headers).status_code == 200
        assert client.delete(f"/api/settings/{created['id']}", headers=admin_headers).status_code == 404


class TestAppConfig:

    def test_defaults_are_public(self, client, db_session):
        config = client.get("/api/settings/config").json()
        assert config["login_title"] == "OZIFIN"
        assert config["sidebar_slogan"] == "Transaction System"

    def test_admin_update(self, client, admin_headers, sale1_headers):
        response = client.put(
            "/api/settings/config", json={"values": {"login_title": "OZI"}}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["login_title"] == "OZI"

        config = client.get("/api/settings/config", params={"keys": ["login_title"]}).json()
        assert config == {"login_title": "OZI"}

        denied = client.put(
            "/api/settings/config", json={"values": {"login_title": "X"}}, headers=sale1_headers
        )
        assert denied.status_code == 403

    def test_items_include_defaults(self, client, admin_headers):
        items = client.get("/api/settings/config/items", headers=admin_headers).json()
        assert [i["key"] for i in items] == ["login_slogan", "login_title", "sidebar_slogan", "sidebar_title"]
