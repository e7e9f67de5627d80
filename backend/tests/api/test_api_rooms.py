"""
房间管理 API 测试
"""
from fastapi.testclient import TestClient


class TestRoomsApi:

    def test_create_and_list(self, client: TestClient):
        response = client.post("/rooms", json={"number": "301", "type": "Casal", "rate": "220.00"})

        assert response.status_code == 200
        assert response.json()["status"] == "Disponível"

        rooms = client.get("/rooms").json()
        assert [r["number"] for r in rooms] == ["301"]

    def test_duplicate_number(self, client: TestClient, sample_room):
        response = client.post("/rooms", json={"number": "R200", "type": "Solteiro", "rate": "90"})
        assert response.status_code == 400

    def test_filter_by_status(self, client: TestClient, sample_room):
        assert len(client.get("/rooms", params={"status": "Disponível"}).json()) == 1
        assert client.get("/rooms", params={"status": "Limpeza"}).json() == []

    def test_update_ignores_status(self, client: TestClient, sample_room):
        response = client.put(f"/rooms/{sample_room.id}", json={"rate": "175", "status": "Ocupado"})

        assert response.status_code == 200
        assert float(response.json()["rate"]) == 175
        assert response.json()["status"] == "Disponível"

    def test_get_missing(self, client: TestClient):
        assert client.get("/rooms/999").status_code == 404

    def test_ready_requires_cleaning(self, client: TestClient, sample_room):
        assert client.post(f"/rooms/{sample_room.id}/ready").status_code == 400

    def test_delete(self, client: TestClient, sample_room):
        assert client.delete(f"/rooms/{sample_room.id}").status_code == 200
        assert client.delete(f"/rooms/{sample_room.id}").status_code == 404
