"""
客人管理 API 测试
"""
from datetime import date, timedelta

from fastapi.testclient import TestClient

from hotel_admin.models.ontology import GuestStatus


class TestGuestsApi:

    def test_create(self, client: TestClient):
        response = client.post("/guests", json={
            "name": "Ana Souza", "email": "ana@example.com", "cpf": "111.222.333-44"
        })

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "Sem estadia"
        assert data["nationality"] == "Brasil"

    def test_search(self, client: TestClient, sample_guest):
        assert len(client.get("/guests", params={"search": "maria"}).json()) == 1
        assert client.get("/guests", params={"search": "zzz"}).json() == []

    def test_status_not_editable(self, client: TestClient, sample_guest):
        response = client.put(f"/guests/{sample_guest.id}",
                              json={"phone": "11911112222", "status": "Hospedado"})

        assert response.status_code == 200
        assert response.json()["phone"] == "11911112222"
        assert response.json()["status"] == "Sem estadia"

    def test_get_missing(self, client: TestClient):
        assert client.get("/guests/999").status_code == 404

    def test_booking_history(self, client: TestClient, sample_guest, sample_room):
        client.post("/bookings", json={
            "guest_id": sample_guest.id, "room_id": sample_room.id,
            "check_in": date.today().isoformat(),
            "check_out": (date.today() + timedelta(days=1)).isoformat(),
        })

        history = client.get(f"/guests/{sample_guest.id}/bookings").json()
        assert len(history) == 1
        assert history[0]["room_number"] == "R200"

    def test_delete_with_bookings(self, client: TestClient, sample_guest, sample_room):
        client.post("/bookings", json={
            "guest_id": sample_guest.id, "room_id": sample_room.id,
            "check_in": date.today().isoformat(),
            "check_out": (date.today() + timedelta(days=1)).isoformat(),
        })
        assert client.delete(f"/guests/{sample_guest.id}").status_code == 400

    def test_sync(self, client: TestClient, sample_guest, db_session):
        sample_guest.status = GuestStatus.CHECKED_IN
        db_session.commit()

        response = client.post(f"/guests/{sample_guest.id}/sync")

        assert response.status_code == 200
        assert response.json() == {"guest_id": sample_guest.id, "status": "Sem estadia"}

    def test_sync_missing(self, client: TestClient):
        assert client.post("/guests/999/sync").status_code == 404
