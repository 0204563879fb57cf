"""영화관 / 상영관 / 좌석 API 테스트."""

import uuid


def _create_cinema(client, headers, name="CGV Gangnam", location="Seoul"):
    resp = client.post("/v1/cinemas", headers=headers, json={"name": name, "location": location})
    assert resp.status_code == 201
    return resp.json()


class TestCinema:
    def test_create_cinema(self, client, admin_headers):
        data = _create_cinema(client, admin_headers)
        assert data["name"] == "CGV Gangnam"
        assert data["location"] == "Seoul"
        assert "id" in data

    def test_regular_user_forbidden(self, client, auth_headers):
        """일반 사용자는 영화관 API를 쓸 수 없다 → 403."""
        resp = client.post(
            "/v1/cinemas", headers=auth_headers, json={"name": "X", "location": "Y"}
        )
        assert resp.status_code == 403

    def test_empty_name_rejected(self, client, admin_headers):
        resp = client.post("/v1/cinemas", headers=admin_headers, json={"name": "", "location": "Y"})
        assert resp.status_code == 422

    def test_list_is_paginated_and_scoped(self, client, admin_headers, second_admin_headers):
        """본인 영화관만, 페이지 단위로 조회된다."""
        for i in range(3):
            _create_cinema(client, admin_headers, name=f"Cinema {i}")
        _create_cinema(client, second_admin_headers, name="Other")

        resp = client.get("/v1/cinemas?page=1&limit=2", headers=admin_headers)
        assert resp.status_code == 200
        data = resp.json()
        assert data["total_rows"] == 3
        assert data["total_pages"] == 2
        assert len(data["rows"]) == 2

        resp = client.get("/v1/cinemas?page=2&limit=2", headers=admin_headers)
        assert len(resp.json()["rows"]) == 1

    def test_get_not_found(self, client, admin_headers):
        resp = client.get(f"/v1/cinemas/{uuid.uuid4()}", headers=admin_headers)
        assert resp.status_code == 404
        assert resp.json()["error_code"] == "CINEMA_NOT_FOUND"

    def test_get_other_owner_forbidden(self, client, admin_headers, second_admin_headers):
        cinema = _create_cinema(client, admin_headers)
        resp = client.get(f"/v1/cinemas/{cinema['id']}", headers=second_admin_headers)
        assert resp.status_code == 403

    def test_delete_cascades_rooms(self, client, admin_headers):
        cinema = _create_cinema(client, admin_headers)
        client.post(
            f"/v1/cinemas/{cinema['id']}/rooms",
            headers=admin_headers,
            json={"name": "Room 1", "rows": 2, "columns": 3},
        )

        resp = client.delete(f"/v1/cinemas/{cinema['id']}", headers=admin_headers)
        assert resp.status_code == 200

        resp = client.get(f"/v1/cinemas/{cinema['id']}", headers=admin_headers)
        assert resp.status_code == 404


class TestRooms:
    def test_create_room_generates_seats(self, client, admin_headers):
        """rows x columns 만큼 좌석이 생성되고 (줄, 번호) 순서로 조회된다."""
        cinema = _create_cinema(client, admin_headers)
        resp = client.post(
            f"/v1/cinemas/{cinema['id']}/rooms",
            headers=admin_headers,
            json={"name": "IMAX", "rows": 2, "columns": 10},
        )
        assert resp.status_code == 201
        room = resp.json()
        assert room["seat_count"] == 20

        resp = client.get(
            f"/v1/cinemas/{cinema['id']}/rooms/{room['id']}/seats", headers=admin_headers
        )
        assert resp.status_code == 200
        identifiers = [s["seat_identifier"] for s in resp.json()]
        assert len(identifiers) == 20
        assert identifiers[:3] == ["A1", "A2", "A3"]
        assert identifiers[9] == "A10"
        assert identifiers[10] == "B1"

    def test_too_many_rows_rejected(self, client, admin_headers):
        cinema = _create_cinema(client, admin_headers)
        resp = client.post(
            f"/v1/cinemas/{cinema['id']}/rooms",
            headers=admin_headers,
            json={"name": "Huge", "rows": 27, "columns": 10},
        )
        assert resp.status_code == 422

    def test_list_rooms(self, client, admin_headers):
        cinema = _create_cinema(client, admin_headers)
        for name in ("B", "A"):
            client.post(
                f"/v1/cinemas/{cinema['id']}/rooms",
                headers=admin_headers,
                json={"name": name, "rows": 1, "columns": 1},
            )

        resp = client.get(f"/v1/cinemas/{cinema['id']}/rooms", headers=admin_headers)
        assert [r["name"] for r in resp.json()] == ["A", "B"]

    def test_seats_of_unknown_room(self, client, admin_headers):
        cinema = _create_cinema(client, admin_headers)
        resp = client.get(
            f"/v1/cinemas/{cinema['id']}/rooms/{uuid.uuid4()}/seats", headers=admin_headers
        )
        assert resp.status_code == 404
        assert resp.json()["error_code"] == "ROOM_NOT_FOUND"
