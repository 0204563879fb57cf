"""커스텀 에러 응답 형식 검증 테스트.

모든 에러가 {"error_code": "...", "message": "..."} 형식인지 확인한다.
"""

import uuid

from conftest import RATING_AL, register_payload


def test_error_has_error_code_and_message(client):
    """에러 응답에 error_code + message 필드가 존재한다."""
    # 존재하지 않는 이메일로 로그인 → 401
    resp = client.post(
        "/v1/users/sign-in",
        data={"username": "nobody@test.com", "password": "x"},
    )
    data = resp.json()
    assert "error_code" in data, f"error_code 필드 없음: {data}"
    assert "message" in data, f"message 필드 없음: {data}"
    assert isinstance(data["error_code"], str)
    assert isinstance(data["message"], str)


def test_duplicate_email_error_format(client):
    """409 응답이 커스텀 형식을 따른다."""
    payload = register_payload("fmt@test.com")
    client.post("/v1/users", json=payload)

    resp = client.post("/v1/users", json=payload)
    assert resp.status_code == 409
    data = resp.json()
    assert data["error_code"] == "DUPLICATE_EMAIL"
    assert len(data["message"]) > 0


def test_invalid_token_error_format(client):
    """잘못된 토큰 → 401 + INVALID_TOKEN 형식."""
    resp = client.get(
        "/v1/users/me",
        headers={"Authorization": "Bearer invalid.token.here"},
    )
    assert resp.status_code == 401
    data = resp.json()
    assert data["error_code"] == "INVALID_TOKEN"
    assert "message" in data


def test_forbidden_error_format(client, auth_headers):
    """권한 부족 → 403 + FORBIDDEN 형식."""
    resp = client.get("/v1/cinemas", headers=auth_headers)
    assert resp.status_code == 403
    assert resp.json()["error_code"] == "FORBIDDEN"


def test_unknown_rating_error_format(client, admin_headers):
    """없는 관람 등급 → 400 + INDICATIVE_RATING_NOT_FOUND 형식."""
    resp = client.post(
        "/v1/movies",
        headers=admin_headers,
        data={"title": "X", "duration": "90", "indicative_rating_id": str(uuid.uuid4())},
    )
    assert resp.status_code == 400
    data = resp.json()
    assert data["error_code"] == "INDICATIVE_RATING_NOT_FOUND"
    assert "message" in data


def test_queue_unavailable_error_format(client, admin_headers, session, redis_client):
    """큐에 닿지 않으면 이미지 삭제 요청이 503 + QUEUE_UNAVAILABLE."""
    from model.movie import MovieImage

    movie = client.post(
        "/v1/movies",
        headers=admin_headers,
        data={"title": "X", "duration": "90", "indicative_rating_id": RATING_AL},
    ).json()
    image = MovieImage(movie_id=uuid.UUID(movie["id"]), image_url="https://img/x", external_id="ext-1")
    session.add(image)
    session.commit()

    def _fail(*args, **kwargs):
        import redis

        raise redis.ConnectionError("redis is down")

    redis_client.rpush = _fail
    resp = client.delete(f"/v1/movies/{movie['id']}/images/{image.id}", headers=admin_headers)
    assert resp.status_code == 503
    assert resp.json()["error_code"] == "QUEUE_UNAVAILABLE"


def test_validation_error_format(client):
    """요청 형식 오류도 같은 형식 (422 INVALID_PAYLOAD + 필드별 details)."""
    resp = client.post("/v1/users", json={"email": "x@test.com"})
    assert resp.status_code == 422
    data = resp.json()
    assert data["error_code"] == "INVALID_PAYLOAD"
    fields = {d["field"] for d in data["details"]}
    assert "password" in fields
    assert "first_name" in fields
