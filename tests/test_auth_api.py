from cleanova.core import security
from cleanova.crud import crud_user

PASSWORD = "cleanova123"


def login(client, email, password=PASSWORD):
    return client.post("/api/v1/auth/token", data={"username": email, "password": password})


def test_login_subscriber_gets_token(client, subscriber):
    response = login(client, subscriber.email)

    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["access_token"]


def test_login_wrong_password(client, subscriber):
    response = login(client, subscriber.email, "incorrecta")
    assert response.status_code == 401


def test_login_unknown_email(client, db):
    assert login(client, "nadie@cleanova.id").status_code == 401


def test_login_without_subscription_points_to_subscribe_info(client, db):
    crud_user.create_user(db, email="budi@cleanova.id", password=PASSWORD)

    response = login(client, "budi@cleanova.id")

    assert response.status_code == 403
    detail = response.json()["detail"]
    assert detail["subscribe_info"] == "/api/v1/subscribe-info"


def test_me_returns_current_user(client, subscriber, auth_headers):
    response = client.get("/api/v1/auth/me", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["email"] == subscriber.email
    assert response.json()["is_subscribed"] is True


def test_invalid_token_rejected(client, db):
    response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_subscriber_gate_blocks_unsubscribed_token(client, db):
    user = crud_user.create_user(db, email="citra@cleanova.id", password=PASSWORD)
    token = security.create_access_token(subject=user.email)

    response = client.get("/api/v1/categories", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 403
    assert response.json()["detail"]["message"] == "Subscription required"


def test_content_requires_authentication(client, db):
    assert client.get("/api/v1/categories").status_code == 401
    assert client.get("/api/v1/progress").status_code == 401


def test_subscribe_info_is_public(client):
    response = client.get("/api/v1/subscribe-info")
    assert response.status_code == 200
    assert response.json()["home"] == "/"


def test_health_reports_storage_misconfigured(client, db):
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    body = response.json()
    assert body["services"]["database"]["status"] == "healthy"
    assert body["services"]["storage"]["status"] == "misconfigured"
    assert body["status"] == "degraded"


def test_request_id_header(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.headers["X-Request-ID"].startswith("req_")


def test_metrics_exposed(client):
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "cleanova_uptime_seconds" in response.text
