"""Integration tests for the authentication endpoints."""


def _register(client, email="jane@example.com", password="password123"):
    return client.post("/auth/register", json={"name": "Jane", "email": email, "password": password})


class TestRegisterEndpoint:
    def test_register(self, client):
        response = _register(client)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["token_type"] == "Bearer"
        assert data["token"]
        assert data["user"]["email"] == "jane@example.com"
        assert "password_hash" not in data["user"]

    def test_duplicate_email(self, client):
        _register(client)
        response = _register(client)

        assert response.status_code == 422
        assert "email" in response.json()["errors"]

    def test_short_password(self, client):
        response = _register(client, password="short")
        assert response.status_code == 422
        assert "password" in response.json()["errors"]

    def test_invalid_email(self, client):
        response = _register(client, email="not-an-email")
        assert response.status_code == 422


class TestLoginEndpoint:
    def test_login(self, client):
        _register(client)

        response = client.post("/auth/login", json={"email": "jane@example.com", "password": "password123"})

        assert response.status_code == 200
        assert response.json()["message"] == "Login successful"

    def test_invalid_credentials(self, client):
        _register(client)

        response = client.post("/auth/login", json={"email": "jane@example.com", "password": "wrong-password"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"
        assert response.headers["WWW-Authenticate"] == "Bearer"


class TestSession:
    def test_me(self, client, customer, auth):
        _, token = customer

        response = client.get("/auth/me", headers=auth(token))

        assert response.status_code == 200
        assert response.json()["data"]["email"] == "jane@example.com"

    def test_me_without_token(self, client):
        response = client.get("/auth/me")

        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_me_with_bad_token(self, client, auth):
        assert client.get("/auth/me", headers=auth("garbage")).status_code == 401

    def test_logout_revokes_token(self, client, customer, auth):
        _, token = customer

        assert client.post("/auth/logout", headers=auth(token)).status_code == 200
        assert client.get("/auth/me", headers=auth(token)).status_code == 401


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "ok"

    def test_unknown_route_uses_error_envelope(self, client):
        response = client.get("/nope")

        assert response.status_code == 404
        assert response.json()["success"] is False
