"""Integration tests for guarded page routes."""

from collections.abc import Callable

import pytest
from fastapi.testclient import TestClient


class TestGuestPages:
    """Tests for pages only guests may stay on."""

    @pytest.mark.parametrize("path", ["/", "/login", "/register"])
    def test_anonymous_visitor_stays(self, client: TestClient, path: str) -> None:
        response = client.get(path)

        assert response.status_code == 200
        assert response.json()["authenticated"] is False

    @pytest.mark.parametrize("path", ["/", "/login", "/register"])
    def test_signed_in_user_is_sent_to_landing_page(
        self, client: TestClient, auth_headers: dict[str, str], path: str
    ) -> None:
        response = client.get(path, headers=auth_headers)

        assert response.status_code == 303
        assert response.headers["location"] == "/home"


class TestLandingPage:
    """Tests for the authenticated landing page."""

    def test_anonymous_visitor_is_sent_to_login(self, client: TestClient) -> None:
        response = client.get("/home")

        assert response.status_code == 303
        assert response.headers["location"] == "/login"

    def test_expired_session_counts_as_signed_out(
        self, client: TestClient, make_token: Callable[..., str]
    ) -> None:
        client.cookies.set("yourverse_session", make_token(exp_offset=-60))
        response = client.get("/home")

        assert response.status_code == 303
        assert response.headers["location"] == "/login"

    def test_session_cookie_is_enough(self, client: TestClient, make_token: Callable[..., str]) -> None:
        client.cookies.set("yourverse_session", make_token())
        response = client.get("/home")

        assert response.status_code == 200
        data = response.json()
        assert data["page"] == "home"
        assert data["welcome"] == "Welcome, Test User!"


class TestDashboard:
    """Tests for the results page."""

    def test_open_to_everyone(self, client: TestClient, auth_headers: dict[str, str]) -> None:
        assert client.get("/dashboard").status_code == 200
        assert client.get("/dashboard", headers=auth_headers).status_code == 200
