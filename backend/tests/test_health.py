"""
Tests pour l'endpoint de santé (health check) et le démarrage de l'application.
"""


def test_health_returns_ok(client):
    """GET /health retourne HTTP 200 et ok=True."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["ok"] is True


def test_health_lists_configured_origins(client):
    """Les origines CORS configurées sont exposées."""
    from ..src.config import ALLOWED_ORIGINS

    data = client.get("/health").json()
    assert isinstance(data["origins"], list)
    assert data["origins"] == ALLOWED_ORIGINS


def test_startup_initialises_quote_numbers(client):
    """Au démarrage, la séquence part de 1 sur une base vide."""
    from ..main import app

    assert app.state.quote_numbers.peek() == 1


def test_unknown_route_returns_404(client):
    response = client.get("/api/unknown")
    assert response.status_code == 404
