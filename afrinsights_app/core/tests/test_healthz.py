import pytest


@pytest.mark.django_db
def test_healthz_is_public(client):
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.content == b"ok"
