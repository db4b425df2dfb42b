from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.core.geo import Coordinate, compute_bounding_square
from api.errors import register_exception_handlers


def _app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/square")
    def square(side: float):
        return {"degenerate": compute_bounding_square(Coordinate(51.5, -0.12), side).degenerate}

    @app.get("/broken")
    def broken():
        raise ValueError("internal invariant violated")

    return app


def test_invalid_input_maps_to_400():
    client = TestClient(_app())

    response = client.get("/square", params={"side": -5})

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "invalid_request"
    assert "side_meters" in body["message"]


def test_internal_value_error_is_not_a_client_error():
    client = TestClient(_app(), raise_server_exceptions=False)

    response = client.get("/broken")

    assert response.status_code == 500
    assert "internal invariant violated" not in response.text
