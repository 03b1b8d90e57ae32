from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel, ConfigDict

from apps.api.common import register_api_error_handlers
from kivilcim.platform.errors import KivilcimError


class _CodePayload(BaseModel):
    """
    Strict code payload with a second field so sorting is observable.
    """

    model_config = ConfigDict(extra="forbid")

    code: str
    attempt: int


def _client_raising(error: KivilcimError) -> TestClient:
    app = FastAPI()
    register_api_error_handlers(app=app)

    @app.get("/boom")
    def boom() -> None:
        raise error

    return TestClient(app, raise_server_exceptions=False)


@pytest.mark.parametrize(
    ("code", "expected_status"),
    [
        ("validation_error", 422),
        ("unauthorized", 401),
        ("forbidden", 403),
        ("not_found", 404),
        ("conflict", 409),
        ("something_else", 500),
    ],
)
def test_kivilcim_error_handler_maps_code_to_http_status(code: str, expected_status: int) -> None:
    """
    Verify KivilcimError codes map to fixed HTTP statuses and a nested payload.

    Args:
        code: Error code raised by the endpoint.
        expected_status: Expected HTTP status.
    Returns:
        None.
    Assumptions:
        Unknown codes are internal errors.
    Raises:
        AssertionError: If status mapping or payload shape is broken.
    Side Effects:
        None.
    """
    client = _client_raising(
        KivilcimError(code=code, message="Something happened", details={"user_id": "admin-1"})
    )

    response = client.get("/boom")

    assert response.status_code == expected_status
    assert response.json() == {
        "error": {
            "code": code,
            "message": "Something happened",
            "details": {"user_id": "admin-1"},
        }
    }


def test_request_validation_error_handler_returns_sorted_validation_errors() -> None:
    """
    Verify validation handler returns `validation_error` payload with errors sorted by path.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Pydantic `missing` errors are reported as `required`.
    Raises:
        AssertionError: If response payload differs from deterministic contract.
    Side Effects:
        None.
    """
    app = FastAPI()
    register_api_error_handlers(app=app)

    @app.post("/2fa/verify")
    def verify(payload: _CodePayload) -> dict[str, str]:
        return {"code": payload.code}

    response = TestClient(app).post("/2fa/verify", json={"otp": "123456"})

    assert response.status_code == 422
    assert response.json() == {
        "error": {
            "code": "validation_error",
            "message": "Validation failed",
            "details": {
                "errors": [
                    {
                        "path": "body.attempt",
                        "code": "required",
                        "message": "Field required",
                    },
                    {
                        "path": "body.code",
                        "code": "required",
                        "message": "Field required",
                    },
                    {
                        "path": "body.otp",
                        "code": "extra_forbidden",
                        "message": "Extra inputs are not permitted",
                    },
                ]
            },
        }
    }


def test_kivilcim_error_rejects_blank_fields() -> None:
    with pytest.raises(ValueError):
        KivilcimError(code=" ", message="x")
    with pytest.raises(ValueError):
        KivilcimError(code="conflict", message="")
