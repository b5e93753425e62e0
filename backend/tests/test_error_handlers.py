"""Tests for mapping application and database errors to HTTP responses."""

import asyncio

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import OperationalError

from exceptions import (
    ConfigurationError,
    ConflictError,
    DatabaseError,
    NotFoundError,
    PermissionDeniedError,
    UploadError,
    ValidationError,
)
from utils.error_handlers import handle_api_errors, status_for, to_http_exception


def locked_database():
    return OperationalError("UPDATE requirements", {}, Exception("database is locked"))


class TestStatusFor:

    @pytest.mark.parametrize("error,status", [
        (ValidationError("bad"), 400),
        (PermissionDeniedError(), 403),
        (NotFoundError("Quote", "q1"), 404),
        (ConflictError("taken"), 409),
        (UploadError("plan.png", "too big", too_large=True), 413),
        (UploadError("plan.exe", "wrong type"), 400),
        (ConfigurationError("no secret"), 500),
        (DatabaseError("select_quote", "Could not save"), 500),
    ])
    def test_error_status(self, error, status):
        assert status_for(error) == status


class TestToHttpException:

    def test_client_error_keeps_its_message(self):
        http_error = to_http_exception("Create company", ConflictError("You already have a company"))

        assert http_error.status_code == 409
        assert http_error.detail == "You already have a company"

    def test_database_error_names_the_failure(self):
        http_error = to_http_exception("Select quote", DatabaseError("select_quote", "Could not save"))

        assert http_error.status_code == 500
        assert http_error.detail == "Database operation failed: Could not save"

    def test_raw_sqlalchemy_error_becomes_database_error(self):
        http_error = to_http_exception("Select quote", locked_database())

        assert http_error.status_code == 500
        assert http_error.detail == "Database operation failed: OperationalError"

    def test_unexpected_error_is_generic(self):
        http_error = to_http_exception("Select quote", RuntimeError("boom"))

        assert http_error.status_code == 500
        assert "boom" not in http_error.detail


class TestHandleApiErrors:

    def test_sync_route(self):
        @handle_api_errors("Cancel requirement")
        def route():
            raise locked_database()

        with pytest.raises(HTTPException) as excinfo:
            route()

        assert excinfo.value.status_code == 500

    def test_async_route(self):
        @handle_api_errors("Submit quote")
        async def route():
            raise NotFoundError("Requirement", "r1")

        with pytest.raises(HTTPException) as excinfo:
            asyncio.run(route())

        assert excinfo.value.status_code == 404

    def test_http_exception_passes_through(self):
        @handle_api_errors("Health")
        def route():
            raise HTTPException(status_code=418, detail="teapot")

        with pytest.raises(HTTPException) as excinfo:
            route()

        assert excinfo.value.status_code == 418
