from __future__ import annotations

from unittest import mock

import pytest
from rest_framework.exceptions import ValidationError

from core.domain import exception_handler
from core.domain.exception_handler import domain_exception_handler
from core.domain.exceptions import (
    ConfigurationError,
    Conflict,
    DomainError,
    InvalidTransition,
    NotFound,
    StorageConflict,
)


class TestDomainExceptionHandler:

    @pytest.mark.parametrize("exc,expected", [
        (NotFound("Case AW1 does not exist."), 404),
        (Conflict("Case AW1 already exists."), 409),
        (InvalidTransition(current="pending", target="approved", reason="advisor first"), 409),
        (StorageConflict(case_id="AW1", attempts=3), 409),
        (DomainError("Business rule violated."), 400),
    ])
    def test_domain_errors_map_to_status(self, exc, expected):
        response = domain_exception_handler(exc, {"view": None})
        assert response.status_code == expected
        assert response.data == {"detail": str(exc)}

    def test_drf_errors_use_the_default_handler(self):
        response = domain_exception_handler(ValidationError({"case_type": ["Required."]}), {})
        assert response.status_code == 400
        assert "case_type" in response.data

    def test_configuration_errors_propagate(self):
        assert domain_exception_handler(ConfigurationError("bad stage"), {}) is None

    def test_messages_name_the_case(self):
        assert "AW1" in str(StorageConflict(case_id="AW1", attempts=3))
        assert "from 'pending' to 'approved'" in str(
            InvalidTransition(current="pending", target="approved")
        )

    def test_rejection_is_logged_with_the_view(self):
        class ReviewCaseViewSet:
            pass

        with mock.patch.object(exception_handler.logger, "warning") as warning:
            domain_exception_handler(NotFound("Case AW1 does not exist."), {"view": ReviewCaseViewSet()})

        args = warning.call_args.args
        assert args[1:4] == ("ReviewCaseViewSet", 404, "NotFound")

    def test_missing_view_is_logged_as_unknown(self):
        with mock.patch.object(exception_handler.logger, "warning") as warning:
            domain_exception_handler(Conflict("Case AW1 already exists."), {})

        assert warning.call_args.args[1] == "unknown view"
