"""
Tests for ServiceResult and BaseService in core/services.py.
"""

import logging

from core.services import BaseService, ServiceResult


class TestServiceResult:
    """Tests for the ServiceResult wrapper."""

    def test_success_is_truthy_and_carries_data(self):
        result = ServiceResult.success({"id": 1})

        assert bool(result) is True
        assert result.data == {"id": 1}
        assert result.to_response() == {"success": True, "data": {"id": 1}}

    def test_failure_response_includes_code_and_field_errors(self):
        result = ServiceResult.failure(
            "Validation failed",
            error_code="VALIDATION_ERROR",
            errors={"subject": ["This field may not be blank."]},
        )

        assert bool(result) is False
        assert result.to_response() == {
            "error": "Validation failed",
            "error_code": "VALIDATION_ERROR",
            "errors": {"subject": ["This field may not be blank."]},
        }

    def test_map_transforms_success_only(self):
        assert ServiceResult.success(2).map(lambda n: n * 10).data == 20

        failure = ServiceResult.failure("nope", error_code="NOT_FOUND")
        assert failure.map(lambda n: n * 10) is failure


class TestBaseService:
    """Tests for BaseService helpers."""

    def test_logger_named_after_service(self):
        class ExampleService(BaseService):
            pass

        logger = ExampleService.get_logger()

        assert isinstance(logger, logging.Logger)
        assert logger.name.endswith(".ExampleService")

    def test_validate_required_flags_blank_none_and_empty(self):
        result = BaseService.validate_required(subject="  ", session=None, ids=[], ok="x")

        assert result.error_code == "VALIDATION_ERROR"
        assert set(result.errors) == {"subject", "session", "ids"}

    def test_validate_required_passes(self):
        assert BaseService.validate_required(subject="Algebra", ids=[1]) is None
