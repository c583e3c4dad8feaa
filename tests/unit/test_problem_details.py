"""Tests for rendering lifecycle errors as Problem Details."""

from provisioner.core.errors import (
    PartialDeploymentError,
    ProvisioningFailure,
    ValidationError,
    problem_from_exception,
)


class TestProblemFromException:
    """Tests for problem_from_exception."""

    def test_stage_failure_carries_stage(self):
        exc = ProvisioningFailure(
            stage="routing",
            stage_index=3,
            stage_count=4,
            cause="timeout",
            applied_stages=["resources", "identity"],
        )

        problem = problem_from_exception(exc, instance="/api/v1/tenants")

        assert problem["status"] == 502
        assert problem["error_code"] == "provisioning_failure"
        assert problem["detail"] == "stage 3/4 (routing) failed: timeout"
        assert problem["stage"] == "routing"
        assert problem["applied_stages"] == ["resources", "identity"]
        assert problem["type"].endswith("/errors/provisioning_failure")

    def test_validation_errors_become_field_errors(self):
        exc = ValidationError(
            "Invalid onboarding request",
            errors=[{"field": "ADMIN_EMAIL", "message": "not an email"}],
        )

        problem = problem_from_exception(exc)

        assert problem["errors"] == [{"field": "ADMIN_EMAIL", "message": "not an email"}]
        assert "instance" not in problem

    def test_details_do_not_shadow_standard_members(self):
        exc = PartialDeploymentError(["OrderService"], details={"status": "Active"})

        problem = problem_from_exception(exc)

        assert problem["status"] == 207
        assert problem["failed_services"] == ["OrderService"]
