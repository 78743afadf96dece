"""
Error kinds raised by plan mutations.

Computation components (catalog, warnings, bottlenecks, timeline) do not
raise for missing data; only structurally invalid mutations are rejected.
"""


class PlanError(Exception):
    """A rejected plan mutation. The plan is left unchanged."""

    status = 400

    def __init__(self, error_code: str, message: str, status: int | None = None):
        super().__init__(message)
        self.error_code = error_code
        self.message = message
        if status is not None:
            self.status = status

    def to_dict(self) -> dict:
        return {"error_code": self.error_code, "message": self.message}


class NotFound(PlanError):
    status = 404


class VersionConflict(PlanError):
    """A write was based on a stale read of the plan."""

    status = 409

    def __init__(self, plan_id: str, expected: int, actual: int):
        super().__init__(
            "VERSION_CONFLICT",
            f"Plan {plan_id} was modified by another request "
            f"(expected revision {expected}, found {actual}). Reload and retry.",
        )
        self.plan_id = plan_id
        self.expected = expected
        self.actual = actual
