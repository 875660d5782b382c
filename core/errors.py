# core/errors.py

from typing import Optional


# ============================================================
# RBAC error taxonomy
# ============================================================
class RBACError(Exception):
    """
    Base class for every refusal the RBAC core can raise.

    Each subclass carries the HTTP status the API answers with and a
    stable machine-readable code. The client maps the code back to the
    same class, so callers handle one set of exceptions on both sides.
    """

    status_code = 500
    code = "rbac_error"
    default_detail = "RBAC operation failed"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    def to_dict(self) -> dict:
        return {"detail": self.detail, "code": self.code}


class ValidationFailed(RBACError):
    status_code = 422
    code = "validation_failed"
    default_detail = "Validation failed"


class NotFound(RBACError):
    status_code = 404
    code = "not_found"
    default_detail = "Resource not found"


class SystemRoleProtected(RBACError):
    status_code = 403
    code = "system_role_protected"
    default_detail = "System roles cannot be deleted"


class SystemRoleNameLocked(SystemRoleProtected):
    code = "system_role_name_locked"
    default_detail = "System role names cannot be changed"


class PermissionDenied(RBACError):
    status_code = 403
    code = "permission_denied"
    default_detail = "Permission denied"


class RoleNameConflict(RBACError):
    status_code = 409
    code = "role_name_conflict"
    default_detail = "Role name already exists"


class RoleInUse(RBACError):
    status_code = 409
    code = "role_in_use"
    default_detail = "Cannot delete role assigned to users"


class NetworkFailure(RBACError):
    status_code = 502
    code = "network_failure"
    default_detail = "RBAC API unreachable"


ERRORS_BY_CODE = {
    cls.code: cls
    for cls in (
        ValidationFailed,
        NotFound,
        SystemRoleProtected,
        SystemRoleNameLocked,
        PermissionDenied,
        RoleNameConflict,
        RoleInUse,
        NetworkFailure,
    )
}


def error_from_response(status_code: int, payload: dict) -> RBACError:
    """
    Rebuild an RBACError from an API error body.
    Falls back on the HTTP status when the body carries no known code.
    """
    detail = payload.get("detail") if isinstance(payload, dict) else None
    if not isinstance(detail, str):
        detail = str(detail) if detail else None

    code = payload.get("code") if isinstance(payload, dict) else None
    if code in ERRORS_BY_CODE:
        return ERRORS_BY_CODE[code](detail)

    if status_code in (400, 422):
        return ValidationFailed(detail)
    if status_code in (401, 403):
        return PermissionDenied(detail)
    if status_code == 404:
        return NotFound(detail)
    if status_code == 409:
        return RoleNameConflict(detail)

    error = RBACError(detail or f"RBAC API returned HTTP {status_code}")
    error.status_code = status_code
    return error


# ============================================================
# Supabase error helpers
# ============================================================
def extract_supabase_error(error: Exception) -> str:
    """
    Safely extract readable details from Supabase Python client errors.
    Handles:
      • PostgREST errors
      • GoTrue (Auth) errors
      • Generic Python exceptions
    """

    # Case 1: PostgREST / GoTrue errors expose .message
    message = getattr(error, "message", None)
    if message:
        return str(message)

    # Case 2: errors with args (common)
    if error.args:
        return str(error.args[0])

    return str(error) or "Unknown Supabase error"


def handle_supabase_error(error: Exception, operation: str = "Database operation") -> RBACError:
    """
    Translate a Supabase error into the RBAC taxonomy.
    Returns the error (doesn't raise) so the caller can re-raise with `from`.
    """
    from core.logging_config import logger

    error_detail = extract_supabase_error(error)
    logger.error(f"{operation}: {error_detail}")

    error_lower = error_detail.lower()
    if "duplicate" in error_lower or "unique" in error_lower or "23505" in error_lower:
        return RoleNameConflict(f"{operation}: Record already exists")
    if "foreign key" in error_lower or "23503" in error_lower:
        return ValidationFailed(f"{operation}: Invalid reference")
    if "not found" in error_lower or "does not exist" in error_lower:
        return NotFound(f"{operation}: Resource not found")

    return RBACError(f"{operation} failed")
