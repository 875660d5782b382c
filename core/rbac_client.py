# core/rbac_client.py

"""
HTTP client for the RBAC API.

Used by the role administration workflow and the permission gate. Each
call is one independent request; API refusals come back as the same
RBACError subclasses the server raised, transport problems as
NetworkFailure.
"""

from typing import Iterable, List, Optional, Tuple

import requests
from pydantic import ValidationError

from core.config import settings
from core.errors import NetworkFailure, ValidationFailed, error_from_response
from core.logging_config import logger
from core.role_service import clean_role_name
from core.utils import unique_ids
from models.rbac import PermissionNode, Role, UserRecord


class RBACClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        session=None,
        timeout: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.RBAC_API_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.RBAC_API_TIMEOUT
        self.session = session if session is not None else requests.Session()
        self.token = token

    def _headers(self) -> dict:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(self, method: str, path: str, payload: Optional[dict] = None) -> dict:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method,
                url,
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"{method} {path} failed: {e}")
            raise NetworkFailure(f"{method} {path} failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code >= 400:
            error = error_from_response(response.status_code, body)
            logger.warning(f"{method} {path} → HTTP {response.status_code}: {error.detail}")
            raise error

        return body if isinstance(body, dict) else {}

    @staticmethod
    def _parse(model, items, what: str) -> list:
        """Validate list payloads at the boundary; malformed entries are dropped with a warning."""
        parsed = []
        for item in items or []:
            try:
                parsed.append(model.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Ignoring malformed {what}: {e.errors()[0]['msg']}")
        return parsed

    # ============================================================
    # Catalog
    # ============================================================
    def list_permissions(self) -> List[PermissionNode]:
        body = self._request("GET", "/permissions")
        return self._parse(PermissionNode, body.get("permissions"), "permission")

    # ============================================================
    # Roles
    # ============================================================
    def list_roles(self) -> List[Role]:
        body = self._request("GET", "/roles")
        return self._parse(Role, body.get("roles"), "role")

    def create_role(self, name: str, description: Optional[str] = None, permission_ids: Iterable[str] = ()) -> Role:
        # Rejected locally so an empty name never reaches the network
        name = clean_role_name(name)
        body = self._request(
            "POST",
            "/roles",
            {"name": name, "description": description, "permission_ids": unique_ids(permission_ids)},
        )
        return self._role_from(body)

    def update_role(self, role_id: str, name: Optional[str] = None, description: Optional[str] = None) -> Role:
        payload = {}
        if name is not None:
            payload["name"] = clean_role_name(name)
        if description is not None:
            payload["description"] = description
        body = self._request("PATCH", f"/roles/{role_id}", payload)
        return self._role_from(body)

    def set_role_permissions(self, role_id: str, permission_ids: Iterable[str]):
        self._request(
            "PUT",
            f"/roles/{role_id}/permissions",
            {"permission_ids": unique_ids(permission_ids)},
        )

    def get_role_permissions(self, role_id: str) -> List[PermissionNode]:
        body = self._request("GET", f"/roles/{role_id}/permissions")
        return self._parse(PermissionNode, body.get("permissions"), "permission")

    def delete_role(self, role_id: str):
        self._request("DELETE", f"/roles/{role_id}")

    def _role_from(self, body: dict) -> Role:
        try:
            return Role.model_validate(body.get("role"))
        except ValidationError as e:
            raise ValidationFailed(f"Malformed role in response: {e.errors()[0]['msg']}") from e

    # ============================================================
    # Users
    # ============================================================
    def list_users(self) -> List[UserRecord]:
        body = self._request("GET", "/users")
        return self._parse(UserRecord, body.get("users"), "user")

    def assign_user_role(self, user_id: str, role_id: Optional[str]) -> UserRecord:
        body = self._request("PATCH", f"/users/{user_id}/role", {"role_id": role_id})
        return UserRecord.model_validate(body.get("user"))

    def my_permissions(self) -> Tuple[str, frozenset]:
        """(user id, effective permission codes) of the token holder."""
        body = self._request("GET", "/users/me/permissions")
        user_id = body.get("user_id")
        if not user_id:
            raise ValidationFailed("Permission response carries no user id")
        codes = body.get("permissions") or []
        return str(user_id), frozenset(c for c in codes if isinstance(c, str))
