import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from formapi.models.form import Form, FormField, Response, ResponseEntry

logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(self, status_code: int, message: str, error: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.error = error


@dataclass
class UserSession:
    """The signed-in user, handed explicitly to whatever acts on their behalf."""

    user_id: int
    name: str
    email: str
    access_token: str
    token_type: str = "bearer"

    @property
    def authorization(self) -> str:
        return f"Bearer {self.access_token}"


class FormApiClient:
    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
        user_session: Optional[UserSession] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.http = session or requests.Session()
        self.timeout = timeout
        self.user_session = user_session

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        headers = kwargs.pop("headers", {})
        if self.user_session is not None:
            headers["Authorization"] = self.user_session.authorization
        url = f"{self.base_url}{path}"
        try:
            resp = self.http.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"{method} {url} failed: {e}")
            raise ApiError(0, str(e)) from e

        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not resp.ok:
            message = body.get("message") or resp.reason or "Request failed"
            logger.debug(f"{method} {url} -> {resp.status_code} {message}")
            raise ApiError(resp.status_code, message, body.get("error"))
        return body

    def signup(self, name: str, email: str, password: str) -> Dict[str, Any]:
        body = self._request(
            "POST", "/user/signup", json={"name": name, "email": email, "password": password}
        )
        return body["data"]

    def login(self, email: str, password: str) -> UserSession:
        body = self._request(
            "POST", "/user/login", json={"userData": {"email": email, "password": password}}
        )
        data = body["data"]
        self.user_session = UserSession(
            user_id=data["_id"],
            name=data["name"],
            email=data["email"],
            access_token=body["access_token"],
            token_type=body.get("token_type", "bearer"),
        )
        return self.user_session

    def logout(self) -> None:
        self.user_session = None

    def add_form(self, creator_id: int, title: str, fields: List[FormField]) -> Form:
        payload = {
            "creatorId": creator_id,
            "title": title,
            "fields": [f.model_dump(mode="json") for f in fields],
        }
        body = self._request("POST", "/user/add_form", json=payload)
        return Form.model_validate(body["data"])

    def get_forms(self, creator_id: int) -> List[Form]:
        body = self._request("GET", f"/user/get_forms/{creator_id}")
        return [Form.model_validate(f) for f in body["data"]]

    def get_form(self, form_id: int, creator_id: int) -> Form:
        body = self._request("GET", f"/user/getA_form/{form_id}/{creator_id}")
        return Form.model_validate(body["data"])

    def get_public_form(self, form_id: int) -> Form:
        body = self._request("GET", f"/user/form/{form_id}")
        return Form.model_validate(body["data"])

    def delete_form(self, form_id: int, creator_id: int) -> None:
        self._request("DELETE", f"/user/delete_form/{form_id}/{creator_id}")

    def add_response(self, form_id: int, entries: List[ResponseEntry]) -> Dict[str, Any]:
        payload = {"formId": form_id, "responses": [e.model_dump() for e in entries]}
        body = self._request("POST", "/user/add_response", json=payload)
        return body["data"]

    def get_responses(self, form_id: int) -> List[Response]:
        body = self._request("GET", "/user/get_responses", params={"formId": form_id})
        return [Response.model_validate(r) for r in body["data"]]

    def upload(self, filename: str, data: bytes, content_type: str, on_progress=None) -> str:
        # requests sends the multipart body in one go, so only start and end are observable
        if on_progress:
            on_progress(0)
        body = self._request(
            "POST", "/user/upload", files={"file": (filename, data, content_type)}
        )
        if on_progress:
            on_progress(100)
        return body["data"]["url"]
