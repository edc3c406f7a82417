######################################################################
# Copyright 2016, 2024 John J. Rofrano. All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
######################################################################

"""
Specials API Client

Thin wrapper around `httpx` for the remote specials REST API. Every call is a
single request; nothing is retried. Failures are raised as `ApiError`
subclasses so callers can turn them into display state.
"""

import logging
from typing import Any, Iterable, List, Optional

import httpx

from service.common import status
from service.models import DataValidationError, Special, StagedFile

logger = logging.getLogger("flask.app")


######################################################################
# Errors
######################################################################
class ApiError(Exception):
    """Base class for failures talking to the specials API

    `message` is the generic transport message; `server_message` is the
    `message` field of the response body when the API sent one.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Any = None,
        server_message: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload
        self.server_message = server_message

    @property
    def display_message(self) -> str:
        """Server-provided message if present, else the transport message"""
        return self.server_message or self.message


class TransportError(ApiError):
    """No response was received (connection refused, timeout, DNS...)"""


class ApiResponseError(ApiError):
    """The API answered with a non-2xx status"""


class ApiValidationError(ApiResponseError):
    """The API rejected the input with per-field errors (422)"""

    def __init__(self, message: str, errors: dict, payload: Any = None, server_message: Optional[str] = None):
        super().__init__(
            message,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            payload,
            server_message,
        )
        self.errors = errors

    def flat_messages(self) -> List[str]:
        """All field messages, field by field, in the order received"""
        messages = []
        for value in self.errors.values():
            if isinstance(value, (list, tuple)):
                messages.extend(str(item) for item in value)
            else:
                messages.append(str(value))
        return messages


######################################################################
# Client
######################################################################
class SpecialsClient:
    """Client for the `/api/especiales` and `/api/fotos` endpoints"""

    def __init__(self, base_url: str = "", timeout: float = 10.0, transport=None):
        self.base_url = ""
        self._http: Optional[httpx.Client] = None
        if base_url:
            self.configure(base_url, timeout, transport)

    def init_app(self, app, transport=None):
        """Configure the client from the Flask app config"""
        self.configure(
            app.config["ESPECIALES_API_URL"],
            app.config.get("HTTP_TIMEOUT_SECONDS", 10.0),
            transport,
        )
        app.extensions["especiales_api"] = self
        app.add_template_global(self.photo_url, "photo_url")

    def configure(self, base_url: str, timeout: float = 10.0, transport=None):
        """(Re)build the underlying httpx client"""
        if self._http is not None:
            self._http.close()
        self.base_url = base_url.rstrip("/")
        self._http = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            headers={"Accept": "application/json"},
            transport=transport,
        )

    def close(self):
        """Release pooled connections"""
        if self._http is not None:
            self._http.close()
            self._http = None

    ##################################################
    # Specials
    ##################################################

    def list_specials(self) -> List[Special]:
        """Returns all Specials

        The API answers either with a bare array or with a `{"data": [...]}`
        envelope; both are normalized to a list.
        """
        logger.info("Requesting list of Specials")
        body = self._request("GET", "/api/especiales")
        if isinstance(body, dict):
            body = body.get("data") or []
        if not isinstance(body, list):
            raise ApiResponseError("Unexpected response shape for specials list", status.HTTP_200_OK, body)
        return [self._to_special(item) for item in body]

    def get_special(self, special_id) -> Special:
        """Returns the Special with the given id"""
        logger.info("Requesting Special with id [%s]", special_id)
        body = self._request("GET", f"/api/especiales/{special_id}")
        return self._to_special(body)

    def create_special(self, fields: dict, files: Iterable[StagedFile] = ()) -> Optional[Special]:
        """Creates a Special with a single multipart POST"""
        logger.info("Creating Special %s", fields.get("nombre"))
        body = self._request("POST", "/api/especiales", files=self._multipart(fields, files))
        return self._maybe_special(body)

    def update_special(self, special_id, fields: dict, files: Iterable[StagedFile] = ()) -> Optional[Special]:
        """Updates a Special with a single multipart PUT"""
        logger.info("Updating Special with id [%s]", special_id)
        body = self._request(
            "PUT", f"/api/especiales/{special_id}", files=self._multipart(fields, files)
        )
        return self._maybe_special(body)

    def delete_special(self, special_id) -> None:
        """Deletes a Special"""
        logger.info("Deleting Special with id [%s]", special_id)
        self._request("DELETE", f"/api/especiales/{special_id}")

    ##################################################
    # Photos
    ##################################################

    def delete_photo(self, foto_id) -> None:
        """Deletes a single stored Photo"""
        logger.info("Deleting Photo with id [%s]", foto_id)
        self._request("DELETE", f"/api/fotos/{foto_id}")

    def photo_url(self, foto_path: str) -> str:
        """Displayable URL of a stored photo"""
        return f"{self.base_url}/storage/{foto_path.lstrip('/')}"

    ##################################################
    # Helpers
    ##################################################

    @staticmethod
    def _multipart(fields: dict, files: Iterable[StagedFile]) -> list:
        """Scalar fields plus `fotos[i]` parts, in staging order

        Scalar fields go in as parts without a filename so the request stays
        multipart even when no file is staged.
        """
        parts = [(name, (None, str(value))) for name, value in fields.items()]
        for index, staged in enumerate(files):
            parts.append(
                (f"fotos[{index}]", (staged.filename, staged.content, staged.content_type))
            )
        return parts

    @staticmethod
    def _to_special(data) -> Special:
        try:
            return Special().deserialize(data)
        except DataValidationError as error:
            logger.error("Malformed special in API response: %s", data)
            raise ApiResponseError(str(error), status.HTTP_200_OK, data) from error

    @staticmethod
    def _maybe_special(body) -> Optional[Special]:
        """The saved Special, or None when a 2xx write body is not one

        Any 2xx answer to a write means it was stored, whatever the body.
        """
        if isinstance(body, dict) and "data" in body and isinstance(body["data"], dict):
            body = body["data"]
        if not body:
            return None
        try:
            return Special().deserialize(body)
        except DataValidationError:
            logger.warning("Write succeeded but the body is not a special: %s", body)
            return None

    def _request(self, method: str, path: str, **kwargs) -> Any:
        if self._http is None:
            raise TransportError("Specials API client is not configured")
        try:
            response = self._http.request(method, path, **kwargs)
        except httpx.RequestError as error:
            logger.error("No response from %s %s: %s", method, path, error)
            raise TransportError(str(error) or "Network Error") from error

        payload = _decode(response)
        if status.is_success(response.status_code):
            return payload

        generic = f"Request failed with status code {response.status_code}"
        server_message = None
        if isinstance(payload, dict) and payload.get("message"):
            server_message = str(payload["message"])
        logger.warning("%s %s answered %s: %s", method, path, response.status_code, payload)

        if (
            response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
            and isinstance(payload, dict)
            and isinstance(payload.get("errors"), dict)
        ):
            raise ApiValidationError(generic, payload["errors"], payload, server_message)
        raise ApiResponseError(generic, response.status_code, payload, server_message)


def _decode(response: httpx.Response) -> Any:
    """JSON body if there is one, else the raw text (or None when empty)"""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


# Shared instance, configured by `init_app` like the Flask extensions
api = SpecialsClient()
