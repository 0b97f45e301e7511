"""HTTP client for the VCS registry that stores package payloads."""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass
from typing import IO, TYPE_CHECKING, Any
from urllib.parse import quote

import requests

from gopx import __version__
from gopx.exceptions import VCSConnectionError, VCSResponseError

if TYPE_CHECKING:
    from gopx.config import Config

logger = logging.getLogger(__name__)

_USER_AGENT = f"GoPx API Service/{__version__}"
_REQUEST_TIMEOUT = 30


class PackageType(enum.IntEnum):
    """Visibility of a package in the VCS registry."""

    PUBLIC = 0
    PRIVATE = 1


@dataclass(frozen=True)
class PackageOwner:
    name: str
    public_email: str
    username: str


@dataclass(frozen=True)
class PackageMeta:
    """Package metadata the VCS registry needs to file a payload."""

    name: str
    version: str
    owner: PackageOwner
    type: PackageType = PackageType.PUBLIC

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": int(self.type),
            "name": self.name,
            "version": self.version,
            "owner": {
                "name": self.owner.name,
                "publicEmail": self.owner.public_email,
                "username": self.owner.username,
            },
        }


def decode_error_message(resp: requests.Response) -> str:
    """Extract the ``message`` of an error response, or its raw text."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text.strip() or resp.reason or "no response body"
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return json.dumps(body)


class VCSClient:
    """Client for the VCS registry service.

    Every request carries an ``Authorization: AuthKey <key>`` header.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 8080,
        auth_key: str | None = None,
        timeout: float = _REQUEST_TIMEOUT,
    ) -> None:
        self.base_url = f"http://{host}:{port}"
        self.timeout = timeout
        self._session = requests.Session()
        self._session.headers.update({"User-Agent": _USER_AGENT})
        if auth_key:
            self._session.headers["Authorization"] = f"AuthKey {auth_key}"

    @classmethod
    def from_config(cls, config: Config) -> VCSClient:
        return cls(
            host=config.vcs_host,
            port=config.vcs_port,
            auth_key=config.vcs_auth_key,
            timeout=config.vcs_timeout,
        )

    def _request(
        self, method: str, path: str, expected_status: int, **kwargs: Any
    ) -> requests.Response:
        """Send a request and check its status.

        Raises:
            VCSConnectionError: If the registry cannot be reached.
            VCSResponseError: If it answers with another status.
        """
        url = f"{self.base_url}{path}"
        try:
            resp = self._session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise VCSConnectionError(f"{method} {url} failed: {e}") from e

        if resp.status_code != expected_status:
            message = decode_error_message(resp)
            logger.warning("%s %s answered %d: %s", method, url, resp.status_code, message)
            raise VCSResponseError(resp.status_code, message)
        return resp

    def register_package(self, meta: PackageMeta, data: IO[bytes] | bytes) -> None:
        """Upload a package payload (a ``.tar.gz``) with its metadata.

        Raises:
            VCSConnectionError: If the registry cannot be reached.
            VCSResponseError: If the registry does not answer 201 Created.
        """
        files = {
            "meta": (None, json.dumps(meta.to_dict()), "application/json"),
            "data": (f"{meta.name}.tar.gz", data, "application/gzip"),
        }
        self._request("POST", "/v1/packages", 201, files=files)
        logger.info("Registered %s@%s with the VCS registry", meta.name, meta.version)

    def delete_package(self, name: str) -> None:
        """Remove a package's payloads.

        Raises:
            VCSConnectionError: If the registry cannot be reached.
            VCSResponseError: If the registry does not answer 204 No Content.
        """
        self._request("DELETE", f"/v1/packages/{quote(name, safe='')}", 204)
        logger.info("Deleted %s from the VCS registry", name)
