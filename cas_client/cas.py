# SCOOL Central Authentication Service (CAS) Client
# Copyright (c) 2021-2024  Fresno State University, SCOOL Project Team
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Central Authentication Service (CAS) client

Supports ticket validation for CAS protocol versions 1.0 (``validate``)
and 2.0 (``serviceValidate``). A typical login flow looks like:

    client = CasClient('https://cas.example.edu/cas')
    client.login_parameters = {'service': service_url}
    redirect_to(client.create_login_uri())
    ...
    client.service_validate_parameters = {'service': service_url, 'ticket': ticket}
    result = client.authenticate()
    if result.is_valid:
        login(result.identity)

Validation never raises for a failed login, the outcome is reported in
the returned ``CasResult``.

A client instance is meant for a single caller at a time. Pending
request state on the HTTP client is reset right before each request,
so concurrent callers should each use their own ``CasClient``.
"""

import logging
import urllib.parse
from collections.abc import Mapping
from typing import Self

import httpx

from . import responses, settings, transport
from .schemas import CasResult, ProtocolVersion

logger = logging.getLogger(__name__)

LOGIN = "login"
LOGOUT = "logout"
VALIDATE = "validate"
SERVICE_VALIDATE = "serviceValidate"

# See sections 2.1.1, 2.3.1, 2.4.1 and 2.5.1 of the CAS protocol
REQUIRED_PARAMETERS: dict[str, tuple[str, ...]] = {
    LOGIN: (),
    LOGOUT: (),
    VALIDATE: ("service", "ticket"),
    SERVICE_VALIDATE: ("service", "ticket"),
}

HTTP_ERRORS = (httpx.HTTPError, httpx.InvalidURL)


class CasError(Exception):
    pass


class InvalidArgumentError(CasError, ValueError):
    pass


class MissingParameterError(InvalidArgumentError):
    def __init__(self, parameter: str) -> None:
        super().__init__(f'"{parameter}" is a required parameter but was not given.')
        self.parameter = parameter


class UnsupportedVersionError(InvalidArgumentError):
    def __init__(self, version: object) -> None:
        super().__init__(f"Protocol version {version} not supported.")
        self.version = version


def ensure_required_parameters(
    required: tuple[str, ...],
    parameters: Mapping[str, str],
) -> None:
    """Raises ``MissingParameterError`` for the first absent required key.

    A key that is present with an empty value counts as given.
    """
    for name in required:
        if name not in parameters:
            raise MissingParameterError(name)


class BaseCasClient:
    """Configuration and URI building shared by the CAS clients."""

    def __init__(
        self,
        server_uri: str,
        protocol_version: ProtocolVersion | str = ProtocolVersion.CAS_2_0,
    ) -> None:
        self.server_uri = server_uri
        self.protocol_version = protocol_version
        self.login_parameters = {}
        self.logout_parameters = {}
        self.validate_parameters = {}
        self.service_validate_parameters = {}

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(server_uri={self.server_uri!r}, "
            f"protocol_version={str(self.protocol_version)!r})"
        )

    @property
    def server_uri(self) -> str:
        return self._server_uri

    @server_uri.setter
    def server_uri(self, uri: str) -> None:
        if not (server_uri := uri.rstrip("/")):
            raise InvalidArgumentError("CAS server URI must not be empty.")
        self._server_uri = server_uri

    @property
    def protocol_version(self) -> ProtocolVersion:
        return self._protocol_version

    @protocol_version.setter
    def protocol_version(self, version: ProtocolVersion | str) -> None:
        try:
            self._protocol_version = ProtocolVersion(version)
        except ValueError:
            raise UnsupportedVersionError(version) from None

    @property
    def login_parameters(self) -> dict[str, str]:
        return self._login_parameters

    @login_parameters.setter
    def login_parameters(self, parameters: Mapping[str, str]) -> None:
        self._login_parameters = dict(parameters)

    @property
    def logout_parameters(self) -> dict[str, str]:
        return self._logout_parameters

    @logout_parameters.setter
    def logout_parameters(self, parameters: Mapping[str, str]) -> None:
        self._logout_parameters = dict(parameters)

    @property
    def validate_parameters(self) -> dict[str, str]:
        return self._validate_parameters

    @validate_parameters.setter
    def validate_parameters(self, parameters: Mapping[str, str]) -> None:
        self._validate_parameters = dict(parameters)

    @property
    def service_validate_parameters(self) -> dict[str, str]:
        return self._service_validate_parameters

    @service_validate_parameters.setter
    def service_validate_parameters(self, parameters: Mapping[str, str]) -> None:
        self._service_validate_parameters = dict(parameters)

    def create_login_uri(self, parameters: Mapping[str, str] | None = None) -> str:
        if parameters is None:
            parameters = self.login_parameters
        return self._create_uri(LOGIN, parameters)

    def create_logout_uri(self, parameters: Mapping[str, str] | None = None) -> str:
        if parameters is None:
            parameters = self.logout_parameters
        return self._create_uri(LOGOUT, parameters)

    def create_validate_uri(self, parameters: Mapping[str, str] | None = None) -> str:
        if parameters is None:
            parameters = self.validate_parameters
        return self._create_uri(VALIDATE, parameters)

    def create_service_validate_uri(
        self,
        parameters: Mapping[str, str] | None = None,
    ) -> str:
        if parameters is None:
            parameters = self.service_validate_parameters
        return self._create_uri(SERVICE_VALIDATE, parameters)

    def _create_uri(self, endpoint: str, parameters: Mapping[str, str]) -> str:
        ensure_required_parameters(REQUIRED_PARAMETERS[endpoint], parameters)
        uri = f"{self.server_uri}/{endpoint}"
        if query := urllib.parse.urlencode(parameters):
            uri += f"?{query}"
        return uri

    def _prepare_request(
        self,
        http_client: httpx.Client | httpx.AsyncClient,
        uri: str,
    ) -> httpx.Request:
        # Drop any query params left on the shared client by earlier callers
        http_client.params = httpx.QueryParams()
        logger.debug("%s requesting %s", type(self).__name__, uri)
        return http_client.build_request("GET", uri)


class CasClient(BaseCasClient):
    """Blocking CAS client backed by an ``httpx.Client``.

    An injected ``http_client`` is used but never closed by this class.
    Without one, a client configured from ``settings.cas`` is created
    and closed by ``close()``.
    """

    def __init__(
        self,
        server_uri: str,
        protocol_version: ProtocolVersion | str = ProtocolVersion.CAS_2_0,
        http_client: httpx.Client | None = None,
    ) -> None:
        super().__init__(server_uri, protocol_version)
        self._owns_http_client = http_client is None
        self.http_client = http_client or transport.new_http_client()

    @classmethod
    def from_settings(
        cls,
        cas_settings: settings.CasSettings | None = None,
        http_client: httpx.Client | None = None,
    ) -> Self:
        cas_settings = cas_settings or settings.cas
        owns_http_client = http_client is None
        client = cls(
            cas_settings.server_uri,
            cas_settings.protocol_version,
            http_client or transport.new_http_client(cas_settings),
        )
        client._owns_http_client = owns_http_client
        return client

    def close(self) -> None:
        if self._owns_http_client:
            self.http_client.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def authenticate(self) -> CasResult:
        """Validates the configured ticket with the configured protocol version."""
        match self.protocol_version:
            case ProtocolVersion.CAS_1_0:
                return self.validate()
            case ProtocolVersion.CAS_2_0:
                return self.service_validate()
            case _:
                return responses.invalid_version()

    def validate(self, parameters: Mapping[str, str] | None = None) -> CasResult:
        """CAS 1.0 ticket validation using the ``validate`` endpoint."""
        try:
            uri = self.create_validate_uri(parameters)
        except MissingParameterError as exc:
            logger.warning("CAS validate not attempted: %s", exc)
            return responses.missing_parameter(exc)

        try:
            response = self._send(uri)
        except HTTP_ERRORS as exc:
            return responses.transport_failure(exc)

        return responses.parse_validate(response)

    def service_validate(self, parameters: Mapping[str, str] | None = None) -> CasResult:
        """CAS 2.0 ticket validation using the ``serviceValidate`` endpoint."""
        try:
            uri = self.create_service_validate_uri(parameters)
        except MissingParameterError as exc:
            logger.warning("CAS serviceValidate not attempted: %s", exc)
            return responses.missing_parameter(exc)

        try:
            response = self._send(uri)
        except HTTP_ERRORS as exc:
            return responses.transport_failure(exc)

        return responses.parse_service_validate(response)

    def _send(self, uri: str) -> httpx.Response:
        request = self._prepare_request(self.http_client, uri)
        return self.http_client.send(request)


class AsyncCasClient(BaseCasClient):
    """Asyncio CAS client backed by an ``httpx.AsyncClient``.

    Same results as ``CasClient``, the validation methods are awaitable.
    """

    def __init__(
        self,
        server_uri: str,
        protocol_version: ProtocolVersion | str = ProtocolVersion.CAS_2_0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(server_uri, protocol_version)
        self._owns_http_client = http_client is None
        self.http_client = http_client or transport.new_async_http_client()

    @classmethod
    def from_settings(
        cls,
        cas_settings: settings.CasSettings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> Self:
        cas_settings = cas_settings or settings.cas
        owns_http_client = http_client is None
        client = cls(
            cas_settings.server_uri,
            cas_settings.protocol_version,
            http_client or transport.new_async_http_client(cas_settings),
        )
        client._owns_http_client = owns_http_client
        return client

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self.http_client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def authenticate(self) -> CasResult:
        match self.protocol_version:
            case ProtocolVersion.CAS_1_0:
                return await self.validate()
            case ProtocolVersion.CAS_2_0:
                return await self.service_validate()
            case _:
                return responses.invalid_version()

    async def validate(self, parameters: Mapping[str, str] | None = None) -> CasResult:
        try:
            uri = self.create_validate_uri(parameters)
        except MissingParameterError as exc:
            logger.warning("CAS validate not attempted: %s", exc)
            return responses.missing_parameter(exc)

        try:
            response = await self._send(uri)
        except HTTP_ERRORS as exc:
            return responses.transport_failure(exc)

        return responses.parse_validate(response)

    async def service_validate(
        self,
        parameters: Mapping[str, str] | None = None,
    ) -> CasResult:
        try:
            uri = self.create_service_validate_uri(parameters)
        except MissingParameterError as exc:
            logger.warning("CAS serviceValidate not attempted: %s", exc)
            return responses.missing_parameter(exc)

        try:
            response = await self._send(uri)
        except HTTP_ERRORS as exc:
            return responses.transport_failure(exc)

        return responses.parse_service_validate(response)

    async def _send(self, uri: str) -> httpx.Response:
        request = self._prepare_request(self.http_client, uri)
        return await self.http_client.send(request)
