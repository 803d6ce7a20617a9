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
CAS server responses

Turns the responses of the ``validate`` (CAS 1.0) and ``serviceValidate``
(CAS 2.0) endpoints into a ``CasResult``. Both the blocking and the
asyncio clients share these functions so they report identical results.
"""

import logging
import xml.etree.ElementTree as ET

import httpx

from .schemas import CasResult, ResultCode

logger = logging.getLogger(__name__)

CAS_NS = {"cas": "http://www.yale.edu/tp/cas"}

HTTP_NOT_SUCCESS = "HTTP response did not indicate success."
INVALID_CAS_1_0 = "Got an invalid CAS 1.0 response."
AUTHENTICATION_FAILED = "Authentication failed."
SUCCESS_NOT_FOUND = "authenticationSuccess was not found in the server response."
USER_NOT_FOUND = "user was not found in the server response."
INVALID_VERSION = "Invalid version or no version set."


def missing_parameter(exc: Exception) -> CasResult:
    return CasResult.failure([str(exc)], code=ResultCode.FAILURE)


def invalid_version() -> CasResult:
    return CasResult.failure([INVALID_VERSION])


def transport_failure(exc: Exception) -> CasResult:
    """Returns a result for a request that never got a response."""
    message = str(exc) or type(exc).__name__
    logger.warning("CAS request failed: %s", message)
    return CasResult.failure([message])


def _unsuccessful(response: httpx.Response) -> CasResult | None:
    if response.is_success:
        return None
    logger.warning("CAS server returned HTTP %s", response.status_code)
    return CasResult.failure([HTTP_NOT_SUCCESS], raw_body=response.text)


def parse_validate(response: httpx.Response) -> CasResult:
    """Interprets a CAS 1.0 ``validate`` response.

    The body is two lines, ``yes`` and the user name, on success or
    ``no`` on failure.
    """
    if (result := _unsuccessful(response)) is not None:
        return result

    body = response.text
    logger.debug("CAS 1.0 response:\n%s", body)
    lines = body.split("\n")
    if len(lines) < 2:  # noqa: PLR2004
        return CasResult.failure([INVALID_CAS_1_0], raw_body=body)

    status, identity = lines[0], lines[1]
    if status != "yes":
        logger.info("CAS 1.0 authentication failed")
        return CasResult.failure([AUTHENTICATION_FAILED], raw_body=body)
    if not identity:
        return CasResult.failure([INVALID_CAS_1_0], raw_body=body)

    # \r\n line endings leave a trailing \r on the identity, kept as sent
    return CasResult.success(identity, raw_body=body)


def parse_service_validate(response: httpx.Response) -> CasResult:
    """Interprets a CAS 2.0 ``serviceValidate`` response.

    Example success response::

        <cas:serviceResponse xmlns:cas="http://www.yale.edu/tp/cas">
            <cas:authenticationSuccess>
                <cas:user>username</cas:user>
                <cas:proxyGrantingTicket>PGTIOU-84678-8a9d</cas:proxyGrantingTicket>
            </cas:authenticationSuccess>
        </cas:serviceResponse>

    Each ``authenticationFailure`` element becomes one message of the
    form ``CODE: text``. A body that is not well-formed XML yields a single
    message, ``ElementTree`` stops at the first error.
    """
    if (result := _unsuccessful(response)) is not None:
        return result

    body = response.text
    logger.debug("CAS 2.0 response:\n%s", body)
    try:
        root = ET.fromstring(response.content)  # noqa: S314
    # unknown or multi-byte encodings in the XML declaration raise
    # LookupError and ValueError rather than ParseError
    except (ET.ParseError, LookupError, ValueError) as exc:
        logger.warning("Invalid CAS 2.0 XML response: %s", exc)
        return CasResult.failure([str(exc)], raw_body=body)

    if failures := root.findall("cas:authenticationFailure", CAS_NS):
        messages = [
            f"{failure.attrib.get('code', '').strip()}: {(failure.text or '').strip()}"
            for failure in failures
        ]
        logger.info("CAS 2.0 authentication failed: %s", messages)
        return CasResult.failure(messages, raw_body=body)

    success = root.find("cas:authenticationSuccess", CAS_NS)
    if success is None:
        return CasResult.failure([SUCCESS_NOT_FOUND], raw_body=body)

    if (pgt := success.find("cas:proxyGrantingTicket", CAS_NS)) is not None:
        logger.debug("Ignoring proxyGrantingTicket %s", (pgt.text or "").strip())

    user = success.find("cas:user", CAS_NS)
    identity = (user.text or "").strip() if user is not None else ""
    if not identity:
        return CasResult.failure([USER_NOT_FOUND], raw_body=body)

    return CasResult.success(identity, raw_body=body)

