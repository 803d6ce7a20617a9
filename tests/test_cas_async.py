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

import unittest
from unittest.mock import AsyncMock, patch

import httpx

from cas_client import cas, settings
from cas_client.schemas import ProtocolVersion, ResultCode
from tests import RecordingHandler, load_text_file


class AsyncCasClientTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.handler = RecordingHandler()
        self.http_client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        self.client = cas.AsyncCasClient("http://localhost/", http_client=self.http_client)
        self.client.service_validate_parameters = {"service": "foo", "ticket": "bar"}
        self.client.validate_parameters = {"service": "foo", "ticket": "bar"}

    async def asyncTearDown(self) -> None:
        await self.http_client.aclose()

    async def test_service_validate_success(self) -> None:
        self.handler.text = load_text_file("cas/service_validate_success.xml")
        rv = await self.client.service_validate()
        self.assertTrue(rv.is_valid)
        self.assertEqual("username", rv.identity)
        self.assertEqual(
            "http://localhost/serviceValidate?service=foo&ticket=bar",
            str(self.handler.requests[0].url),
        )

    async def test_service_validate_failure(self) -> None:
        self.handler.text = load_text_file("cas/service_validate_invalid_ticket.xml")
        rv = await self.client.service_validate()
        self.assertFalse(rv.is_valid)
        self.assertEqual(ResultCode.FAILURE_UNCATEGORIZED, rv.code)
        self.assertIn("INVALID_TICKET", rv.messages[0])
        self.assertIn("not recognized", rv.messages[0])

    async def test_validate_success(self) -> None:
        self.client.protocol_version = ProtocolVersion.CAS_1_0
        self.handler.text = "yes\nidentity\n"
        rv = await self.client.authenticate()
        self.assertEqual("identity", rv.identity)
        self.assertEqual("/validate", self.handler.requests[0].url.path)

    async def test_validate_no(self) -> None:
        self.handler.text = "no\n"
        rv = await self.client.validate()
        self.assertFalse(rv.is_valid)
        self.assertEqual("", rv.identity)

    async def test_http_failure_status(self) -> None:
        self.handler.status_code = 503
        self.handler.text = "unavailable"
        for rv in (await self.client.validate(), await self.client.service_validate()):
            self.assertFalse(rv.is_valid)
            self.assertEqual(("HTTP response did not indicate success.",), rv.messages)
            self.assertEqual("unavailable", rv.raw_body)

    async def test_unknown_xml_encoding(self) -> None:
        self.handler.text = "<?xml version=\"1.0\" encoding=\"bogus\"?><a/>"
        rv = await self.client.service_validate()
        self.assertFalse(rv.is_valid)
        self.assertEqual(ResultCode.FAILURE_UNCATEGORIZED, rv.code)
        self.assertEqual(self.handler.text, rv.raw_body)

    async def test_transport_failure(self) -> None:
        self.handler.exc = httpx.ConnectError
        rv = await self.client.service_validate()
        self.assertFalse(rv.is_valid)
        self.assertIsNone(rv.raw_body)

    async def test_missing_parameter_makes_no_request(self) -> None:
        rv = await self.client.validate({"service": "foo"})
        self.assertEqual(ResultCode.FAILURE, rv.code)
        self.assertEqual([], self.handler.requests)

    async def test_authenticate_uses_service_validate(self) -> None:
        with patch.object(
            cas.AsyncCasClient, "service_validate", new_callable=AsyncMock
        ) as service_validate_mock:
            await self.client.authenticate()
        service_validate_mock.assert_awaited_once_with()


class AsyncCasClientSettingsTestCase(unittest.IsolatedAsyncioTestCase):
    async def test_from_settings(self) -> None:
        cas_settings = settings.CasSettings(
            server_uri="https://cas.fresnostate.edu/cas/",
            protocol_version="1.0",
        )
        async with cas.AsyncCasClient.from_settings(cas_settings) as client:
            http_client = client.http_client
            self.assertEqual("https://cas.fresnostate.edu/cas", client.server_uri)
            self.assertEqual(ProtocolVersion.CAS_1_0, client.protocol_version)
        self.assertTrue(http_client.is_closed)
