import logging
import os
import unittest
from unittest.mock import patch

import pydantic

from cas_client import settings
from cas_client.schemas import ProtocolVersion


class SettingsTestCase(unittest.TestCase):
    def test_defaults(self):
        s = settings.CasSettings(_env_file=None)
        self.assertEqual(ProtocolVersion.CAS_2_0, s.protocol_version)
        self.assertTrue(s.verify_tls)

    def test_env(self):
        env = {
            "CAS_SERVER_URI": "https://cas.fresnostate.edu/cas",
            "CAS_PROTOCOL_VERSION": "1.0",
            "CAS_VERIFY_TLS": "false",
        }
        with patch.dict(os.environ, env):
            s = settings.CasSettings(_env_file=None)
        self.assertEqual("https://cas.fresnostate.edu/cas", s.server_uri)
        self.assertEqual(ProtocolVersion.CAS_1_0, s.protocol_version)
        self.assertFalse(s.verify_tls)

    def test_invalid_protocol_version(self):
        with self.assertRaises(ValueError):
            settings.CasSettings(protocol_version="3.0")

    def test_blank_server_uri(self):
        with self.assertRaises(ValueError):
            settings.CasSettings(server_uri="///")

    def test_frozen(self):
        s = settings.CasSettings()
        with self.assertRaises(pydantic.ValidationError):
            s.timeout = 1.0


class RequestContextTestCase(unittest.TestCase):
    def test_log_records_carry_request_id(self):
        old_factory = logging.getLogRecordFactory()
        token = settings.new_request_context()
        try:
            with patch("logging.basicConfig"):
                settings.configure_logging()
            record = logging.getLogRecordFactory()(
                "cas_client", logging.INFO, __file__, 1, "msg", None, None
            )
            self.assertEqual(settings.CTX_REQUEST.get().request_id, record.request_id)
        finally:
            settings.CTX_REQUEST.reset(token)
            logging.setLogRecordFactory(old_factory)

    def test_new_request_context_changes_id(self):
        before = settings.CTX_REQUEST.get().request_id
        token = settings.new_request_context()
        try:
            self.assertNotEqual(before, settings.CTX_REQUEST.get().request_id)
        finally:
            settings.CTX_REQUEST.reset(token)
