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
CAS Client Settings and Configuration

Configuration settings that are read in from the Environment.
"""

import contextvars
import dataclasses
import logging
from pathlib import Path
from typing import Any

import pydantic_settings
import shortuuid
from pydantic import field_validator

from .schemas import ProtocolVersion

BASE_PATH = Path(__file__).parent.parent

LOG_FORMAT = "%(asctime)s[%(levelname)s][%(request_id)s]%(name)s: %(message)s"


@dataclasses.dataclass(frozen=True)
class RequestContext:
    """Context information to pass from callers to the CAS client logs."""

    request_id: str


CTX_REQUEST: contextvars.ContextVar[RequestContext] = contextvars.ContextVar(
    "RequestContext",
    default=RequestContext(request_id=shortuuid.uuid()),  # noqa: B039
)


def new_request_context() -> contextvars.Token[RequestContext]:
    """Starts a new request context with a fresh ``request_id``."""
    return CTX_REQUEST.set(RequestContext(request_id=shortuuid.uuid()))


class SharedSettings(pydantic_settings.BaseSettings):
    model_config = {"env_file": BASE_PATH / ".env", "frozen": True}


class LogSettings(SharedSettings, env_prefix="LOG_"):
    level_root: str = "WARNING"
    level_app: str = "INFO"
    level_httpx: str = "WARNING"


class CasSettings(SharedSettings, env_prefix="CAS_"):
    """CAS server settings.

    The attributes are populated from OS environment variables that are
    prefixed by ``CAS_``.
    """

    server_uri: str = "https://localhost/cas"
    protocol_version: ProtocolVersion = ProtocolVersion.CAS_2_0
    verify_tls: bool = True
    timeout: float = 5.0
    user_agent: str = "scool-cas-client"

    @field_validator("server_uri")
    def _verify_server_uri(cls, v: str) -> str:
        """Raises a ``ValueError`` if the server URI is blank."""
        if not v.strip().rstrip("/"):
            raise ValueError("CAS server URI must not be empty")
        return v


cas = CasSettings()
log = LogSettings()

_old_log_factory = logging.getLogRecordFactory()


def _new_log_factory(*args: Any, **kwargs: Any) -> logging.LogRecord:
    record = _old_log_factory(*args, **kwargs)
    record.request_id = CTX_REQUEST.get().request_id
    return record


def configure_logging(log_settings: LogSettings | None = None) -> None:
    """Sets up console logging for command line use.

    Importing the package leaves logging alone, applications embedding
    the client keep their own configuration.
    """
    log_settings = log_settings or log
    logging.setLogRecordFactory(_new_log_factory)
    logging.basicConfig(format=LOG_FORMAT, level=log_settings.level_root)
    logging.getLogger("httpx").setLevel(log_settings.level_httpx)
    logging.getLogger(__package__).setLevel(log_settings.level_app)
