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
CAS client schemas
"""

import enum
from collections.abc import Iterable
from typing import Self

from pydantic import BaseModel, model_validator


class ProtocolVersion(str, enum.Enum):
    CAS_1_0 = "1.0"
    CAS_2_0 = "2.0"

    def __str__(self) -> str:
        return self.value


class ResultCode(enum.IntEnum):
    """Outcome of an authentication attempt.

    Values follow the usual authentication result codes where anything
    greater than zero is a success.
    """

    SUCCESS = 1
    FAILURE = 0
    FAILURE_UNCATEGORIZED = -4


class CasResult(BaseModel):
    """Result of a single ticket validation.

    ``raw_body`` holds the response body returned by the CAS server, or
    ``None`` if no response was received.
    """

    model_config = {"frozen": True}

    code: ResultCode
    identity: str = ""
    messages: tuple[str, ...] = ()
    raw_body: str | None = None

    @model_validator(mode="after")
    def _verify_identity(self) -> Self:
        if self.code == ResultCode.SUCCESS and not self.identity:
            raise ValueError("A successful result requires an identity")
        if self.code != ResultCode.SUCCESS and self.identity:
            raise ValueError("Only a successful result may carry an identity")
        return self

    @property
    def is_valid(self) -> bool:
        """Returns True if the result represents a successful authentication."""
        return self.code > 0

    @classmethod
    def success(cls, identity: str, raw_body: str | None = None) -> Self:
        return cls(code=ResultCode.SUCCESS, identity=identity, raw_body=raw_body)

    @classmethod
    def failure(
        cls,
        messages: Iterable[str],
        raw_body: str | None = None,
        code: ResultCode = ResultCode.FAILURE_UNCATEGORIZED,
    ) -> Self:
        return cls(code=code, messages=tuple(messages), raw_body=raw_body)
