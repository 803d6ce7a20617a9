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
Main entrypoint

Command line helpers for checking a CAS server setup:

    python3 -m <main_package> login-uri --service https://app.example.edu/
    python3 -m <main_package> logout-uri
    python3 -m <main_package> validate --service https://app.example.edu/ --ticket ST-1

The server defaults to ``CAS_SERVER_URI`` and can be overridden with
``--server-uri``.
"""

import argparse
import logging
import sys
from pathlib import Path

from cas_client import cas, settings
from cas_client.schemas import ProtocolVersion

MAIN_PACKAGE = Path(__file__).parent.name

logger = logging.getLogger(f"{MAIN_PACKAGE}.main")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=f"python -m {MAIN_PACKAGE}")
    parser.add_argument(
        "--server-uri",
        default=settings.cas.server_uri,
        help="CAS server base URI (default: %(default)s)",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    login = commands.add_parser("login-uri", help="print the login URI")
    login.add_argument("--service", required=True)
    login.add_argument("--renew", action="store_true")
    login.add_argument("--gateway", action="store_true")

    logout = commands.add_parser("logout-uri", help="print the logout URI")
    logout.add_argument("--service")

    validate = commands.add_parser("validate", help="validate a service ticket")
    validate.add_argument("--service", required=True)
    validate.add_argument("--ticket", required=True)
    validate.add_argument(
        "--protocol-version",
        choices=[v.value for v in ProtocolVersion],
        default=settings.cas.protocol_version.value,
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings.configure_logging()
    settings.new_request_context()
    try:
        return run(args)
    except cas.InvalidArgumentError as exc:
        print(f"{parser.prog}: error: {exc}", file=sys.stderr)
        return 2


def run(args: argparse.Namespace) -> int:
    if args.command == "validate":
        with cas.CasClient.from_settings() as client:
            client.server_uri = args.server_uri
            client.protocol_version = args.protocol_version
            parameters = {"service": args.service, "ticket": args.ticket}
            client.validate_parameters = parameters
            client.service_validate_parameters = parameters
            result = client.authenticate()
        if result.is_valid:
            print(result.identity)
            return 0
        for message in result.messages:
            print(message, file=sys.stderr)
        return 1

    client = cas.BaseCasClient(args.server_uri)
    if args.command == "login-uri":
        parameters = {"service": args.service}
        if args.renew:
            parameters["renew"] = "true"
        if args.gateway:
            parameters["gateway"] = "true"
        print(client.create_login_uri(parameters))
    else:
        parameters = {"service": args.service} if args.service else {}
        print(client.create_logout_uri(parameters))
    return 0


if __name__ == "__main__":
    sys.exit(main())
