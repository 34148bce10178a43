# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
stof-dist command line

Usage:
    stof-dist add @acme/base
    stof-dist publish ./my-package -u alice -p secret
    stof-dist run ./script.json --on https://runner.example.com
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

import httpx

from .admin import AdminClient
from .archiver import PackageArchiver
from .core.config import Config, load_config
from .core.errors import StofDistError
from .core.logging import configure_logging, log_event
from .installer import DependencyInstaller
from .models import (
    Credentials,
    DEFAULT_PERMISSIONS,
    InstallReport,
    OperationStatus,
    Permission,
    PublishReport,
)
from .publisher import Publisher
from .remote import RemoteRunner

logger = logging.getLogger(__name__)


def _permissions(value: str) -> int:
    try:
        mask = int(value)
        Permission.decompose(mask)
    except ValueError:
        raise argparse.ArgumentTypeError(f"permissions must be an integer from 0 to 15, got {value!r}")
    return mask


def _add_credentials(parser: argparse.ArgumentParser):
    parser.add_argument("-u", "--username", help="Basic-Auth username")
    parser.add_argument("-p", "--password", help="Basic-Auth password")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stof-dist",
        description="Package distribution client: add, publish and run packages"
    )
    parser.add_argument("--config", help="Path to config YAML (default: ~/.stof/config.yaml)")
    parser.add_argument("--log-level", help="Override log level (DEBUG, INFO, WARNING, ERROR)")

    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Run a file or package directory on a remote runner")
    run.add_argument("path", nargs="?", default=".", help="File or package directory")
    run.add_argument("--on", dest="address", required=True, help="Remote runner address")
    _add_credentials(run)

    for name, help_text in (
        ("publish", "Publish a package to the registries in its manifest"),
        ("unpublish", "Delete a package from the registries in its manifest"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("dir", nargs="?", default=".", help="Package directory")
        cmd.add_argument("-r", "--registry", help="Only use this registry from the publish list")
        _add_credentials(cmd)

    add = sub.add_parser("add", help="Install a package and its dependencies")
    add.add_argument("package", help="Package name, e.g. @acme/base")
    add.add_argument("dir", nargs="?", default=".", help="Workspace directory")
    add.add_argument("-r", "--registry", help="Registry name declared in the workspace manifest")
    _add_credentials(add)

    remove = sub.add_parser("remove", help="Remove an installed package")
    remove.add_argument("package", help="Package name")
    remove.add_argument("dir", nargs="?", default=".", help="Workspace directory")

    pkg = sub.add_parser("pkg", help="Write a package file for a directory")
    pkg.add_argument("dir", help="Package directory")
    pkg.add_argument("out", nargs="?", help="Output path (default: <dir>.pkg)")

    set_user = sub.add_parser("set-remote-user", help="Create or update a user on a remote runner")
    set_user.add_argument("server")
    set_user.add_argument("admin_user")
    set_user.add_argument("admin_pass")
    set_user.add_argument("username")
    set_user.add_argument("password")
    set_user.add_argument(
        "-p", "--perms",
        type=_permissions,
        default=int(DEFAULT_PERMISSIONS),
        help="Permission mask: read=1 write=2 delete=4 exec=8 (default 9)"
    )
    set_user.add_argument("-s", "--scope", default="", help="Registry path prefix the user may modify")

    delete_user = sub.add_parser("delete-remote-user", help="Delete a user on a remote runner")
    delete_user.add_argument("server")
    delete_user.add_argument("admin_user")
    delete_user.add_argument("admin_pass")
    delete_user.add_argument("username")

    return parser


def _print_install(report: InstallReport):
    for record in report.installed:
        prefix = "... added dependency" if record.dependency else "added"
        print(f"{prefix} {record.package}")
    for failure in report.failures:
        print(f"failed {failure.package}: {failure.message}")


def _print_publish(report: PublishReport):
    if report.message:
        print(f"{report.operation} error: {report.message}")
    for result in report.results:
        outcome = result.error or result.text
        print(f"{result.url or result.registry} ... {outcome}")


async def dispatch(
    args: argparse.Namespace,
    config: Config,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> OperationStatus:
    """
    Execute a parsed command.

    Returns:
        Overall status of the command
    """
    credentials = Credentials.from_optional(
        getattr(args, "username", None),
        getattr(args, "password", None)
    )

    if args.command == "run":
        runner = RemoteRunner(config, transport=transport)
        result = await runner.run(args.address, Path(args.path), credentials)
        if result.message:
            print(f"remote exec error: {result.message}")
        return result.status

    if args.command in ("publish", "unpublish"):
        publisher = Publisher(config, transport=transport)
        operation = publisher.publish if args.command == "publish" else publisher.unpublish
        report = await operation(Path(args.dir), credentials, args.registry)
        _print_publish(report)
        return report.status

    if args.command == "add":
        installer = DependencyInstaller(config, transport=transport)
        report = await installer.install(Path(args.dir), args.package, args.registry, credentials)
        _print_install(report)
        return report.status

    if args.command == "remove":
        installer = DependencyInstaller(config, transport=transport)
        removed = await installer.remove(Path(args.dir), args.package)
        if removed:
            print(f"removed {args.package}")
            return OperationStatus.COMPLETED
        print(f"{args.package} is not installed")
        return OperationStatus.FAILED

    if args.command == "pkg":
        archiver = PackageArchiver(config)
        out = Path(args.out) if args.out else None
        try:
            path = await asyncio.to_thread(archiver.create_package_file, Path(args.dir), out)
        except StofDistError as e:
            logger.error(f"package file error: {e.message}")
            print(f"package file error: {e.message}")
            return OperationStatus.FAILED
        print(path)
        return OperationStatus.COMPLETED

    admin = AdminClient(config, transport=transport)
    admin_credentials = Credentials(username=args.admin_user, password=args.admin_pass)
    if args.command == "set-remote-user":
        result = await admin.set_user(
            args.server,
            admin_credentials,
            args.username,
            args.password,
            permissions=args.perms,
            scope=args.scope
        )
    else:
        result = await admin.delete_user(args.server, admin_credentials, args.username)
    if result.message:
        print(f"admin error: {result.message}")
    return result.status


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)
    cli_logger = configure_logging(config, args.log_level)

    status = asyncio.run(dispatch(args, config))
    log_event(cli_logger, "command finished", level="DEBUG", command=args.command, status=status.value)
    return 0 if status == OperationStatus.COMPLETED else 1


if __name__ == "__main__":
    sys.exit(main())
