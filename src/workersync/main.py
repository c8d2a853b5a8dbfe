import argparse
import getpass
import sys
import textwrap
from typing import Optional

import importlib_resources

import workersync
import workersync.secrets.manage
from workersync._output import Output, TerminalBackend
from workersync.log import setup_logging
from workersync.secrets.credentials import (
    ENV_ADD_SECRET_VALUE,
    ENV_SECRETS_PASSWORD,
    Credentials,
)


def main(
    args: Optional[list] = None,
    stdin=None,
    stdout=None,
    environ=None,
    prompt=getpass.getpass,
    backend=None,
) -> int:
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    version = (
        importlib_resources.files("workersync")
        .joinpath("version.txt")
        .read_text()
        .strip()
    )
    parser = argparse.ArgumentParser(
        prog="workersync",
        description=(
            "workersync v{}: keep a worker and its encrypted secrets in sync"
            " with the remote service"
        ).format(version),
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.set_defaults(func=parser.print_usage)

    parser.add_argument(
        "-d", "--debug", action="store_true", help="Enable debug mode."
    )
    parser.add_argument(
        "-C",
        "--directory",
        default=None,
        help="Project directory holding manifest.json "
        "(default: current directory).",
    )

    subparsers = parser.add_subparsers()

    # SECRETS
    secrets = subparsers.add_parser(
        "secrets",
        help=textwrap.dedent(
            f"""
            Manage the encrypted secrets of the worker manifest. The password
            is read from ${ENV_SECRETS_PASSWORD} or prompted for."""
        ),
    )
    secrets.set_defaults(func=secrets.print_usage)

    sp = secrets.add_subparsers()

    p = sp.add_parser(
        "add",
        help=textwrap.dedent(
            f"""
            Encrypt a secret and add it to the manifest. The value is read
            from ${ENV_ADD_SECRET_VALUE} or prompted for."""
        ),
    )
    p.set_defaults(func=p.print_usage)
    p.add_argument("name", help="The secret name.")
    p.add_argument(
        "-e",
        "--edit",
        action="store_true",
        help="Whether to update an existing secret.",
    )
    p.set_defaults(func=workersync.secrets.manage.add)

    p = sp.add_parser("remove", help="Remove a secret from the manifest.")
    p.set_defaults(func=p.print_usage)
    p.add_argument("name", help="The secret name.")
    p.set_defaults(func=workersync.secrets.manage.remove)

    p = sp.add_parser(
        "summary", help="List the secrets of the manifest (names only)."
    )
    p.set_defaults(func=workersync.secrets.manage.summary)

    p = sp.add_parser(
        "reencrypt",
        help="Re-encrypt all secrets with a new password.",
    )
    p.set_defaults(func=workersync.secrets.manage.reencrypt)

    p = sp.add_parser(
        "plan",
        help="Show the secret updates a deployment would send.",
    )
    p.add_argument(
        "-r",
        "--remote",
        default=None,
        help="File with the remote worker details as JSON, '-' for stdin. "
        "Without it the worker is considered new.",
    )
    p.add_argument(
        "--no-secrets",
        action="store_true",
        help="Do not propagate secrets.",
    )
    p.add_argument(
        "--json",
        action="store_true",
        help="Print the update payload as JSON. Contains cleartext values!",
    )
    p.set_defaults(func=workersync.secrets.manage.plan)

    args = parser.parse_args(args)

    # Pass over to function
    if args.func.__name__ == "print_usage":
        args.func()
        sys.exit(1)

    if args.debug:
        setup_logging(debug=True)
    output = Output(backend or TerminalBackend(stdout), args.debug)
    credentials = Credentials(environ, prompt)

    func_args = dict(args._get_kwargs())
    del func_args["func"]
    del func_args["debug"]
    try:
        return args.func(
            output=output, credentials=credentials, stdin=stdin, **func_args
        )
    except workersync.ReportingException as e:
        e.report(output)
        return 1
