#!/usr/bin/env python3

# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2026 The Localscan Project Developers

"""Command line tool to start a Localscan server."""

__copyright__ = "Copyright (C) 2026 The Localscan Project Developers"
__credits__ = "The Localscan Project Developers"
__license__ = "AGPL-3.0-or-later"

import argparse
from pathlib import Path

from localscan import __version__
from localscan import Default_Port
from localscan.config import confdir, config_filename, create_server_config
from localscan.server import launch


server_instructions = f"""Overview of running the Localscan server:

  1. Run '%(prog)s init' - creates the config file
     (by default '{confdir / config_filename}').

  2. Edit it to taste: port, scan profile, batch settings.

  3. Start the server with '%(prog)s launch'.  Without a desktop
     application attached it serves made-up demo pages.

  4. Try it: 'curl -o out.bin http://127.0.0.1:{Default_Port}/scan'.
"""


def get_parser():
    parser = argparse.ArgumentParser(
        description="Serve scans from a desktop application over loopback HTTP.",
        epilog=server_instructions,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version", action="version", version="%(prog)s " + __version__
    )
    sub = parser.add_subparsers(dest="command", description="Perform tasks")

    spI = sub.add_parser(
        "init",
        help="Create a config file",
        description="Write the default config file, which you can then edit.",
    )
    spI.add_argument(
        "dir",
        nargs="?",
        help=f"The directory for the config file, defaults to {confdir}.",
    )
    spI.add_argument(
        "--port", type=int, help=f"Use alternative port (defaults to {Default_Port})"
    )

    spL = sub.add_parser(
        "launch",
        help="Start the server",
        description="Start the server, running until interrupted.",
    )
    spL.add_argument(
        "--config",
        help=f"The config file, defaults to {confdir / config_filename}.",
    )
    spL.add_argument(
        "--logfile",
        help="A filename to save the logs, default is dated and in the current directory.",
    )
    spL.add_argument(
        "--no-logconsole",
        action="store_true",
        help="Do not echo the logs to stderr.",
    )
    return parser


def main():
    parser = get_parser()
    args = parser.parse_args()

    if args.command == "init":
        dur = Path(args.dir) if args.dir else confdir
        try:
            fname = create_server_config(dur, port=args.port)
        except FileExistsError as err:
            print(f"Skipping config file: {err}")
            return
        print(f"Wrote config file {fname}")
    elif args.command == "launch":
        launch(
            config=args.config,
            logfile=args.logfile,
            logconsole=not args.no_logconsole,
        )
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
