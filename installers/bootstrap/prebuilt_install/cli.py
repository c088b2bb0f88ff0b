"""CLI entrypoint run from a package's postinstall hook."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path

from .config import InstallConfig
from .errors import InstallError
from .logging_setup import add_file_handler, configure_logging, get_logger
from .service import InstallResult, ensure_local_install, install


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prebuilt-install",
        description="Download and link the prebuilt release binary for this package",
    )
    parser.add_argument("--root", default=None, help="Package root holding package.json (default: cwd)")
    parser.add_argument("--host", default=None, help="Release host, e.g. github.com")
    parser.add_argument("--timeout", type=int, default=None, help="Download timeout in seconds")
    parser.add_argument("--no-link", action="store_true", help="Extract only, do not link the command")
    parser.add_argument("--log-file", default=None, help="Also write JSON logs to this file")
    parser.add_argument("--json", action="store_true", help="Print the install summary as JSON")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true")
    verbosity.add_argument("-q", "--quiet", action="store_true")
    return parser


def _apply_overrides(cfg: InstallConfig, args: argparse.Namespace) -> InstallConfig:
    overrides: dict[str, object] = {}
    if args.host:
        overrides["host"] = args.host
    if args.timeout and args.timeout > 0:
        overrides["timeout_s"] = args.timeout
    if args.no_link:
        overrides["skip_link"] = True
    if args.log_file:
        overrides["log_file"] = Path(args.log_file).expanduser()
    return replace(cfg, **overrides) if overrides else cfg


def _summary(result: InstallResult) -> dict[str, object]:
    return {
        "package": result.package,
        "version": result.version,
        "target_os": result.platform.os_name,
        "target_arch": result.platform.arch,
        "url": result.descriptor.url,
        "executable": str(result.executable),
        "links": [str(p) for p in result.links],
    }


def main(argv: list[str] | None = None, environ: dict[str, str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = _apply_overrides(InstallConfig.from_env(os.environ if environ is None else environ), args)

    level = logging.INFO
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    configure_logging(level=level)

    root = Path(args.root).expanduser() if args.root else Path.cwd()
    try:
        # The log file is only opened once the global-install guard has passed.
        ensure_local_install(cfg)
        if cfg.log_file is not None:
            add_file_handler(cfg.log_file)
        result = install(root, cfg)
    except InstallError as exc:
        get_logger().error("%s", exc, extra={"event": "install_failed"})
        print(str(exc), file=sys.stderr)
        return exc.exit_code

    if args.json:
        print(json.dumps(_summary(result), indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
