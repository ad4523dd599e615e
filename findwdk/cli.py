# SPDX-License-Identifier: MIT
"""Command-line interface for findwdk."""

from __future__ import annotations

import argparse
import json
import logging
import os
import subprocess
import sys
from pathlib import Path

from findwdk.core.errors import FindWdkError

# Set up logging
logger = logging.getLogger("findwdk")


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Configure logging based on verbosity level."""
    if debug:
        level = logging.DEBUG
        fmt = "%(levelname)s: %(name)s: %(message)s"
    elif verbose:
        level = logging.INFO
        fmt = "%(levelname)s: %(message)s"
    else:
        level = logging.WARNING
        fmt = "%(levelname)s: %(message)s"

    logging.basicConfig(level=level, format=fmt)


def find_script(name: str, search_dir: Path | None = None) -> Path | None:
    """Find a build script by name in search_dir (default: current dir)."""
    if search_dir is None:
        search_dir = Path.cwd()

    script_path = search_dir / name
    if script_path.is_file():
        return script_path
    return None


def parse_variables(args: list[str]) -> tuple[dict[str, str], list[str]]:
    """Split KEY=value arguments from the rest.

    Returns:
        Tuple of (variables dict, remaining args).
    """
    variables: dict[str, str] = {}
    remaining: list[str] = []

    for arg in args:
        if "=" in arg and not arg.startswith("-"):
            key, _, value = arg.partition("=")
            if key:
                variables[key] = value
            else:
                remaining.append(arg)
        else:
            remaining.append(arg)

    return variables, remaining


def run_script(
    script_path: Path,
    build_dir: Path,
    variables: dict[str, str] | None = None,
    variant: str | None = None,
    reconfigure: bool = False,
) -> int:
    """Execute a Python build description.

    The script learns about the invocation through the environment:
    FINDWDK_BUILD_DIR, FINDWDK_SOURCE_DIR, FINDWDK_VARS (JSON of the
    KEY=value arguments, read by get_var()), FINDWDK_VARIANT and
    FINDWDK_RECONFIGURE.

    Returns:
        Exit code from script execution.
    """
    env = os.environ.copy()
    env["FINDWDK_BUILD_DIR"] = str(build_dir.absolute())
    env["FINDWDK_SOURCE_DIR"] = str(script_path.parent.absolute())

    if variables:
        env["FINDWDK_VARS"] = json.dumps(variables)
    if variant:
        env["FINDWDK_VARIANT"] = variant
    if reconfigure:
        env["FINDWDK_RECONFIGURE"] = "1"

    logger.info("Running %s", script_path)
    logger.debug("  FINDWDK_BUILD_DIR=%s", env["FINDWDK_BUILD_DIR"])
    logger.debug("  FINDWDK_SOURCE_DIR=%s", env["FINDWDK_SOURCE_DIR"])
    if variables:
        logger.debug("  FINDWDK_VARS=%s", env["FINDWDK_VARS"])
    if variant:
        logger.debug("  FINDWDK_VARIANT=%s", variant)

    try:
        result = subprocess.run(
            [sys.executable, str(script_path)],
            env=env,
            cwd=script_path.parent,
        )
        return result.returncode
    except OSError as e:
        logger.error("Failed to run script: %s", e)
        return 1


def cmd_info(args: argparse.Namespace) -> int:
    """Locate the WDK and print what was resolved."""
    from findwdk.wdk.config import find_wdk

    setup_logging(args.verbose, args.debug)

    wdk = find_wdk(
        arch=args.arch,
        content_root=args.content_root,
        signing_key=args.signing_key,
    )
    summary = wdk.to_dict()

    if args.json:
        print(json.dumps(summary, indent=2))
        return 0

    print(f"WDK root:        {summary['root']}")
    print(f"WDK version:     {summary['version']}")
    print(f"Layout:          {summary['layout']}")
    print(f"Platform:        {summary['platform']}")
    print(f"WINVER:          {summary['winver']}")
    print(f"NTDDI_VERSION:   {summary['ntddi_version'] or '(not set)'}")
    print(f"Signing key:     {summary['signing_key']}")
    print("Tools:")
    for tool, path in summary["tools"].items():
        print(f"  {tool:<10} {path or '(not found)'}")
    print(f"Kernel libraries: {len(summary['libraries'])}")
    return 0


def cmd_generate(args: argparse.Namespace) -> int:
    """Run the build description.

    Finds build.py (or the script given with -b) and runs it with the
    build variables and variant in its environment.
    """
    setup_logging(args.verbose, args.debug)

    build_dir = Path(args.build_dir)
    variables, remaining = parse_variables(args.extra)
    if remaining:
        logger.error("Unexpected arguments: %s", " ".join(remaining))
        return 1

    script: Path
    if args.build_script:
        script = Path(args.build_script)
        if not script.exists():
            logger.error("Build script not found: %s", args.build_script)
            return 1
    else:
        found_script = find_script("build.py")
        if found_script is None:
            logger.error("No build.py found in current directory")
            logger.info("Create a build.py file or run 'findwdk init'")
            return 1
        script = found_script

    build_dir.mkdir(parents=True, exist_ok=True)

    return run_script(
        script,
        build_dir,
        variables=variables,
        variant=args.variant,
        reconfigure=args.reconfigure,
    )


BUILD_TEMPLATE = '''\
#!/usr/bin/env python3
"""Build description for a KMDF driver.

Variables:
    WDK_ARCH          - Target architecture: x86, x64, arm64 (default: host)
    WDK_WINVER        - WINVER value (default: 0x0A00)
    WDK_NTDDI_VERSION - NTDDI_VERSION value (default: 0x0A000004)
    WDK_PFX           - Signing key (default: TestSigning.pfx)
"""

import os
from pathlib import Path

from findwdk import Project, add_kmd_driver, find_wdk
from findwdk.configure.config import Configure
from findwdk.generators import CompileCommandsGenerator

build_dir = Path(os.environ.get("FINDWDK_BUILD_DIR", "build"))
source_dir = Path(os.environ.get("FINDWDK_SOURCE_DIR", "."))

config = Configure(build_dir=build_dir)
if os.environ.get("FINDWDK_RECONFIGURE"):
    config.clear()
wdk = find_wdk(source_dir=source_dir, configure=config)
config.save()

project = Project("{name}", root_dir=source_dir, build_dir=build_dir)

driver = add_kmd_driver(project, wdk, "{name}", "Driver.c", kmdf="1.15")

CompileCommandsGenerator().generate(project, build_dir)
project.print_targets()
'''


def cmd_init(args: argparse.Namespace) -> int:
    """Write a template build.py for a KMDF driver."""
    setup_logging(args.verbose, args.debug)

    build_py = Path("build.py")
    if build_py.exists() and not args.force:
        logger.error("build.py already exists (use --force to overwrite)")
        return 1

    build_py.write_text(BUILD_TEMPLATE.replace("{name}", args.name))
    build_py.chmod(0o755)
    logger.info("Created %s", build_py)

    print("Project initialized!")
    print("Next steps:")
    print(f"  1. Add Driver.c and {args.name}.inx next to build.py")
    print("  2. Put your signing key in TestSigning.pfx (or pass WDK_PFX=...)")
    print("  3. Run 'findwdk generate'")
    return 0


def add_common_args(parser: argparse.ArgumentParser) -> None:
    """Add common arguments to a parser."""
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--debug", action="store_true", help="Debug output")


def build_parser() -> argparse.ArgumentParser:
    from findwdk import __version__

    parser = argparse.ArgumentParser(
        prog="findwdk",
        description="Locate the Windows Driver Kit and configure driver builds.",
        epilog="Run 'findwdk <command> --help' for command-specific help.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # findwdk info
    info_parser = subparsers.add_parser("info", help="Show the resolved WDK")
    add_common_args(info_parser)
    info_parser.add_argument("--arch", help="Target architecture (x86, x64, arm64)")
    info_parser.add_argument(
        "--content-root", metavar="DIR", help="WDK content root to search"
    )
    info_parser.add_argument(
        "--signing-key", metavar="PFX", help="Signing key to check"
    )
    info_parser.add_argument("--json", action="store_true", help="Print JSON")
    info_parser.set_defaults(func=cmd_info)

    # findwdk generate
    gen_parser = subparsers.add_parser("generate", help="Run build.py")
    add_common_args(gen_parser)
    gen_parser.add_argument(
        "-B", "--build-dir", default="build", help="Build directory (default: build)"
    )
    gen_parser.add_argument("-b", "--build-script", help="Path to build.py script")
    gen_parser.add_argument(
        "--variant", metavar="NAME", help="Build variant (debug, release)"
    )
    gen_parser.add_argument(
        "-C",
        "--reconfigure",
        action="store_true",
        help="Force re-run configuration",
    )
    gen_parser.add_argument("extra", nargs="*", help="Build variables (KEY=value)")
    gen_parser.set_defaults(func=cmd_generate)

    # findwdk init
    init_parser = subparsers.add_parser("init", help="Create a driver build.py")
    add_common_args(init_parser)
    init_parser.add_argument(
        "-f", "--force", action="store_true", help="Overwrite existing files"
    )
    init_parser.add_argument(
        "--name", default="MyDriver", help="Driver name (default: MyDriver)"
    )
    init_parser.set_defaults(func=cmd_init)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the findwdk CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    try:
        result: int = args.func(args)
    except FindWdkError as e:
        logger.error("%s", e)
        return 1
    return result


if __name__ == "__main__":
    sys.exit(main())
