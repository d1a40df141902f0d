"""
Command-line interface for stackgraph.

This module provides the `stackgraph` CLI tool for resolving build graph
descriptors into build plans.
"""

import argparse
import json
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from stackgraph import __version__
from stackgraph.build import BuildPlan, StackResolver
from stackgraph.cli_utils import (
    DescriptorLocator,
    ErrorFormatter,
    PathValidator,
    PlatformDetector,
    setup_logging,
)
from stackgraph.config import PackageDescriptor, format_version, parse_version
from stackgraph.errors import DescriptorError


@dataclass
class ResolveArgs:
    """Arguments shared by every command that resolves a plan."""

    project_dir: Path
    descriptor: Optional[Path] = None
    tools_version: Optional[str] = None
    platform: Optional[str] = None
    platform_version: Optional[str] = None
    verify_headers: bool = False
    verbose: bool = False


@dataclass
class PlanArgs(ResolveArgs):
    """Arguments for the plan command."""

    as_json: bool = False


@dataclass
class SourcesArgs(ResolveArgs):
    """Arguments for the sources command."""

    target: str = ""
    all_files: bool = False


@dataclass
class HeadersArgs(ResolveArgs):
    """Arguments for the headers command."""

    target: Optional[str] = None
    product: Optional[str] = None


@dataclass
class CompileCommandsArgs(ResolveArgs):
    """Arguments for the compile-commands command."""

    output: Optional[Path] = None
    compiler: str = "cc"


def default_tools_version(descriptor: PackageDescriptor) -> str:
    """Newest variant's tools version, used when none is declared."""
    if not descriptor.variants:
        raise DescriptorError(f"Descriptor '{descriptor.name}' declares no variants")
    newest = max(descriptor.variants, key=lambda v: v.tools_version)
    return newest.min_tools_version


def resolve_plan(args: ResolveArgs, show_progress: bool = False) -> BuildPlan:
    """Load the descriptor and resolve it with the command-line environment."""
    descriptor = DescriptorLocator.locate(args.project_dir, args.descriptor)
    tools_version = args.tools_version or default_tools_version(descriptor)
    host = PlatformDetector.detect(args.platform, args.platform_version)

    if args.verbose:
        print(f"Descriptor: {descriptor.name}")
        print(f"Tools version: {tools_version}")
        print(f"Platform: {host.family} {host.version}")
        print()

    resolver = StackResolver(args.project_dir, show_progress=show_progress)
    return resolver.resolve(
        descriptor,
        tools_version=tools_version,
        platform=host.family,
        platform_version=host.version,
        verify_headers=args.verify_headers,
    )


def _run(command, args: ResolveArgs) -> None:
    """Run a command body with the standard error handling."""
    try:
        command(args)
        sys.exit(0)
    except DescriptorError as e:
        ErrorFormatter.handle_descriptor_error(e)
    except FileNotFoundError as e:
        ErrorFormatter.handle_file_not_found(e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def plan_command(args: PlanArgs) -> None:
    """Resolve the descriptor and print the build plan.

    Examples:
        stackgraph plan                          # Newest variant, host platform
        stackgraph plan -t 5.5                   # Legacy variant
        stackgraph plan --platform macOS --platform-version 14.0
        stackgraph plan --json                   # Machine-readable summary
    """
    start_time = time.time()
    plan = resolve_plan(args, show_progress=not args.as_json)
    resolve_time = time.time() - start_time

    if args.as_json:
        print(json.dumps(plan.to_dict(), indent=2))
        return

    print(f"stackgraph v{__version__}")
    print()
    print(f"Package: {plan.package_name}")
    print(f"Variant: {plan.variant.label}")
    print(f"Build order: {' -> '.join(plan.order)}")
    print()

    for index, stage in enumerate(plan.stages(), start=1):
        print(f"Stage {index}: {', '.join(stage)}")
    print()

    print("Targets:")
    for target_plan in plan.targets:
        source_set = target_plan.source_set
        print(
            f"  {target_plan.name:<16} {len(source_set.compilation_units):>6} sources "
            + f"{len(source_set.headers):>6} headers "
            + f"{len(target_plan.public_headers):>6} public"
        )
        for pattern in source_set.unmatched_exclusions:
            ErrorFormatter.print_warning(
                f"Exclusion '{pattern}' of {target_plan.name} matches nothing"
            )
    print()

    print("Products:")
    for product in plan.products:
        print(
            f"  {product.name:<16} targets: {', '.join(product.targets)} "
            + f"({len(product.public_interface)} public headers)"
        )

    ErrorFormatter.print_success("Descriptor resolved")
    print(f"Resolve time: {resolve_time:.2f}s")


def sources_command(args: SourcesArgs) -> None:
    """Print the resolved source set of one target.

    Examples:
        stackgraph sources GLib           # Compilation units
        stackgraph sources Gtk --all      # Every participating file
    """
    plan = resolve_plan(args)
    try:
        source_set = plan.target_plan(args.target).source_set
    except KeyError:
        raise DescriptorError(
            f"Unknown target '{args.target}'. Available targets: {', '.join(plan.order)}"
        ) from None

    files = source_set.files if args.all_files else source_set.compilation_units
    for path in files:
        print(path.as_posix())


def headers_command(args: HeadersArgs) -> None:
    """Print public headers of a target or the public interface of a product.

    Examples:
        stackgraph headers                # Every target's public headers
        stackgraph headers --target GLib  # One target
        stackgraph headers --product Gtk  # Product interface
    """
    plan = resolve_plan(args)

    if args.product:
        product = next((p for p in plan.products if p.name == args.product), None)
        if product is None:
            visible = ", ".join(p.name for p in plan.products)
            raise DescriptorError(
                f"Product '{args.product}' is not visible under variant "
                + f"{plan.variant.name}. Visible products: {visible}"
            )
        headers = list(product.public_interface)
    elif args.target:
        try:
            headers = list(plan.target_plan(args.target).public_headers)
        except KeyError:
            raise DescriptorError(
                f"Unknown target '{args.target}'. Available targets: {', '.join(plan.order)}"
            ) from None
    else:
        headers = [h for t in plan.targets for h in t.public_headers]

    root = plan.package_root
    for header in headers:
        try:
            print(header.relative_to(root).as_posix())
        except ValueError:
            print(header)


def compile_commands_command(args: CompileCommandsArgs) -> None:
    """Write compile_commands.json for the resolved plan.

    Examples:
        stackgraph compile-commands
        stackgraph compile-commands -o build/compile_commands.json --compiler clang
    """
    plan = resolve_plan(args, show_progress=True)
    output = args.output or (args.project_dir / "compile_commands.json")
    path = plan.write_compile_commands(output, compiler=args.compiler)

    count = sum(len(t.source_set.compilation_units) for t in plan.targets)
    ErrorFormatter.print_success(f"Wrote {count} compile commands")
    print(f"Output: {path}")


def variants_command(args: ResolveArgs) -> None:
    """List the descriptor variants and what each one exposes.

    Examples:
        stackgraph variants
    """
    descriptor = DescriptorLocator.locate(args.project_dir, args.descriptor)

    print(f"Package: {descriptor.name}")
    print()
    for variant in sorted(descriptor.variants, key=lambda v: v.tools_version):
        print(f"{variant.name} (tools {format_version(parse_version(variant.min_tools_version))}+)")
        print(f"  Products:  {', '.join(variant.products) or 'none'}")
        if variant.platforms:
            constraints = ", ".join(f"{c.family} {c.minimum}" for c in variant.platforms)
            print(f"  Platforms: {constraints}")
        else:
            print("  Platforms: unconstrained")
        for target, patterns in variant.extra_exclusions:
            print(f"  Excludes:  {target}: {', '.join(patterns)}")
        print()


def _add_resolve_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "project_dir",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Project directory (default: current directory)",
    )
    parser.add_argument(
        "-d",
        "--descriptor",
        type=Path,
        default=None,
        help="Descriptor file (default: stack.ini, else the built-in GNOME descriptor)",
    )
    parser.add_argument(
        "-t",
        "--tools-version",
        default=None,
        help="Declared consumer tools version (default: newest variant)",
    )
    parser.add_argument(
        "--platform",
        default=None,
        help="Operating-system family to build for (default: host)",
    )
    parser.add_argument(
        "--platform-version",
        default=None,
        help="Operating-system version to build for (default: host)",
    )
    parser.add_argument(
        "--verify-headers",
        action="store_true",
        help="Check every #include against header visibility rules",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )


def _common_kwargs(parsed_args: argparse.Namespace) -> dict:
    return dict(
        project_dir=parsed_args.project_dir,
        descriptor=parsed_args.descriptor,
        tools_version=parsed_args.tools_version,
        platform=parsed_args.platform,
        platform_version=parsed_args.platform_version,
        verify_headers=parsed_args.verify_headers,
        verbose=parsed_args.verbose,
    )


def main() -> None:
    """stackgraph - build graph descriptors for layered native stacks."""
    parser = argparse.ArgumentParser(
        prog="stackgraph",
        description="stackgraph - resolve build graph descriptors into build plans",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"stackgraph {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Plan command
    plan_parser = subparsers.add_parser("plan", help="Resolve and print the build plan")
    _add_resolve_arguments(plan_parser)
    plan_parser.add_argument(
        "--json",
        dest="as_json",
        action="store_true",
        help="Print the plan as JSON",
    )

    # Sources command
    sources_parser = subparsers.add_parser("sources", help="List a target's resolved sources")
    sources_parser.add_argument("target", help="Target name")
    _add_resolve_arguments(sources_parser)
    sources_parser.add_argument(
        "-a",
        "--all",
        dest="all_files",
        action="store_true",
        help="List every participating file, not only compilation units",
    )

    # Headers command
    headers_parser = subparsers.add_parser("headers", help="List public headers")
    headers_parser.add_argument(
        "--target",
        dest="header_target",
        default=None,
        help="Only this target's public headers",
    )
    headers_parser.add_argument(
        "--product",
        default=None,
        help="Public interface of a visible product",
    )
    _add_resolve_arguments(headers_parser)

    # Compile-commands command
    cc_parser = subparsers.add_parser(
        "compile-commands", help="Write compile_commands.json"
    )
    _add_resolve_arguments(cc_parser)
    cc_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output file (default: <project_dir>/compile_commands.json)",
    )
    cc_parser.add_argument(
        "--compiler",
        default="cc",
        help="Compiler executable recorded in each command (default: cc)",
    )

    # Variants command
    variants_parser = subparsers.add_parser("variants", help="List descriptor variants")
    _add_resolve_arguments(variants_parser)

    # Parse arguments
    parsed_args = parser.parse_args()

    # If no command specified, show help
    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    PathValidator.validate_project_dir(parsed_args.project_dir)
    setup_logging(parsed_args.verbose)

    common = _common_kwargs(parsed_args)

    # Execute command
    if parsed_args.command == "plan":
        _run(plan_command, PlanArgs(as_json=parsed_args.as_json, **common))
    elif parsed_args.command == "sources":
        _run(
            sources_command,
            SourcesArgs(target=parsed_args.target, all_files=parsed_args.all_files, **common),
        )
    elif parsed_args.command == "headers":
        _run(
            headers_command,
            HeadersArgs(target=parsed_args.header_target, product=parsed_args.product, **common),
        )
    elif parsed_args.command == "compile-commands":
        _run(
            compile_commands_command,
            CompileCommandsArgs(
                output=parsed_args.output, compiler=parsed_args.compiler, **common
            ),
        )
    elif parsed_args.command == "variants":
        _run(variants_command, ResolveArgs(**common))


if __name__ == "__main__":
    main()
