"""Command-line interface for omnigen.

Usage::

    python -m omnigen generate --kind button --prop variant=primary \\
        --platform react --platform vue --output ./generated
    python -m omnigen generate --hint "large outline button" --tag a11y:aaa
    python -m omnigen generate --request saved.json --platform radix
    python -m omnigen platforms
    python -m omnigen kinds
"""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError
from rich.table import Table

from omnigen.catalog import default_catalog
from omnigen.config import EngineConfig
from omnigen.errors import OmnigenError
from omnigen.models import GenerationJob, JobStatus, Severity, VariantStatus
from omnigen.ollama_client import OllamaClient
from omnigen.orchestrator import create_engine
from omnigen.templates import PLATFORM_PROFILES
from omnigen.utils import (
    console,
    format_duration,
    load_json,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
    save_json,
    write_text,
)


def parse_prop(raw: str) -> tuple[str, str]:
    """Split a ``name=value`` CLI argument."""
    name, sep, value = raw.partition("=")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"expected name=value, got {raw!r}")
    return name.strip(), value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="omnigen",
        description="omnigen -- generate one UI component for many platforms",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python -m omnigen generate --kind button --platform react --platform vue\n"
            "  python -m omnigen generate --kind payment-form --prop currency=EUR -o ./out\n"
            "  python -m omnigen platforms\n"
        ),
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a saved EngineConfig JSON file (default: environment)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate a component")
    gen.add_argument("--kind", default=None, help="Component kind, e.g. button")
    gen.add_argument("--hint", default=None, help="Natural-language description")
    gen.add_argument(
        "--request",
        default=None,
        metavar="FILE",
        help="JSON file with a saved request; flags override its fields",
    )
    gen.add_argument(
        "--prop",
        action="append",
        type=parse_prop,
        default=[],
        metavar="NAME=VALUE",
        help="Prop value (repeatable)",
    )
    gen.add_argument(
        "--platform",
        action="append",
        default=[],
        help="Target platform (repeatable; default: configured platforms)",
    )
    gen.add_argument(
        "--tag",
        action="append",
        default=[],
        metavar="AXIS:LEVEL",
        help="Compliance tag, e.g. a11y:aaa (repeatable)",
    )
    gen.add_argument(
        "--output", "-o",
        default=None,
        help="Write accepted artifacts and job.json to this directory",
    )
    gen.add_argument("--verbose", "-v", action="store_true", help="Print job progress")

    sub.add_parser("platforms", help="List built-in platforms")
    sub.add_parser("kinds", help="List known component kinds")
    return parser


def load_config(path: Optional[str]) -> EngineConfig:
    if path:
        return EngineConfig.load(Path(path))
    return EngineConfig.from_env()


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def build_request(args: argparse.Namespace, config: EngineConfig) -> dict[str, Any]:
    """Merge ``--request`` file contents with the command-line flags.

    Flags win for kind and hint; props are merged with flags taking
    precedence; tags are added to the file's tags.
    """
    request: dict[str, Any] = load_json(args.request) if args.request else {}
    if "_root" in request:
        raise ValueError(f"{args.request} must contain a JSON object")
    if args.kind:
        request["kind"] = args.kind
    if args.hint:
        request["natural_language_hint"] = args.hint
    request["props"] = {**request.get("props", {}), **dict(args.prop)}
    if args.platform or not request.get("platforms"):
        request["platforms"] = args.platform or config.default_platforms
    request["compliance_tags"] = [*request.get("compliance_tags", []), *args.tag]
    return request


async def run_generate(args: argparse.Namespace, config: EngineConfig) -> int:
    if args.verbose:
        config = config.model_copy(update={"verbose": True})
    request = build_request(args, config)

    if config.ollama.enabled and request.get("natural_language_hint") and not request.get("kind"):
        client = OllamaClient(base_url=config.ollama.url, timeout=config.ollama.timeout)
        if not await client.is_available():
            print_warning(
                f"Ollama is not reachable at {client.base_url}; "
                "unmatched hints will fail to resolve"
            )

    engine = create_engine(config)
    job = await engine.generate(request)

    if job.status == JobStatus.FAILED:
        if job.error is not None:
            print_error(f"{job.error.code}: {job.error.message}")
        if args.output:
            await write_job(job, Path(args.output))
        return 1

    print_job_table(job)
    if args.output:
        written = await write_job(job, Path(args.output))
        print_success(f"Wrote {written} artifact(s) to {Path(args.output).resolve()}")

    if job.rejected():
        print_warning(f"{len(job.rejected())} platform(s) rejected: {', '.join(job.rejected())}")
    return 0 if job.accepted() else 2


async def write_job(job: GenerationJob, output: Path) -> int:
    """Write accepted artifacts under ``<output>/<platform>/`` plus ``job.json``."""
    written = 0
    for platform, variant in job.variants.items():
        if variant.status != VariantStatus.ACCEPTED or not variant.source_artifact:
            continue
        target = output / platform / (variant.file_name or "component")
        await write_text(target, variant.source_artifact)
        written += 1
    await save_json(job.model_dump(mode="json"), output / "job.json")
    return written


def print_job_table(job: GenerationJob) -> None:
    table = Table(
        title=f"{job.spec.kind if job.spec else job.job_id} ({job.status.value})",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Platform", no_wrap=True)
    table.add_column("Status")
    table.add_column("File", style="dim")
    table.add_column("Score", justify="right")
    table.add_column("Violations")

    for platform, variant in job.variants.items():
        color = "green" if variant.status == VariantStatus.ACCEPTED else "red"
        score = variant.compliance.score
        score_color = "green" if score >= 80 else "yellow" if score >= 50 else "red"
        violations = ", ".join(
            v.code + ("!" if v.severity == Severity.BLOCKING else "")
            for v in variant.violations
        )
        table.add_row(
            platform,
            f"[{color}]{variant.status.value}[/{color}]",
            variant.file_name or "-",
            f"[{score_color}]{score}[/{score_color}]",
            violations or "-",
        )
    console.print(table)

    summary = {
        "Job": job.job_id,
        "Accepted": ", ".join(job.accepted()) or "-",
        "Rejected": ", ".join(job.rejected()) or "-",
        "Compliance": ", ".join(sorted(job.spec.compliance_tags if job.spec else ())) or "-",
    }
    job_score = job.compliance_score()
    if job_score is not None:
        summary["Score"] = f"{job_score:.0f}/100"
    if job.finished_at is not None:
        summary["Duration"] = format_duration((job.finished_at - job.created_at).total_seconds())
    print_summary_table(summary, title="Summary", out=console)


def run_platforms() -> int:
    table = Table(title="Platforms", show_header=True, header_style="bold cyan")
    table.add_column("Platform", no_wrap=True)
    table.add_column("Kinds")
    table.add_column("Extension", style="dim")
    table.add_column("Unsupported props")
    table.add_column("Native tags")
    for profile in PLATFORM_PROFILES:
        table.add_row(
            profile.platform,
            ", ".join(profile.kinds),
            profile.file_extension,
            ", ".join(profile.unsupported_props) or "-",
            ", ".join(profile.native_tags) or "-",
        )
    console.print(table)
    return 0


def run_kinds() -> int:
    table = Table(title="Component kinds", show_header=True, header_style="bold cyan")
    table.add_column("Kind", no_wrap=True)
    table.add_column("Props")
    table.add_column("Aliases", style="dim")
    table.add_column("Implied tags")
    for definition in default_catalog():
        props = ", ".join(
            p.name + ("*" if p.required else "") for p in definition.props
        )
        table.add_row(
            definition.kind,
            props,
            ", ".join(definition.aliases),
            ", ".join(definition.implied_tags) or "-",
        )
    console.print(table)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entry point for ``python -m omnigen``."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "platforms":
        return run_platforms()
    if args.command == "kinds":
        return run_kinds()

    try:
        config = load_config(args.config)
        return asyncio.run(run_generate(args, config))
    except ValidationError as exc:
        print_error(f"Invalid request: {exc}")
        return 1
    except OmnigenError as exc:
        print_error(f"{exc.code}: {exc}")
        return 1
    except (OSError, ValueError) as exc:
        print_error(f"Cannot read request: {exc}")
        return 1
    except KeyboardInterrupt:
        print_warning("Interrupted.")
        return 130
