"""CLI entry point."""

from __future__ import annotations

import argparse
import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence

from flood_stats.config.settings import EngineSettings, default_settings
from flood_stats.core import UNLIMITED, Metric, resolve_repo_path
from flood_stats.engine.pipeline import DEFAULT_CHART_TYPE, aggregate_chart_for_fields
from flood_stats.engine.ranking import parse_category_limit
from flood_stats.engine.summary import compare_scenarios, summarize_network
from flood_stats.errors import ConfigError, FloodStatsError
from flood_stats.export import (
    aggregation_to_dict,
    statistics_to_csv,
    statistics_to_dict,
)
from flood_stats.hydra_utils import (
    DEFAULT_CONFIG_NAME,
    DEFAULT_CONFIG_PATH,
    compose_config,
    format_config,
    load_settings,
)
from flood_stats.io_utils import (
    read_json,
    read_table_rows,
    write_json_atomic,
    write_text_atomic,
)
from flood_stats.logging_utils import (
    configure_logging,
    log_exception,
    run_with_error_handling,
)
from flood_stats.registry import default_registry

_SUBCOMMANDS: Sequence[str] = (
    "help",
    "cfg",
    "chart",
    "stats",
)

_LOGGER = logging.getLogger("flood_stats.cli")


def _cfg_handler(args: argparse.Namespace) -> None:
    cfg = compose_config(
        config_path=args.config_path,
        config_name=args.config_name,
        overrides=args.overrides,
    )
    output = format_config(cfg)
    print(output, end="")


def _load_settings(args: argparse.Namespace) -> EngineSettings:
    config_path = args.config_path
    if config_path is None:
        candidate = resolve_repo_path(DEFAULT_CONFIG_PATH)
        if not candidate.exists():
            _LOGGER.debug("No %s directory found; using built-in settings.", DEFAULT_CONFIG_PATH)
            return default_settings()
        config_path = candidate
    return load_settings(
        config_path=config_path,
        config_name=args.config_name,
        overrides=args.override,
    )


def _emit(text: str, output: Optional[str]) -> None:
    if output is None:
        print(text, end="" if text.endswith("\n") else "\n")
        return
    path = Path(output)
    write_text_atomic(path, text if text.endswith("\n") else text + "\n")
    _LOGGER.info("Wrote %s", path)


def _emit_json(payload: Any, output: Optional[str]) -> None:
    if output is None:
        print(json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=True))
        return
    path = Path(output)
    write_json_atomic(path, payload)
    _LOGGER.info("Wrote %s", path)


def _chart_handler(args: argparse.Namespace) -> None:
    settings = _load_settings(args)
    rows = read_table_rows(Path(args.rows))
    max_categories = (
        None if args.max_categories is None else parse_category_limit(args.max_categories)
    )
    aggregation = aggregate_chart_for_fields(
        rows,
        args.features,
        settings,
        metric=args.metric,
        max_categories=max_categories,
        chart_type=args.chart_type,
        group_by=args.group_by,
    )
    payload = aggregation_to_dict(aggregation)
    payload["metric"] = args.metric or settings.default_metric.value
    if args.group_by:
        payload["group_by"] = {
            "field": args.group_by,
            "label": settings.grouping_label(args.group_by),
        }
    _emit_json(payload, args.output)


def _read_counts_payload(path: Path) -> tuple[Any, Mapping[str, Any]]:
    if not path.exists():
        raise ConfigError(f"counts file not found: {path}")
    try:
        payload = read_json(path)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Failed to parse JSON from {path}: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise ConfigError(f"Counts payload in {path} must be a mapping.")
    if "total_segments" not in payload:
        raise ConfigError(f"Counts payload in {path} is missing 'total_segments'.")
    scenarios = payload.get("scenarios", {})
    if not isinstance(scenarios, Mapping):
        raise ConfigError(f"'scenarios' in {path} must map scenario names to counts.")
    return payload["total_segments"], scenarios


def _stats_handler(args: argparse.Namespace) -> None:
    settings = _load_settings(args)
    total, scenario_counts = _read_counts_payload(Path(args.counts))
    statistics = summarize_network(total, scenario_counts, settings)
    if args.format == "csv":
        _emit(statistics_to_csv(statistics), args.output)
        return
    payload = statistics_to_dict(statistics)
    primary = statistics.for_scenario("primary")
    secondary = statistics.for_scenario("secondary")
    if primary is not None and secondary is not None:
        payload["comparison"] = statistics_to_dict(compare_scenarios(primary, secondary))
    _emit_json(payload, args.output)


def _register_help_subcommand(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    parser: argparse.ArgumentParser,
) -> None:
    def _handler(_args: argparse.Namespace) -> None:
        parser.print_help()

    help_parser = subparsers.add_parser(
        "help",
        help="Show top-level help.",
        description="Show top-level help.",
    )
    help_parser.set_defaults(handler=_handler)


def _register_cfg_subcommand(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> None:
    cfg_parser = subparsers.add_parser(
        "cfg",
        help="Compose and print Hydra config.",
        description="Compose and print Hydra config.",
    )
    cfg_parser.add_argument(
        "--config-path",
        default=DEFAULT_CONFIG_PATH,
        help="Path to the Hydra config directory.",
    )
    cfg_parser.add_argument(
        "--config-name",
        default=DEFAULT_CONFIG_NAME,
        help="Hydra config name (without extension).",
    )
    cfg_parser.add_argument(
        "overrides",
        nargs=argparse.REMAINDER,
        help="Hydra overrides (ex: engine.unit_length_km=0.2).",
    )
    cfg_parser.set_defaults(handler=_cfg_handler)


def _add_settings_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config-path",
        default=None,
        help=(
            "Path to the Hydra config directory "
            f"(default: {DEFAULT_CONFIG_PATH}/ when present, else built-in settings)."
        ),
    )
    parser.add_argument(
        "--config-name",
        default=DEFAULT_CONFIG_NAME,
        help="Hydra config name (without extension).",
    )
    parser.add_argument(
        "--override",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Hydra override; may be repeated.",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Write the result to this file instead of stdout.",
    )


def _register_chart_subcommand(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> None:
    chart_parser = subparsers.add_parser(
        "chart",
        help="Aggregate grouped count rows into a chart series.",
        description=(
            "Read grouped count rows (CSV or JSON with feature_field, category "
            "and count) and print a ranked chart series as JSON."
        ),
    )
    chart_parser.add_argument(
        "--rows",
        required=True,
        help="CSV or JSON file with grouped count rows.",
    )
    chart_parser.add_argument(
        "--features",
        nargs="+",
        required=True,
        metavar="FIELD",
        help="Feature fields to chart, in series order.",
    )
    chart_parser.add_argument(
        "--metric",
        default=None,
        choices=[metric.value for metric in Metric],
        help="Display metric (default: configured default).",
    )
    chart_parser.add_argument(
        "--max-categories",
        default=None,
        help=f"Positive integer or {UNLIMITED!r} (default: configured default).",
    )
    chart_parser.add_argument(
        "--chart-type",
        default=DEFAULT_CHART_TYPE,
        choices=sorted(default_registry().list("chart")),
        help="Chart shape.",
    )
    chart_parser.add_argument(
        "--group-by",
        default=None,
        help="Grouping field whose value labels replace raw category values.",
    )
    _add_settings_arguments(chart_parser)
    chart_parser.set_defaults(handler=_chart_handler)


def _register_stats_subcommand(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> None:
    stats_parser = subparsers.add_parser(
        "stats",
        help="Summarize scenario statistics from affected counts.",
        description=(
            "Read a JSON payload with total_segments and per-scenario field "
            "counts and print network statistics."
        ),
    )
    stats_parser.add_argument(
        "--counts",
        required=True,
        help="JSON file with total_segments and scenarios.",
    )
    stats_parser.add_argument(
        "--format",
        default="json",
        choices=("json", "csv"),
        help="Output format.",
    )
    _add_settings_arguments(stats_parser)
    stats_parser.set_defaults(handler=_stats_handler)


def _build_parser(subcommands: Iterable[str]) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flood-stats",
        description="Flood-risk road network aggregation command line interface.",
    )
    parser.add_argument(
        "--traceback",
        action="store_true",
        help="Show full traceback on errors.",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    for name in subcommands:
        if name == "help":
            _register_help_subcommand(subparsers, parser)
            continue
        if name == "cfg":
            _register_cfg_subcommand(subparsers)
            continue
        if name == "chart":
            _register_chart_subcommand(subparsers)
            continue
        if name == "stats":
            _register_stats_subcommand(subparsers)
            continue
        raise ValueError(f"Unknown subcommand: {name!r}.")
    return parser


def _cli_main(
    *,
    cli_logger: logging.Logger,
    argv: Optional[Sequence[str]] = None,
) -> None:
    parser = _build_parser(_SUBCOMMANDS)
    args = parser.parse_args(argv)
    if not getattr(args, "command", None):
        parser.print_help()
        raise SystemExit(2)
    try:
        args.handler(args)
    except FloodStatsError as exc:
        log_exception(cli_logger, exc, show_traceback=args.traceback)
        raise SystemExit(1) from None


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Entry point with standard logging/error handling."""
    logger = configure_logging()
    run_with_error_handling(_cli_main, logger=logger, cli_logger=logger, argv=argv)


if __name__ == "__main__":
    main()
