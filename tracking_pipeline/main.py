"""
YouTube Channel Tracker - Command Line Entry Point
Add channels, refresh their statistics, inspect history and manage backups.
"""

import argparse
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import pandas as pd

from shared.storage.storage_manager import StorageManager
from tracking_pipeline.core.analysis import (
    ChartRange,
    HistoryReport,
    axis_ticks,
    build_history_frame,
    build_summary_frame,
    delta_badge,
    deltas_in_range,
    filter_by_range,
    tick_marks,
    y_axis_domain,
)
from tracking_pipeline.core.backup import (
    StoreFile,
    export_document,
    import_document,
    read_backup,
    write_backup,
)
from tracking_pipeline.core.config import AppConfig, ConfigLoader, ConfigValidationError
from tracking_pipeline.core.errors import (
    DuplicateChannelError,
    FetchError,
    NotFoundError,
    TrackerError,
)
from tracking_pipeline.core.tracking import ChannelTracker, Metric, TimeSeriesStore
from tracking_pipeline.core.youtube import YouTubeClient

DEFAULT_CONFIG = "config.yaml"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger(__name__)


@dataclass
class TrackerContext:
    """Everything a command needs, built once per invocation."""
    config: AppConfig
    loader: ConfigLoader
    storage: StorageManager
    store_file: StoreFile
    store: TimeSeriesStore
    fetcher: object


def setup_logging(verbose: bool = False) -> logging.Logger:
    """Configure console logging; the file handler is added once storage is known."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=[logging.StreamHandler()],
        force=True
    )
    return logging.getLogger(__name__)


def attach_log_file(logs_dir: Path) -> None:
    handler = logging.FileHandler(logs_dir / "tracker.log", mode='a', encoding='utf-8')
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logging.getLogger().addHandler(handler)


def load_configuration(config_path: Path) -> AppConfig:
    """Load the configuration, falling back to defaults when the file is absent."""
    logger.info(f"Loading configuration from: {config_path}")
    loader = ConfigLoader(config_path)

    if not loader.exists():
        logger.warning("Configuration file not found, using defaults (run 'set-key' to create it)")
        return AppConfig()

    config = loader.load()
    logger.info("Configuration validated successfully")
    logger.info(f"  API key: {'set' if config.api_key else 'NOT SET'}")
    logger.info(f"  Storage root: {config.storage_root}")
    logger.info(f"  Default range: {config.display_range.value}")
    return config


def resolve_storage_root(config: AppConfig, config_path: Path) -> Path:
    """Relative storage roots are resolved against the config file's directory."""
    storage_root = Path(config.storage_root)
    if not storage_root.is_absolute():
        storage_root = (config_path.resolve().parent / storage_root).resolve()
    return storage_root


def require_api_key(config: AppConfig) -> str:
    if not config.api_key:
        raise FetchError("YouTube API key is not configured. Run 'set-key <KEY>' first.")
    if not config.is_api_key_valid:
        logger.warning("API key does not look like a Google API key (AIza...)")
    return config.api_key


def cmd_set_key(args, ctx: TrackerContext) -> int:
    config = ctx.config.with_api_key(args.key.strip())
    ctx.loader.save(config)
    logger.info(f"API key saved to {ctx.loader.config_path}")
    if not config.is_api_key_valid:
        logger.warning("The key was saved but does not look like a valid Google API key")
    return 0


def cmd_add(args, ctx: TrackerContext) -> int:
    api_key = require_api_key(ctx.config)
    tracker = ChannelTracker(ctx.store, ctx.fetcher)
    channel = tracker.add_channel(args.identifier, api_key)
    ctx.store_file.save(ctx.store)
    print(f"✅ Tracking {channel.title} ({channel.display_handle})")
    return 0


def cmd_remove(args, ctx: TrackerContext) -> int:
    channel = ctx.store.remove_channel(args.channel_id)
    ctx.store_file.save(ctx.store)
    print(f"🗑️  Removed {channel.title} and its history")
    return 0


def cmd_list(args, ctx: TrackerContext) -> int:
    df = build_summary_frame(ctx.store)
    if df.empty:
        print("No channels tracked yet. Use 'add <channel>' to start.")
        return 0
    print(df.to_string(index=False))
    return 0


def cmd_refresh(args, ctx: TrackerContext) -> int:
    api_key = require_api_key(ctx.config)
    tracker = ChannelTracker(ctx.store, ctx.fetcher)

    if args.channel_id:
        tracker.refresh_channel(args.channel_id, api_key)
        ctx.store_file.save(ctx.store)
        print(f"✅ Refreshed {args.channel_id}")
        return 0

    report = tracker.refresh_all(api_key)
    # Whatever succeeded is kept even when some channels failed.
    ctx.store_file.save(ctx.store)

    print(f"✅ Refreshed {len(report.succeeded)} channels")
    for failure in report.failures:
        print(f"❌ {failure.title} ({failure.channel_id}): {failure.error}")
    return 0 if report.ok else 2


def cmd_history(args, ctx: TrackerContext) -> int:
    channel = ctx.store.get_channel(args.channel_id)
    chart_range = ChartRange(args.range) if args.range else ctx.config.display_range
    history = filter_by_range(ctx.store.history(channel.channel_id), chart_range)

    df = build_history_frame(history)
    print(f"{channel.title} ({channel.display_handle}) - range: {chart_range.value}")
    if df.empty:
        print("No snapshots in this range.")
        return 0

    print(df.drop(columns=["recorded_at"]).to_string(index=False))

    metric = Metric(args.metric)
    low, high = y_axis_domain(history, metric)
    ticks = axis_ticks(history, ctx.config.tick_count)
    print(f"\n{metric.label} axis: {low:,} .. {high:,}")
    print("Date axis: " + ", ".join(t.strftime("%m/%d") for t in ticks))

    if args.csv:
        path = HistoryReport(ctx.storage.reports_path).save_history(channel, history)
        if path:
            print(f"📄 Saved to {path}")
    return 0


def cmd_deltas(args, ctx: TrackerContext) -> int:
    channel = ctx.store.get_channel(args.channel_id)
    chart_range = ChartRange(args.range) if args.range else ctx.config.display_range
    metric = Metric(args.metric)
    deltas = deltas_in_range(ctx.store.history(channel.channel_id), metric, chart_range)

    print(f"{channel.title} - daily {metric.label.lower()} change ({chart_range.value})")
    if not deltas:
        print("Not enough data to compute differences.")
        return 0

    df = pd.DataFrame({
        "date": [d.date.date().isoformat() for d in deltas],
        "change": [_badge_text(d.value) for d in deltas],
    })
    print(df.to_string(index=False))

    ticks = tick_marks([d.date for d in deltas], ctx.config.tick_count)
    print("Date axis: " + ", ".join(t.strftime("%m/%d") for t in ticks))
    return 0


def cmd_export(args, ctx: TrackerContext) -> int:
    output = Path(args.output) if args.output else ctx.storage.backup_file()
    document = export_document(ctx.store, ctx.config.api_key)
    write_backup(document, output)
    print(f"💾 Backup written to {output}")
    return 0


def cmd_import(args, ctx: TrackerContext) -> int:
    source = Path(args.file)
    document = read_backup(source)

    # Decoded into a separate store; the current data stays intact until both files are written.
    restored = TimeSeriesStore()
    result = import_document(restored, document)

    safety = ctx.storage.backup_file(label="pre_restore")
    write_backup(export_document(ctx.store, ctx.config.api_key), safety)

    ctx.loader.save(ctx.config.with_api_key(result.credential))
    try:
        ctx.store_file.save(restored)
    except Exception:
        logger.error("Could not save the restored channels, putting the previous API key back")
        ctx.loader.save(ctx.config)
        raise
    ctx.store = restored
    ctx.storage.archive_backup(source)

    print(
        f"♻️  Restored {result.channel_count} channels and "
        f"{result.snapshot_count} snapshots (previous data saved to {safety})"
    )
    return 0


def cmd_report(args, ctx: TrackerContext) -> int:
    paths = HistoryReport(ctx.storage.reports_path).save_all(ctx.store)
    if not paths:
        print("No history recorded yet, nothing to report.")
        return 0
    print(f"📄 Saved {len(paths)} history reports to {ctx.storage.reports_path}")
    return 0


def _badge_text(value: int) -> str:
    badge = delta_badge(value)
    return badge.text if badge else ""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="YouTube Channel Tracker")
    parser.add_argument("--config", type=str,
                        default=os.environ.get("YT_TRACKER_CONFIG", DEFAULT_CONFIG),
                        help="Path to config.yaml")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("set-key", help="Save the YouTube Data API key.")
    p.add_argument("key", type=str)
    p.set_defaults(handler=cmd_set_key)

    p = sub.add_parser("add", help="Track a channel by ID (UC...), @handle, URL or username.")
    p.add_argument("identifier", type=str)
    p.set_defaults(handler=cmd_add)

    p = sub.add_parser("remove", help="Stop tracking a channel and delete its history.")
    p.add_argument("channel_id", type=str)
    p.set_defaults(handler=cmd_remove)

    p = sub.add_parser("list", help="List tracked channels with their latest metrics.")
    p.set_defaults(handler=cmd_list)

    p = sub.add_parser("refresh", help="Fetch today's metrics for one or all channels.")
    p.add_argument("channel_id", type=str, nargs="?")
    p.set_defaults(handler=cmd_refresh)

    range_choices = [r.value for r in ChartRange]
    metric_choices = [m.value for m in Metric]

    p = sub.add_parser("history", help="Show a channel's snapshot history.")
    p.add_argument("channel_id", type=str)
    p.add_argument("--range", choices=range_choices)
    p.add_argument("--metric", choices=metric_choices, default=Metric.SUBSCRIBERS.value)
    p.add_argument("--csv", action="store_true", help="Also save the table to reports/.")
    p.set_defaults(handler=cmd_history)

    p = sub.add_parser("deltas", help="Show day-over-day changes for a metric.")
    p.add_argument("channel_id", type=str)
    p.add_argument("--range", choices=range_choices)
    p.add_argument("--metric", choices=metric_choices, default=Metric.SUBSCRIBERS.value)
    p.set_defaults(handler=cmd_deltas)

    p = sub.add_parser("export", help="Write a full backup (channels, history, API key).")
    p.add_argument("--output", type=str, help="Backup file path (default: storage/backups/...).")
    p.set_defaults(handler=cmd_export)

    p = sub.add_parser("import", help="Replace ALL data with the contents of a backup file.")
    p.add_argument("file", type=str)
    p.set_defaults(handler=cmd_import)

    p = sub.add_parser("report", help="Save a history CSV for every channel to reports/.")
    p.set_defaults(handler=cmd_report)

    return parser


def main(argv: Optional[List[str]] = None, fetcher=None) -> int:
    """Main execution entry for the channel tracker."""
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    config_path = Path(args.config)
    try:
        config = load_configuration(config_path)
    except ConfigValidationError as e:
        logger.error(f"Configuration validation failed: {e}")
        return 1

    storage = StorageManager(str(resolve_storage_root(config, config_path)))
    attach_log_file(storage.logs_path)

    store_file = StoreFile(storage.store_path)
    try:
        store = store_file.load()
    except TrackerError as e:
        logger.error(f"Could not load tracked channels: {e}")
        return 1

    ctx = TrackerContext(
        config=config,
        loader=ConfigLoader(config_path),
        storage=storage,
        store_file=store_file,
        store=store,
        fetcher=fetcher or YouTubeClient()
    )

    try:
        return args.handler(args, ctx)
    except DuplicateChannelError as e:
        logger.error(f"{e}")
        return 1
    except NotFoundError as e:
        logger.error(f"Not found: {e}")
        return 1
    except TrackerError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    except Exception as e:
        logger.error(f"Unexpected error during {args.command}: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
