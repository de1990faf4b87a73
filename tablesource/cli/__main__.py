from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from tablesource.config.loader import DEFAULT_CONFIG_PATH, ConfigError, apply_env_overrides, load_config
from tablesource.errors import InvalidConfigurationError
from tablesource.io.reader import RecordReadError, read_records
from tablesource.logging.diagnostics import DiagnosticBuffer
from tablesource.logging.init import enable_debug, log_summary, setup_logging
from tablesource.models.config_models import ListRange
from tablesource.services.data_source import CollectionViewer, TableDataSource
from tablesource.services.progress import ReplayProgress
from tablesource.services.record_factory import KeysRecordFactory, record_keys
from tablesource.services.replay import ReplayError, replay_steps
from tablesource.services.summary import render_summary_line
from tablesource.services.validator import RuleValidatorService

"""CLI entrypoint.

Flow:
- Load .env (TABLESOURCE_* option overrides) and the YAML table config
- Read the initial records (optional) and build the data source
- Connect one viewer with the requested window
- Replay the config's steps, print the resulting records as JSON lines and
  the rows visible in the window, then the SUMMARY line
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_REJECTED = 2


def _parse_window(text: str) -> ListRange:
    """``START:END`` or ``START:`` -> ListRange."""
    start_s, sep, end_s = text.partition(":")
    try:
        start = int(start_s) if start_s else 0
        end = int(end_s) if end_s else -1
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid window: {text!r}") from e
    if not sep or start < 0:
        raise argparse.ArgumentTypeError(f"invalid window: {text!r} (expected START:END)")
    return ListRange(start, end)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Replay editing operations on a table data source")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML table configuration")
    p.add_argument("--records", type=Path, default=None, help="Initial records (.csv, .xlsx or .json)")
    p.add_argument("--window", type=_parse_window, default=ListRange(), help="Visible range START:END")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env with python-dotenv; its values win over the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _to_json_line(record: Any) -> str:
    # Dates and numpy scalars from pandas fall back to str()
    return json.dumps(record, ensure_ascii=False, default=str)


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None means "read sys.argv"; [] must stay an empty argument list
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    if args.debug:
        enable_debug()

    _load_env_file(Path(".env"), override=True)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL
    options = apply_env_overrides(cfg.options)

    records: list[dict[str, Any]] = []
    if args.records is not None:
        try:
            records = read_records(args.records)
        except RecordReadError as e:
            logger.error(f"records: {e}")
            return EXIT_FATAL
    logger.info(f"Loaded {len(records)} records")

    record_factory = KeysRecordFactory(cfg.fields) if cfg.fields else None
    # Every record field needs a control, ruled or not
    record_fields = cfg.fields or (record_keys(records[0]) if records else [])
    validator_service = RuleValidatorService(cfg.validation, record_fields) if cfg.validation else None
    diagnostics = DiagnosticBuffer()
    try:
        source = TableDataSource(records, record_factory, validator_service, options, diagnostics)
    except InvalidConfigurationError as e:
        logger.error(f"table: {e}")
        return EXIT_FATAL

    viewer = CollectionViewer()
    visible_rows: list[Any] = []
    view = source.connect(viewer)
    viewer.set_range(args.window.start, args.window.end)
    view.subscribe(lambda rows: visible_rows.__setitem__(slice(None), rows))

    changes = 0

    def _on_records(_: list[Any]) -> None:
        nonlocal changes
        changes += 1

    source.datasource_channel.subscribe(_on_records)

    try:
        with ReplayProgress(len(cfg.steps)) as progress:
            result = replay_steps(source, cfg.steps, progress)
    except ReplayError as e:
        logger.error(f"replay: {e}")
        return EXIT_FATAL
    finally:
        source.disconnect(viewer)
        flushed = diagnostics.flush()
        if flushed is not None:
            logger.info(f"diagnostics written to {flushed}")

    logger.info(f"record changes published={changes}")
    for record in result.final_records:
        print(_to_json_line(record))

    window = args.window
    logger.info(f"window start={window.start} end={window.end} visible={len(visible_rows)}")
    for row in visible_rows:
        logger.info(f"row id={row.id} editing={row.editing} data={_to_json_line(row.current_data)}")

    summary_line = render_summary_line(result)
    # log_summary adds the "SUMMARY " label itself
    log_summary(summary_line[len("SUMMARY "):])

    if result.rejected_steps > 0:
        return EXIT_REJECTED
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
