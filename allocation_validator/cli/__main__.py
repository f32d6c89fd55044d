from __future__ import annotations

import argparse
import logging
import sys
import time
from dataclasses import replace
from pathlib import Path

from ..config.loader import AppConfig, ConfigError, default_config, load_config, load_rules
from ..errors import DependencyCycleError
from ..logging.init import log_summary, setup_logging
from ..logging.issue_log import IssueLogBuffer
from ..models.issue import IssueType, ValidationIssue
from ..models.parsed_data import Sheet
from ..services.summary import render_summary_line
from ..sheets.reader import SheetReadError, load_sheet
from ..validation.context import ValidationContextBuilder
from ..validation.engine import ValidationEngine

"""CLI entrypoint.

Flow:
- Load config (``--config`` or ``config/validator.yml`` if present, else defaults)
- Load the clients / workers / tasks sheets (CLI paths override config sources)
- Run the validation engine, optionally followed by the auto-fix loop
- Log one line per issue, write the JSON Lines issue log, print SUMMARY
"""

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_VALIDATION_ERRORS = 2

DEFAULT_CONFIG_PATH = Path("config/validator.yml")

_LEVELS = {
    IssueType.ERROR: logging.ERROR,
    IssueType.WARNING: logging.WARNING,
    IssueType.INFO: logging.INFO,
}


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="allocation-validator",
        description="Validate client / worker / task allocation sheets",
    )
    p.add_argument("--config", type=Path, help=f"YAML config file (default: {DEFAULT_CONFIG_PATH} if present)")
    p.add_argument("--clients", type=Path, help="Clients sheet (.csv / .xlsx)")
    p.add_argument("--workers", type=Path, help="Workers sheet (.csv / .xlsx)")
    p.add_argument("--tasks", type=Path, help="Tasks sheet (.csv / .xlsx)")
    p.add_argument("--rules", type=Path, help="Business rules file (.json / .yml)")
    p.add_argument("--strict", action="store_true", help="Stop after the first validator reporting errors")
    p.add_argument("--auto-fix", action="store_true", help="Apply mechanical fixes and re-validate")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--no-issue-log", action="store_true", help="Do not write the JSON Lines issue log")
    return p.parse_args(argv)


def _load_app_config(args: argparse.Namespace) -> AppConfig:
    if args.config is not None:
        cfg = load_config(args.config)
    elif DEFAULT_CONFIG_PATH.exists():
        cfg = load_config(DEFAULT_CONFIG_PATH)
    else:
        cfg = default_config()

    sources = dict(cfg.sources)
    for sheet in Sheet:
        path = getattr(args, sheet.value)
        if path is not None:
            sources[sheet] = path

    rules = cfg.rules
    if args.rules is not None:
        rules = (*rules, *load_rules(args.rules))

    validation = cfg.validation
    if args.strict:
        validation = replace(validation, strict_mode=True)
    if args.auto_fix:
        validation = replace(validation, auto_fix=True)
    return replace(cfg, sources=sources, rules=rules, validation=validation)


def _format_issue(issue: ValidationIssue) -> str:
    where = issue.sheet.value if issue.sheet else "-"
    row = f" row={issue.row}" if issue.row is not None else ""
    column = f" column={issue.column}" if issue.column else ""
    text = f"{where}{row}{column} [{issue.category.value}] {issue.message}"
    if issue.suggestion:
        text += f" (suggestion: {issue.suggestion})"
    return text


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # Only read the process arguments when none were given; an empty list
    # means "no arguments".
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)

    if args.debug:
        for h in logger.handlers:
            h.setLevel("DEBUG")
        logger.setLevel("DEBUG")
        logger.debug("debug mode enabled")

    started = time.perf_counter()
    try:
        cfg = _load_app_config(args)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if not cfg.sources:
        logger.error("no input sheets: pass --clients / --workers / --tasks or set sources in the config")
        return EXIT_FATAL

    builder = ValidationContextBuilder().with_config(cfg.validation).with_rules(cfg.rules)
    for sheet, path in cfg.sources.items():
        try:
            data = load_sheet(path)
        except SheetReadError as e:
            logger.error(f"{sheet.value}: {e}")
            return EXIT_FATAL
        logger.info(f"Loaded {sheet.value}: {len(data)} rows from {path}")
        getattr(builder, f"with_{sheet.value}")(data)
    context = builder.build()

    engine = ValidationEngine(show_progress=True)
    try:
        issues = engine.run_validation(context)
        if cfg.validation.auto_fix:
            context, fixes = engine.auto_fix(context)
            applied = sum(1 for f in fixes if f.success)
            logger.info(f"auto-fix: applied={applied} failed={len(fixes) - applied}")
            issues = engine.run_validation(context)
    except DependencyCycleError as e:
        logger.error(f"engine: {e}")
        return EXIT_FATAL

    for issue in issues:
        logger.log(_LEVELS[issue.type], _format_issue(issue))

    if not args.no_issue_log and issues:
        buffer = IssueLogBuffer(cfg.issue_log_dir)
        buffer.extend(issues)
        path = buffer.flush()
        logger.info(f"issue log: {path}")

    assert engine.last_summary is not None
    summary_line = render_summary_line(engine.last_summary, time.perf_counter() - started)
    # log_summary adds the "SUMMARY " label itself
    log_summary(summary_line[8:])

    if engine.last_summary.errors > 0:
        return EXIT_VALIDATION_ERRORS
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
