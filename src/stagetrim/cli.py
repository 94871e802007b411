"""Command-line entrypoint for stagetrim."""
from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import Mapping, Optional, Sequence

from stagetrim.config import load_config
from stagetrim.errors import StageTrimError
from stagetrim.logging import configure_logging
from stagetrim.trim import RunResult, run_trim

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stagetrim",
        description="Remove the oldest custom staging label from a secret when too many exist.",
    )
    parser.add_argument("--secret-id", dest="secret_id", help="Secret name or ARN")
    parser.add_argument("--region", help="AWS region of the secret")
    parser.add_argument("--endpoint-url", dest="endpoint_url", help="Override the Secrets Manager endpoint")
    parser.add_argument("--threshold", help="Maximum number of manageable stages (default 18)")
    parser.add_argument(
        "--dry-run",
        dest="dry_run",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Report the stage that would be removed without removing it (--no-dry-run forces a real run)",
    )
    parser.add_argument(
        "--exclude-stages",
        dest="exclude_stages",
        help="Comma separated stages never to remove (default AWSCURRENT,AWSPREVIOUS,AWSPENDING)",
    )
    parser.add_argument("--config", type=Path, help="Path to a YAML config file")
    parser.add_argument("--log-level", dest="log_level", help="Logging level, e.g. DEBUG")
    return parser


def write_outputs(result: RunResult, environ: Mapping[str, str]) -> None:
    """Append result outputs to $GITHUB_OUTPUT when running as an action."""
    output_path = environ.get("GITHUB_OUTPUT")
    if not output_path:
        return
    with open(output_path, "a", encoding="utf-8") as handle:
        for key, value in result.to_outputs().items():
            handle.write(f"{key}={value}\n")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    overrides = {key: value for key, value in vars(args).items() if key != "config"}
    try:
        config = load_config(args.config, overrides)
        configure_logging(config.logging)
        result = run_trim(config.trim)
    except StageTrimError as exc:
        logging.basicConfig(level=logging.INFO)
        logger.error("%s", exc)
        return 1
    try:
        write_outputs(result, os.environ)
    except OSError as exc:
        if result.trimmed and result.removed is not None:
            logger.error(
                'Stage "%s" was already removed from version %s, but outputs could not be written: %s',
                result.removed.stage,
                result.removed.version_id,
                exc,
            )
        else:
            logger.error("Could not write outputs: %s", exc)
        return 1
    logger.info(
        "Done: trimmed=%s total_labels=%s manageable=%s",
        str(result.trimmed).lower(),
        result.total_label_count,
        result.manageable_count,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
