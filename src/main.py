"""Command line entry point: compile scenario manifests into SIPp XML and pcap files."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from config.settings import get_settings
from scenario.errors import ScenarioError
from scenario.manifest import load_manifest

LOGGER = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="callflow",
        description="Compile YAML call-flow manifests into SIPp scenarios and media captures",
    )
    parser.add_argument("manifests", nargs="+", type=Path, help="Scenario manifest (YAML)")
    parser.add_argument(
        "-o",
        "--output-dir",
        type=Path,
        default=settings.output_dir,
        help="Directory for the generated .xml and .pcap files",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        default=settings.log_level.upper(),
    )
    parser.add_argument(
        "--print",
        dest="print_xml",
        action="store_true",
        help="Print the scenario XML to stdout instead of writing files",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    for manifest in args.manifests:
        try:
            scenario = load_manifest(manifest)
            if args.print_xml:
                sys.stdout.write(scenario.to_xml())
                continue
            artifacts = scenario.compile(args.output_dir)
        except ScenarioError as exc:
            LOGGER.error("%s: %s", manifest, exc.detail)
            return 1

        LOGGER.info(
            "Compiled %s -> %s, %s",
            manifest,
            artifacts.scenario_path,
            artifacts.media_path,
        )

    return 0


if __name__ == "__main__":
    sys.exit(main())
