"""
Command-line interface for the distance analysis pipeline.

Usage:
    roche-limit                          # Run every study
    roche-limit --study capability       # Run one study (repeatable)
    roche-limit --build                  # Write distance/independence tables
    roche-limit --build --nmc NMC.csv --wdi WDI.csv
    roche-limit --figures                # Also draw figures
    roche-limit --log                    # Save output to timestamped log file
"""
from __future__ import annotations

import argparse
import logging
import sys
import time
from datetime import datetime
from pathlib import Path

from roche_limit.config import STUDIES, Paths, get_study, setup_logging
from roche_limit.errors import PipelineError

__all__ = ["main"]


class TeeOutput:
    """Write output to both a stream and a file."""

    def __init__(self, stream, filepath: Path):
        self.terminal = stream
        self.log = open(filepath, "w", encoding="utf-8")

    def write(self, message: str) -> None:
        self.terminal.write(message)
        self.log.write(message)

    def flush(self) -> None:
        self.terminal.flush()
        self.log.flush()

    def close(self) -> None:
        self.log.close()


def _banner() -> None:
    """Print the startup banner."""
    print()
    print("╔════════════════════════════════════════════════════════════╗")
    print("║            THE GEOPOLITICAL ROCHE LIMIT                    ║")
    print("║     Distance from Washington and Latin American States     ║")
    print("╚════════════════════════════════════════════════════════════╝")


def _section(title: str) -> None:
    print("\n" + "=" * 60)
    print(f" {title}")
    print("=" * 60)


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="roche-limit",
        description="Distance and national capability in Latin America",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Studies:\n" + "\n".join(f"  {s.name:<16}{s.title}" for s in STUDIES.values()),
    )
    parser.add_argument("--build", action="store_true", help="Write raw input tables only")
    parser.add_argument("--nmc", type=Path, help="COW NMC extract to aggregate into cinc_data.csv")
    parser.add_argument("--wdi", type=Path, help="World Bank WDI extract to aggregate into wdi_data.csv")
    parser.add_argument(
        "--study", action="append", choices=sorted(STUDIES), help="Study to run (default: all)"
    )
    parser.add_argument("--figures", action="store_true", help="Also draw figures")
    parser.add_argument("--data-dir", type=Path, default=Paths.data_dir, help="Raw input directory")
    parser.add_argument("--out-dir", type=Path, default=Paths.out_dir, help="Output directory")
    parser.add_argument("--log", action="store_true", help="Save output to timestamped log file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version="roche-limit 1.0.0")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    args = _parser().parse_args(argv)
    start = time.time()
    paths = Paths(data_dir=args.data_dir, out_dir=args.out_dir)

    tee = None
    log_path = None
    if args.log:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        Path(paths.out_dir).mkdir(parents=True, exist_ok=True)
        log_path = Path(paths.out_dir) / f"roche_limit_{timestamp}.log"
        tee = TeeOutput(sys.stdout, log_path)
        sys.stdout = tee

    level = logging.DEBUG if args.verbose else logging.INFO
    setup_logging(level, sys.stdout)

    try:
        _banner()
        if log_path:
            print(f"\n  Logging to: {log_path}")

        if args.build or args.nmc or args.wdi:
            _section("BUILD RAW TABLES")
            from roche_limit.sources import build_raw_tables

            build_raw_tables(paths, nmc_csv=args.nmc, wdi_csv=args.wdi)
            if args.build and not args.study:
                return 0

        studies = [get_study(name) for name in (args.study or STUDIES)]

        missing = sorted({str(p) for s in studies for p in paths.validate(s)})
        if missing:
            print("Error: Missing input files:")
            for f in missing:
                print(f"  - {f}")
            return 1

        from roche_limit.pipeline import run_study

        n_failed = 0
        for study in studies:
            _section(study.title.upper())
            report = run_study(paths, study, figures=args.figures)
            n_failed += len(report.failures)
            print(f"\n  Outputs saved to: {paths.study_dir(study)}/")

        elapsed = time.time() - start
        print()
        print("═" * 60)
        print(f" COMPLETE ({elapsed:.1f}s)")
        print("═" * 60)
        if n_failed:
            print(f"  {n_failed} model(s) failed; see model_failures.csv")
        if log_path:
            print(f"  Log: {log_path}")

        return 0

    except PipelineError as e:
        print(f"\nError: {e}")
        return 1

    finally:
        logging.getLogger("roche_limit").handlers.clear()
        if tee:
            sys.stdout = tee.terminal
            tee.close()


if __name__ == "__main__":
    sys.exit(main())
