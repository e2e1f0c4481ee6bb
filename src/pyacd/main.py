#!/usr/bin/env python
"""
Command line driver for the Acadian Variant.

Usage:
    pyacd-grow YEARS stands.csv [--trees-dir DIR] [--output grown.csv]

The stand file holds one row per stand with the columns

    region, stand_id, units, year, csi, elevation, cdef, use_sbw, use_hw,
    use_thin, use_ingrowth, cut_point, min_dbh

where ``units`` is 0 for metric and 1 for imperial input. The tree list of
each stand is read from ``<stand_id>.csv`` with the columns

    stand_id, plot_id, tree_id, species, dbh, height, tph, crown_ratio, form, risk

The grown tree lists of all stands are written as one CSV.
"""
import argparse
import sys
from pathlib import Path
from typing import List, Optional

import pandas as pd
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .exceptions import ACDError, InvalidDataError
from .logging_config import setup_logging
from .runner import grow_tree_list

console = Console(stderr=True)

STAND_COLUMNS = ['region', 'stand_id', 'units', 'year', 'csi', 'elevation', 'cdef', 'use_sbw',
                 'use_hw', 'use_thin', 'use_ingrowth', 'cut_point', 'min_dbh']
UNIT_CODES = {0: 'metric', 1: 'imperial'}


def read_stand_file(path: Path) -> pd.DataFrame:
    """Read and check the stand information file.

    Raises:
        InvalidDataError: If a column is missing or a units code is unknown
    """
    stands = pd.read_csv(path, skipinitialspace=True, dtype={'stand_id': str})
    missing = [c for c in STAND_COLUMNS if c not in stands.columns]
    if missing:
        raise InvalidDataError(f"stand file {path}", f"missing columns {missing}")
    unknown = set(stands['units']) - set(UNIT_CODES)
    if unknown:
        raise InvalidDataError(f"stand file {path}", f"unknown units codes {sorted(unknown)}")
    return stands


def read_tree_file(path: Path, stand_id: str) -> pd.DataFrame:
    """Read the tree list of one stand.

    Raises:
        InvalidDataError: If a record belongs to another stand
    """
    trees = pd.read_csv(path, skipinitialspace=True, dtype={'stand_id': str})
    if 'stand_id' in trees.columns and (trees['stand_id'] != stand_id).any():
        raise InvalidDataError(f"tree file {path}", f"records for a stand other than {stand_id}")
    return trees.drop(columns=['stand_id'], errors='ignore')


def grow_stands(years: int, stands: pd.DataFrame, trees_dir: Path,
                seed: Optional[int] = None) -> pd.DataFrame:
    """Grow every stand of the stand file and combine the results."""
    results: List[pd.DataFrame] = []

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Growing stands...", total=len(stands))
        for info in stands.itertuples(index=False):
            stand_id = str(info.stand_id)
            progress.update(task, description=f"Growing stand {stand_id}...")
            trees = read_tree_file(trees_dir / f"{stand_id}.csv", stand_id)
            grown = grow_tree_list(
                trees, years,
                region=info.region,
                year=int(info.year),
                units=UNIT_CODES[int(info.units)],
                csi=float(info.csi),
                elevation=float(info.elevation),
                cdef=float(info.cdef),
                use_sbw_mod=bool(info.use_sbw),
                use_hw_mod=bool(info.use_hw),
                use_thin_mod=bool(info.use_thin),
                use_ingrowth=bool(info.use_ingrowth),
                cut_point=float(info.cut_point),
                min_dbh=float(info.min_dbh),
                random_state=seed,
            )
            grown.insert(0, 'stand_id', stand_id)
            results.append(grown)
            progress.advance(task)

    if not results:
        return pd.DataFrame(columns=['stand_id'])
    return pd.concat(results, ignore_index=True)


def print_summary(grown: pd.DataFrame) -> None:
    """Print records and density per stand."""
    table = Table(title="Grown stands")
    table.add_column("Stand", style="cyan")
    table.add_column("Records", justify="right")
    table.add_column("Density", justify="right")

    for stand_id, group in grown.groupby('stand_id', sort=False):
        table.add_row(str(stand_id), str(len(group)), f"{group['tph'].sum():.1f}")
    console.print(table)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='pyacd-grow',
        description="Grow tree lists with the Acadian Variant growth model."
    )
    parser.add_argument('years', type=int, help="Number of years to project each tree list")
    parser.add_argument('stand_file', type=Path, help="Stand information CSV")
    parser.add_argument('--trees-dir', type=Path, default=None,
                        help="Directory of the <stand_id>.csv tree files "
                             "(default: the stand file's directory)")
    parser.add_argument('-o', '--output', type=Path, default=None,
                        help="Output CSV (default: standard output)")
    parser.add_argument('--seed', type=int, default=None, help="Seed for the expansion jitter")
    parser.add_argument('-v', '--verbose', action='store_true', help="Enable debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging('DEBUG' if args.verbose else 'WARNING')

    if args.years < 0:
        console.print("[red]Number of years must not be negative[/red]")
        return 2
    if not args.stand_file.is_file():
        console.print(f"[red]Did not find or could not open {args.stand_file}[/red]")
        return 3

    trees_dir = args.trees_dir or args.stand_file.parent

    try:
        stands = read_stand_file(args.stand_file)
        grown = grow_stands(args.years, stands, trees_dir, seed=args.seed)
    except FileNotFoundError as e:
        console.print(f"[red]Did not find or could not open {e.filename}[/red]")
        return 4
    except ACDError as e:
        console.print(Panel.fit(str(e), title="Growth failed", border_style="red"))
        return 1

    if args.output is None:
        grown.to_csv(sys.stdout, index=False)
    else:
        grown.to_csv(args.output, index=False)
        console.print(f"[green]Wrote {len(grown)} records to {args.output}[/green]")

    print_summary(grown)
    return 0


if __name__ == '__main__':
    sys.exit(main())
