"""Command-line interface for the survey segmentation analysis."""

import argparse
import sys
from pathlib import Path

from survey_segments.config import DEFAULT_K, MAX_ITER, MAX_WORKERS, RANDOM_SEED, TOL
from survey_segments.errors import SegmentationError
from survey_segments.ingest import load_survey
from survey_segments.models import Dataset
from survey_segments.pipeline import print_header, run_analysis
from survey_segments.plots import plot_elbow_silhouette
from survey_segments.report import print_report, save_report, save_tables
from survey_segments.run_context import RunContext

DEFAULT_INPUT = Path("data_siswa.csv")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="survey-segments",
        description=(
            "Cluster survey respondents by gadget usage, stress and anxiety, "
            "and test score differences across usage durations."
        ),
    )
    parser.add_argument(
        "input",
        nargs="?",
        type=Path,
        default=DEFAULT_INPUT,
        help=f"Survey CSV file (default: {DEFAULT_INPUT})",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        help="Results root directory (default: results/)",
    )
    parser.add_argument(
        "--k",
        type=int,
        default=DEFAULT_K,
        help=f"Number of clusters for the final fit (default: {DEFAULT_K})",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=RANDOM_SEED,
        help=f"Random seed for k-means++ seeding (default: {RANDOM_SEED})",
    )
    parser.add_argument(
        "--max-iter",
        type=int,
        default=MAX_ITER,
        help=f"Maximum k-means iterations (default: {MAX_ITER})",
    )
    parser.add_argument(
        "--tol",
        type=float,
        default=TOL,
        help=f"Convergence tolerance on total centroid movement (default: {TOL})",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=MAX_WORKERS,
        help=f"Threads for the elbow loop (default: {MAX_WORKERS})",
    )
    parser.add_argument(
        "--no-plots",
        action="store_true",
        help="Skip the model selection PNG",
    )

    args = parser.parse_args(argv)

    if not args.input.exists():
        print(
            f"File not found: {args.input}. "
            "Make sure the survey CSV exists at that path.",
            file=sys.stderr,
        )
        sys.exit(1)

    with RunContext(
        dataset=args.input.stem,
        params=vars(args),
        results_root=args.output,
    ) as ctx:
        print(f"Survey Segmentation: {args.input}")
        print(f"Output:    {ctx.run_dir}")

        print_header("LOADING DATA")
        try:
            records = load_survey(args.input)
            dataset = Dataset.from_records(records)
            report = run_analysis(
                dataset,
                k=args.k,
                seed=args.seed,
                max_iter=args.max_iter,
                tol=args.tol,
                max_workers=args.workers,
            )
        except SegmentationError as exc:
            print(f"\nAnalysis failed: {exc}")
            ctx.fail(exc)
            sys.exit(1)

        print_report(report)

        print_header("SAVING OUTPUTS")
        save_report(report, ctx.run_dir)
        save_tables(report, dataset, ctx.data_dir)
        if not args.no_plots:
            plot_elbow_silhouette(report, ctx.plots_dir)
