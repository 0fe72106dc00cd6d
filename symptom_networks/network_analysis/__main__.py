"""
CLI entry point for `python -m symptom_networks.network_analysis`.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from symptom_networks.preprocessing import DEFAULT_SYMPTOM_CSV

from . import AVAILABLE_METHODS, SYMPTOM_SETS, list_methods, run


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Symptom Network Analysis CLI")
    parser.add_argument("--data", "-d", type=Path, default=DEFAULT_SYMPTOM_CSV, help="Delimited symptom table.")
    parser.add_argument("--method", "-m", nargs="+", default=["ising"], help="One or more estimation methods.")
    parser.add_argument("--symptom-set", "-s", type=str, default="dep_gad", choices=sorted(SYMPTOM_SETS),
                        help="Symptom set name.")
    parser.add_argument("--n-lambdas", type=int, default=None, help="Penalty-path length.")
    parser.add_argument("--lambda-min-ratio", type=float, default=None, help="Smallest/largest penalty ratio.")
    parser.add_argument("--gamma", type=float, default=None, help="EBIC hyperparameter.")
    parser.add_argument("--rule", type=str, default=None, choices=["AND", "OR"], help="Ising combination rule.")
    parser.add_argument("--tol", type=float, default=None, help="Solver convergence tolerance.")
    parser.add_argument("--max-iter", type=int, default=None, help="Solver iteration cap per penalty.")
    parser.add_argument(
        "--correlation",
        type=str,
        default="pearson",
        choices=["pearson", "spearman"],
        help="Correlation metric for cor/pcor/ggm.",
    )
    parser.add_argument("--bootstrap", type=int, default=0, help="Bootstrap iterations for edge stability.")
    parser.add_argument("--bootstrap-frac", type=float, default=1.0, help="Bootstrap sample fraction.")
    parser.add_argument("--output", "-o", type=Path, default=None, help="Output root directory.")
    parser.add_argument("--no-figures", action="store_true", help="Skip network and heatmap figures.")
    parser.add_argument("--list", action="store_true", help="List available methods and exit.")

    args = parser.parse_args(argv)

    if args.list:
        list_methods()
        sys.exit(0)

    unknown = [m for m in args.method if m not in AVAILABLE_METHODS]
    if unknown:
        raise SystemExit(f"Unknown method(s) {unknown}. Use --list to inspect options.")

    run(
        data_path=args.data,
        methods=args.method,
        symptom_set=args.symptom_set,
        config_overrides={
            "n_lambdas": args.n_lambdas,
            "lambda_min_ratio": args.lambda_min_ratio,
            "gamma": args.gamma,
            "rule": args.rule,
            "tol": args.tol,
            "max_iter": args.max_iter,
        },
        correlation=args.correlation,
        bootstrap_iter=args.bootstrap,
        bootstrap_fraction=args.bootstrap_frac,
        output_root=args.output,
        make_figures=not args.no_figures,
        verbose=True,
    )


if __name__ == "__main__":
    main()
