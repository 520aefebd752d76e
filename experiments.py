"""
Huffman codec experiments: tree-walk decoding vs table decoding

Runs repeated compress/decompress passes over synthetic datasets and records
build, encode and decode timings, compressed size, padding and tree shape

Outputs (in --outdir):
  - metrics.csv     (raw row per run per decode pipeline)
  - summary.csv     (grouped mean/stdev)
  - *.png           (charts)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --runs 3 --exp1_size_kb 256 --exp2_max_kb 2048
  python experiments.py --outdir results --exp1_generators uniform256,zipf128,single_symbol
"""

from __future__ import annotations

import argparse
import csv
import random
import statistics
import time
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

import bitpack
import codec
import huffman as huff

# pipeline name -> decoder(packed, root, code_map, bit_length)
DECODERS: Dict[str, Callable] = {
    "tree": lambda packed, root, code_map, bit_length: bitpack.decode(packed, root),
    "table": lambda packed, root, code_map, bit_length: bitpack.decode_with_table(packed, code_map, bit_length),
}
PIPELINES = tuple(DECODERS)


def _timed(fn, *args):
    start = time.perf_counter_ns()
    result = fn(*args)
    return result, (time.perf_counter_ns() - start) / 1_000_000.0


# Synthetic datasets
#
# Each dataset is a (symbols, weights) distribution sampled with
# random.Random.choices; weights of None means uniform

ENGLISH_LIKE_WEIGHTS = {
    " ": 13.0,
    "\n": 1.5,
    "etaoinshrdlu": 6.0,
    "cmfwgypbvk": 2.5,
    "jxq": 1.2,
}

Distribution = Tuple[List[int], Optional[List[float]]]


def uniform(alphabet: int) -> Distribution:
    return list(range(alphabet)), None

def zipf_like(alphabet: int, s: float = 1.2) -> Distribution:
    return list(range(alphabet)), [1.0 / ((i + 1) ** s) for i in range(alphabet)]

def dominated_by(symbol: int, share: float) -> Distribution:
    others = [i for i in range(256) if i != symbol]
    return [symbol] + others, [share] + [(1.0 - share) / len(others)] * len(others)

def text_like(groups: Dict[str, float]) -> Distribution:
    # letter groups count for both cases, whitespace keys stand for themselves
    symbols, weights = [], []
    for chars, weight in groups.items():
        for ch in chars if chars.isspace() else chars + chars.upper():
            symbols.append(ord(ch))
            weights.append(weight)
    return symbols, weights


GENERATOR_REGISTRY: Dict[str, Distribution] = {
    "uniform256": uniform(256),
    "uniform128": uniform(128),
    "zipf128": zipf_like(128),
    "zipf64": zipf_like(64),
    "repetitive90": dominated_by(ord('A'), 0.90),
    "repetitive99": dominated_by(ord('A'), 0.99),
    "english_like": text_like(ENGLISH_LIKE_WEIGHTS),
    "single_symbol": ([ord('A')], None),
}


def generate_dataset(name: str, size_bytes: int, seed: int) -> Tuple[str, bytes]:
    if name not in GENERATOR_REGISTRY:
        raise ValueError(f"unknown generator {name!r}, choose from {', '.join(sorted(GENERATOR_REGISTRY))}")
    symbols, weights = GENERATOR_REGISTRY[name]
    rng = random.Random(seed)
    return name, bytes(rng.choices(symbols, weights=weights, k=size_bytes))


# Experiment runner

@dataclass
class MetricRow:
    exp_name: str
    dataset_name: str
    file_size_bytes: int
    run_id: int
    pipeline: str  # "tree" or "table"
    unique_symbols: int
    tree_depth: int

    build_ms: float
    encode_ms: float
    decode_ms: float
    total_ms: float

    compressed_bytes: int
    bit_length: int
    pad_bits: int
    compression_ratio: float
    avg_code_length: float
    correctness_ok: int  # 1 or 0


def _build_tables(data: bytes):
    ft = huff.count_frequencies(data)
    return ft, huff.build(ft)


def run_one(data: bytes, pipeline: str) -> MetricRow:
    decoder = DECODERS.get(pipeline)
    if decoder is None:
        raise ValueError(f"pipeline must be one of {PIPELINES}")

    (ft, (root, code_map)), build_ms = _timed(_build_tables, data)
    (packed, pad_bits), encode_ms = _timed(bitpack.pack_bits, data, code_map)
    bit_length = len(packed) * 8 - pad_bits
    decoded, decode_ms = _timed(decoder, packed, root, code_map, bit_length)

    ratio = codec.compression_ratio(len(data), len(packed))
    return MetricRow(
        exp_name="",
        dataset_name="",
        file_size_bytes=len(data),
        run_id=0,
        pipeline=pipeline,
        unique_symbols=len(ft),
        tree_depth=huff.tree_depth(root),
        build_ms=build_ms,
        encode_ms=encode_ms,
        decode_ms=decode_ms,
        total_ms=build_ms + encode_ms + decode_ms,
        compressed_bytes=len(packed),
        bit_length=bit_length,
        pad_bits=pad_bits,
        compression_ratio=ratio if ratio is not None else 0.0,
        avg_code_length=bit_length / max(1, len(data)),
        correctness_ok=1 if decoded == data else 0,
    )


def write_csv(path: Path, fieldnames: List[str], rows: Iterable[dict]) -> None:
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=fieldnames)
        w.writeheader()
        w.writerows(rows)


def mean_stdev(vals: List[float]) -> Tuple[float, float]:
    if len(vals) == 1:
        return vals[0], 0.0
    return statistics.mean(vals), statistics.stdev(vals)


GROUP_KEYS = ("exp_name", "dataset_name", "file_size_bytes", "pipeline")
SUMMARY_METRICS = ("compression_ratio", "encode_ms", "decode_ms", "build_ms", "total_ms", "avg_code_length")


def summarize(rows: List[MetricRow]) -> Tuple[List[str], List[dict]]:
    """
    Group by exp_name, dataset_name, file_size_bytes, pipeline and compute mean/stdev
    """
    groups: Dict[tuple, List[MetricRow]] = {}
    for r in rows:
        groups.setdefault(tuple(getattr(r, k) for k in GROUP_KEYS), []).append(r)

    fieldnames = list(GROUP_KEYS) + ["n_runs"]
    for metric in SUMMARY_METRICS:
        fieldnames += [f"{metric}_mean", f"{metric}_stdev"]
    fieldnames.append("correctness_ok_rate")

    summary = []
    for key, items in sorted(groups.items()):
        row = dict(zip(GROUP_KEYS, key))
        row["n_runs"] = len(items)
        for metric in SUMMARY_METRICS:
            row[f"{metric}_mean"], row[f"{metric}_stdev"] = mean_stdev([getattr(x, metric) for x in items])
        row["correctness_ok_rate"] = sum(x.correctness_ok for x in items) / len(items)
        summary.append(row)
    return fieldnames, summary


# Plotting

def _line_chart(x, series: Dict[str, List[float]], outfile: Path, title: str, ylabel: str,
                xlabel: str = "", xticklabels: Optional[List[str]] = None) -> None:
    plt.figure()
    for label, y in series.items():
        plt.plot(x, y, marker="o", label=label)
    if xticklabels is not None:
        plt.xticks(x, xticklabels, rotation=20, ha="right")
    if xlabel:
        plt.xlabel(xlabel)
    plt.ylabel(ylabel)
    plt.title(title)
    if len(series) > 1:
        plt.legend()
    plt.tight_layout()
    plt.savefig(outfile, dpi=200)
    plt.close()


def plot_experiment_1(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp1_distribution"]
    if not exp_rows:
        return

    datasets = sorted(set(r.dataset_name for r in exp_rows))
    x = list(range(len(datasets)))

    def mean_for(dataset: str, pipeline: str, field: str) -> float:
        vals = [getattr(r, field) for r in exp_rows if r.dataset_name == dataset and r.pipeline == pipeline]
        return statistics.mean(vals) if vals else float("nan")

    # size does not depend on the decode pipeline
    _line_chart(x, {"huffman": [mean_for(d, "tree", "compression_ratio") for d in datasets]},
                outdir / "exp1_compression_ratio.png",
                "Experiment 1: Compression Ratio by Distribution",
                "Compressed Bytes / Original Bytes", xticklabels=datasets)

    _line_chart(x, {"huffman": [mean_for(d, "tree", "avg_code_length") for d in datasets]},
                outdir / "exp1_avg_code_length.png",
                "Experiment 1: Average Code Length by Distribution",
                "Bits per Input Byte", xticklabels=datasets)

    _line_chart(x, {p: [mean_for(d, p, "decode_ms") for d in datasets] for p in PIPELINES},
                outdir / "exp1_decode_time.png",
                "Experiment 1: Decode Time by Distribution",
                "Decode Time (ms)", xticklabels=datasets)


def plot_experiment_2(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp2_size_scaling"]
    if not exp_rows:
        return

    distributions = sorted(set(r.dataset_name for r in exp_rows))

    for dist in distributions:
        dist_rows = [r for r in exp_rows if r.dataset_name == dist]
        sizes = sorted(set(r.file_size_bytes for r in dist_rows))

        def mean_size(size: int, pipeline: str, field: str) -> float:
            vals = [getattr(r, field) for r in dist_rows if r.file_size_bytes == size and r.pipeline == pipeline]
            return statistics.mean(vals) if vals else float("nan")

        _line_chart(sizes, {"huffman": [mean_size(s, "tree", "encode_ms") for s in sizes]},
                    outdir / f"exp2_encode_time_{dist}.png",
                    f"Experiment 2: Encode Time vs Size ({dist})",
                    "Encode Time (ms)", xlabel="File Size (bytes)")

        _line_chart(sizes, {p: [mean_size(s, p, "decode_ms") for s in sizes] for p in PIPELINES},
                    outdir / f"exp2_decode_time_{dist}.png",
                    f"Experiment 2: Decode Time vs Size ({dist})",
                    "Decode Time (ms)", xlabel="File Size (bytes)")

        _line_chart(sizes, {p: [mean_size(s, p, "total_ms") for s in sizes] for p in PIPELINES},
                    outdir / f"exp2_total_time_{dist}.png",
                    f"Experiment 2: Total Runtime vs Size ({dist})",
                    "Total Time (ms) (build + encode + decode)", xlabel="File Size (bytes)")


def plot_code_lengths(data: bytes, outfile: Path, title: str) -> None:
    """Bar chart of code length per byte value, ordered by byte value"""
    ft = huff.count_frequencies(data)
    _, code_map = huff.build(ft)
    lengths = huff.code_lengths(code_map)
    symbols = sorted(lengths)

    plt.figure()
    plt.bar(symbols, [lengths[s] for s in symbols])
    plt.xlabel("Byte Value")
    plt.ylabel("Code Length (bits)")
    plt.title(title)
    plt.tight_layout()
    plt.savefig(outfile, dpi=200)
    plt.close()


# Main

def generator_list(s: str) -> List[str]:
    names = [x.strip() for x in s.split(",") if x.strip()]
    unknown = [n for n in names if n not in GENERATOR_REGISTRY]
    if unknown:
        raise argparse.ArgumentTypeError(
            f"unknown generator(s) {', '.join(unknown)}; choose from {', '.join(sorted(GENERATOR_REGISTRY))}"
        )
    return names

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Huffman codec experiments")
    ap.add_argument("--outdir", type=Path, default=Path("results"), help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration (>=3 recommended for timing)")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")
    ap.add_argument("--no_plots", action="store_true", help="Write CSV files only")

    # Experiment toggles
    ap.add_argument("--no_exp1", action="store_true", help="Disable experiment 1 (distribution)")
    ap.add_argument("--no_exp2", action="store_true", help="Disable experiment 2 (size scaling)")

    # Experiment 1 controls
    ap.add_argument("--exp1_size_kb", type=int, default=512, help="Experiment 1 fixed file size in KB")
    ap.add_argument("--exp1_generators", type=generator_list,
                    default="uniform256,zipf128,repetitive90,english_like,single_symbol",
                    help="Comma-separated dataset generator names for experiment 1")

    # Experiment 2 controls
    ap.add_argument("--exp2_min_kb", type=int, default=4, help="Experiment 2 min size in KB (power-of-two growth)")
    ap.add_argument("--exp2_max_kb", type=int, default=4096, help="Experiment 2 max size in KB (power-of-two growth)")
    ap.add_argument("--exp2_generators", type=generator_list, default="uniform256,zipf128,repetitive90",
                    help="Comma-separated dataset generator names for experiment 2")
    return ap


def run_config(exp_name: str, gen_name: str, size_b: int, runs: int, seed: int) -> List[MetricRow]:
    # one dataset per run, every decode pipeline on the same bytes
    rows = []
    for run_id in range(1, runs + 1):
        dataset_name, data = generate_dataset(gen_name, size_b, seed + run_id)
        for pipeline in PIPELINES:
            row = run_one(data, pipeline)
            row.exp_name, row.dataset_name, row.run_id = exp_name, dataset_name, run_id
            rows.append(row)
    return rows


def run_experiments(args: argparse.Namespace) -> List[MetricRow]:
    rows: List[MetricRow] = []

    # Experiment 1: distributions (fixed size)
    if not args.no_exp1:
        fixed_size = max(1, args.exp1_size_kb) * 1024
        for gen_name in args.exp1_generators:
            rows += run_config("exp1_distribution", gen_name, fixed_size, args.runs, args.seed)

    # Experiment 2: size scaling (powers of 2)
    if not args.no_exp2:
        size_b = max(1, args.exp2_min_kb) * 1024
        max_bytes = max(1, args.exp2_max_kb) * 1024
        sizes: List[int] = []
        while size_b <= max_bytes:
            sizes.append(size_b)
            size_b *= 2

        for gen_name in args.exp2_generators:
            for size_b in sizes:
                rows += run_config("exp2_size_scaling", gen_name, size_b, args.runs, args.seed + 10_000 + size_b)

    return rows


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    outdir = args.outdir
    outdir.mkdir(parents=True, exist_ok=True)

    rows = run_experiments(args)

    # Write raw and summary
    metrics_csv = outdir / "metrics.csv"
    summary_csv = outdir / "summary.csv"
    write_csv(metrics_csv, [f.name for f in fields(MetricRow)], (asdict(r) for r in rows))
    write_csv(summary_csv, *summarize(rows))

    # Plots
    if not args.no_plots:
        plot_experiment_1(rows, outdir)
        plot_experiment_2(rows, outdir)
        _, sample = generate_dataset("english_like", 64 * 1024, args.seed)
        plot_code_lengths(sample, outdir / "code_lengths_english_like.png",
                          "Code Length per Byte (english_like)")

    ok_rate = sum(r.correctness_ok for r in rows) / max(1, len(rows))
    print(f"Wrote {len(rows)} rows to {metrics_csv}")
    print(f"Wrote grouped summary to {summary_csv}")
    print(f"Correctness rate across all runs: {ok_rate:.3f}")
    if not args.no_plots:
        print("Charts saved in:", outdir.resolve())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
