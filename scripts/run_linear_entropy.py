"""计算双模相干场 a 在各测量时刻的线性熵，并写出结果文件。"""
from __future__ import annotations

import argparse
from pathlib import Path

from nested_sums.config import ConcurrencyConfig, PrecisionConfig
from nested_sums.entropy import EntropyModel, EntropyParameters
from nested_sums.io import LinearEntropyResultWriter, parameters_metadata
from nested_sums.logging_utils import configure_logging
from nested_sums.reporting import plot_linear_entropy
from nested_sums.validation import normalization_check


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Linear entropy of field a after a state-reductive measurement.")
    parser.add_argument("--delta", type=float, default=50.0)
    parser.add_argument("--g12", type=float, default=1.0)
    parser.add_argument("--g23", type=float, default=1.0)
    parser.add_argument("--alpha1sq", type=int, default=25)
    parser.add_argument("--alpha2sq", type=int, default=25)
    parser.add_argument("--detected-state", type=int, default=0)
    parser.add_argument("--max-time", type=float, default=50.0)
    parser.add_argument("--interval", type=float, default=0.1)
    parser.add_argument("--backend", choices=("serial", "thread", "process"),
                        default="process")
    parser.add_argument("--workers", type=int, default=None)
    parser.add_argument("--sqrt-precision", type=int, default=400)
    parser.add_argument("--output-dir", type=Path, default=Path("results"))
    parser.add_argument("--plot", action="store_true", default=False)
    parser.add_argument("--log-level", default="WARNING")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    configure_logging(args.log_level)

    params = EntropyParameters(
        delta=args.delta,
        g12=args.g12,
        g23=args.g23,
        alpha1sq=args.alpha1sq,
        alpha2sq=args.alpha2sq,
        detected_state=args.detected_state,
        max_time=args.max_time,
        interval=args.interval,
    )
    model = EntropyModel(
        params,
        precision=PrecisionConfig(sqrt_precision=args.sqrt_precision),
        concurrency=ConcurrencyConfig(backend=args.backend, max_workers=args.workers),
    )

    print(f"每个求和维度 {params.max_terms} 项，构建 Q 系数表...")
    model.prepare()

    report = normalization_check(model, 0.0)
    print(f"Normalization check: |B| squared is {report.b0 ** 2:.12f}")
    if not report.passed:
        print(">>> 归一化偏差较大 (WARN)")

    times = params.times()
    model.build_b_tables(times)
    print(f"Calculating Linear Entropy for each increment {params.interval} of scaled time")
    values = []
    for time in times:
        value = model.linear_entropy(time).calculate()
        values.append(value)
        print(f"{round(float(time), 1):<4} {value:16.12f}")

    writer = LinearEntropyResultWriter(args.output_dir)
    stem = writer.file_stem(params)
    path = writer.save(stem, times=times, values=values,
                       metadata=parameters_metadata(params))
    print(f"结果已写入 {path}")

    if args.plot:
        plot_path = args.output_dir / f"{stem}.png"
        plot_linear_entropy(
            times, values,
            title=f"Linear entropy, nbar = {params.alpha1sq}/{params.alpha2sq}",
            output_path=str(plot_path),
        )
        print(f"曲线已保存至 {plot_path}")


if __name__ == "__main__":
    main()
