from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv
from tqdm import tqdm

from shadowcast.batch import BatchLimitError, check_batch_size, collect_inputs, run_batch
from shadowcast.io import load_params, load_raster, save_mask_png
from shadowcast.pipeline import run_stages


def _parse_rgb(value: str) -> Tuple[int, int, int]:
    parts = [p.strip() for p in value.split(",")]
    if len(parts) != 3:
        raise argparse.ArgumentTypeError(f"Expected R,G,B, got {value!r}")
    try:
        r, g, b = (int(p) for p in parts)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Expected integers in R,G,B, got {value!r}") from e
    return r, g, b


def _dump_stages(src: Path, debug_dir: Path, params) -> None:
    stages = run_stages(load_raster(str(src)), params)
    d = debug_dir / src.stem
    save_mask_png(stages.raw_alpha, str(d / "raw_alpha.png"), scale=1.0)
    save_mask_png(stages.object_mask, str(d / "object_mask.png"))
    save_mask_png(stages.shadow_mask, str(d / "shadow_mask.png"))
    save_mask_png(stages.shaved_mask, str(d / "shaved_mask.png"))
    save_mask_png(stages.feather, str(d / "feather.png"))
    save_mask_png(stages.final_alpha, str(d / "final_alpha.png"), scale=1.0)


def main(argv: Optional[list] = None) -> int:
    load_dotenv()

    parser = argparse.ArgumentParser(description="Cut out studio shots while keeping their cast shadow.")
    parser.add_argument("--input", required=True, nargs="+", help="Image files and/or directories (JPEG/PNG).")
    parser.add_argument("--output", required=True, type=str, help="Output directory for RGBA PNGs.")
    parser.add_argument("--params", type=str, default=None, help="JSON file with algorithm parameters.")
    parser.add_argument("--tolerance", dest="color_tolerance", type=float, default=None)
    parser.add_argument("--fade", dest="fade_strength", type=float, default=None)
    parser.add_argument("--shave", dest="shave_px", type=float, default=None)
    parser.add_argument("--feather", dest="feather_width", type=float, default=None)
    parser.add_argument("--threshold", dest="object_threshold", type=int, default=None)
    parser.add_argument("--boost", dest="alpha_boost", type=float, default=None)
    parser.add_argument("--dark", dest="global_dark_factor", type=float, default=None)
    parser.add_argument(
        "--bg",
        dest="manual_bg_color",
        type=_parse_rgb,
        default=None,
        help="Background key color R,G,B (disables corner auto-detection).",
    )
    parser.add_argument("--workers", type=int, default=None, help="Images processed concurrently.")
    parser.add_argument("--max-files", type=int, default=None, help="Batch cap (default: SHADOWCAST_MAX_FILES or 10).")
    parser.add_argument("--zip", action="store_true", help="Also bundle outputs into shadowcast_batch.zip.")
    parser.add_argument("--compare", action="store_true", help="Also write before/after sheets.")
    parser.add_argument("--debug", action="store_true", help="Dump intermediate masks under <output>/debug.")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)-20s - %(levelname)-8s - %(message)s",
        datefmt="%H:%M:%S",
    )

    params = load_params(
        args.params,
        color_tolerance=args.color_tolerance,
        fade_strength=args.fade_strength,
        shave_px=args.shave_px,
        feather_width=args.feather_width,
        object_threshold=args.object_threshold,
        alpha_boost=args.alpha_boost,
        global_dark_factor=args.global_dark_factor,
        manual_bg_color=args.manual_bg_color,
        auto_detect_bg=False if args.manual_bg_color is not None else None,
    )

    images = collect_inputs(args.input)
    if not images:
        print(f"No JPEG/PNG images found under {', '.join(args.input)}")
        return 0
    try:
        check_batch_size(images, args.max_files)
    except BatchLimitError as e:
        print(str(e))
        return 2

    total0 = time.perf_counter()
    with tqdm(total=len(images), desc="Processing", unit="img") as bar:

        def _progress(done: int, total: int, name: str) -> None:
            bar.set_postfix_str(name)
            bar.update(1)

        report = run_batch(
            images,
            args.output,
            params,
            workers=args.workers,
            on_progress=_progress,
            archive=args.zip,
            compare=args.compare,
        )

    for res in report.results:
        name = Path(res.source_path).name
        if res.status != "ok":
            print(f"{name}: FAILED ({res.error})")
            continue
        t = res.timings
        print(
            f"{name}: {res.width}x{res.height} total={t.total_s:.3f}s "
            f"(load={t.load_s:.3f}s proc={t.process_s:.3f}s save={t.save_s:.3f}s)"
        )

    if args.debug:
        debug_dir = Path(args.output) / "debug"
        for res in report.results:
            if res.status == "ok":
                _dump_stages(Path(res.source_path), debug_dir, params)

    total1 = time.perf_counter()
    print(
        f"Done. {report.counts['ok']}/{report.counts['total']} images in {total1 - total0:.2f}s"
        + (f"\n- archive: {report.archive_path}" if report.archive_path else "")
    )
    return 0 if report.counts["failed"] == 0 else 1


if __name__ == "__main__":
    raise SystemExit(main())
