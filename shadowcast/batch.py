from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from .config import ALLOWED_EXTS, ARCHIVE_NAME, DEFAULT_WORKERS, MANIFEST_NAME, MAX_FILES
from .contracts import AlgorithmParams, BatchReport, ImageResult, StageTimingsModel
from .io import make_comparison, output_name_for, write_archive, write_json
from .pipeline import process_image

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]


class BatchLimitError(ValueError):
    """Raised when more images are queued than the batch cap allows."""


def get_max_files() -> int:
    try:
        return int(os.getenv("SHADOWCAST_MAX_FILES", str(MAX_FILES)))
    except ValueError:
        return MAX_FILES


def get_workers() -> int:
    try:
        return max(1, int(os.getenv("SHADOWCAST_WORKERS", str(DEFAULT_WORKERS))))
    except ValueError:
        return DEFAULT_WORKERS


def _is_supported(p: Path) -> bool:
    return p.is_file() and p.suffix.lower() in ALLOWED_EXTS


def collect_inputs(paths: Iterable[str]) -> List[Path]:
    """
    Expand files and directories into a sorted, de-duplicated list of JPEG/PNG files.
    Files with other extensions are skipped; missing paths raise FileNotFoundError.
    """
    found = set()
    for raw in paths:
        p = Path(raw)
        if not p.exists():
            raise FileNotFoundError(f"Input not found: {p}")
        if p.is_dir():
            found.update(q.resolve() for q in p.rglob("*") if _is_supported(q))
        elif _is_supported(p):
            found.add(p.resolve())
        else:
            logger.info("Skipping unsupported file: %s", p)
    return sorted(found)


def check_batch_size(inputs: List[Path], max_files: Optional[int] = None) -> None:
    cap = get_max_files() if max_files is None else int(max_files)
    if len(inputs) > cap:
        raise BatchLimitError(f"Maximum {cap} images allowed, got {len(inputs)}.")


def _run_one(src: Path, output_dir: Path, params: AlgorithmParams, compare: bool) -> ImageResult:
    out_path = output_dir / output_name_for(str(src))
    logger.debug("Processing %s -> %s", src, out_path)
    try:
        source, result, timings = process_image(str(src), str(out_path), params)
        if compare:
            sheet = make_comparison(source, result)
            sheet.save(str(out_path.with_name(out_path.stem + "_compare.png")), format="PNG")
    except Exception as e:  # noqa: BLE001 - one bad image must not sink the batch
        logger.warning("Failed to process %s: %s: %s", src, type(e).__name__, e)
        return ImageResult(source_path=str(src), status="failed", error=f"{type(e).__name__}: {e}")

    return ImageResult(
        source_path=str(src),
        output_path=str(out_path),
        status="ok",
        width=result.width,
        height=result.height,
        timings=StageTimingsModel(
            load_s=timings.load_s,
            process_s=timings.process_s,
            save_s=timings.save_s,
            total_s=timings.total_s,
        ),
    )


def run_batch(
    inputs: List[Path],
    output_dir: str,
    params: AlgorithmParams,
    *,
    workers: Optional[int] = None,
    on_progress: Optional[ProgressCallback] = None,
    archive: bool = False,
    compare: bool = False,
) -> BatchReport:
    """
    One independent pipeline run per image, fanned out over at most `workers` threads.

    Results keep input order. A failed image is recorded and the rest continue.
    Writes manifest.json (and the zip archive when `archive` is set) into output_dir.
    """
    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    n_workers = get_workers() if workers is None else max(1, int(workers))
    total = len(inputs)

    results: List[Optional[ImageResult]] = [None] * total
    with ThreadPoolExecutor(max_workers=n_workers) as pool:
        futures = {pool.submit(_run_one, src, out_dir, params, compare): i for i, src in enumerate(inputs)}
        # progress follows completion order; results stay in input order
        for done, fut in enumerate(as_completed(futures), start=1):
            i = futures[fut]
            results[i] = fut.result()
            if on_progress is not None:
                on_progress(done, total, inputs[i].name)

    ok = [r for r in results if r.status == "ok"]
    archive_path = ""
    if archive and ok:
        archive_path = write_archive([r.output_path for r in ok], str(out_dir / ARCHIVE_NAME))

    report = BatchReport(
        params=params,
        results=results,
        archive_path=archive_path,
        counts={"total": total, "ok": len(ok), "failed": total - len(ok)},
    )
    write_json(str(out_dir / MANIFEST_NAME), report.model_dump())
    return report
