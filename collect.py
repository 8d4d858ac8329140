"""Batch scoring of URL lists (.txt, .csv, .jsonl) into .jsonl or .csv summaries."""

from __future__ import annotations

import argparse
import csv
import json
import logging
import sys
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from api.api import analyze, analyze_url
from config import configure_logging
from errors import InvalidURLError
from models import AnalysisResult

logger = logging.getLogger(__name__)

JSON_COLUMNS = ("red_flags", "recommendations", "layers")


def _detect_input_format(path: Path, explicit: Optional[str]) -> str:
    if explicit:
        return explicit.lower()
    suffix = path.suffix.lower()
    if suffix in {".txt", ".list"}:
        return "txt"
    if suffix == ".jsonl":
        return "jsonl"
    return "csv"


def _detect_output_format(path: Path, explicit: Optional[str]) -> str:
    if explicit:
        return explicit.lower()
    return "csv" if path.suffix.lower() == ".csv" else "jsonl"


def _read_txt(path: Path) -> Iterator[Dict]:
    with path.open("r", encoding="utf-8") as handle:
        for line in handle:
            url = line.strip()
            if url and not url.startswith("#"):
                yield {"url": url}


def _read_csv(path: Path) -> Iterator[Dict]:
    with path.open("r", encoding="utf-8", newline="") as handle:
        for row in csv.DictReader(handle):
            url = (row.get("url") or row.get("URL") or "").strip()
            if not url:
                continue
            entry = {"url": url}
            label = row.get("label")
            if label is not None and str(label).strip() != "":
                entry["label"] = label
            yield entry


def _read_jsonl(path: Path) -> Iterator[Dict]:
    with path.open("r", encoding="utf-8") as handle:
        for lineno, line in enumerate(handle, start=1):
            raw = line.strip()
            if not raw or raw.startswith("#"):
                continue
            try:
                data = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning("%s:%d: skipping malformed JSON line", path, lineno)
                continue
            if isinstance(data, str):
                data = {"url": data}
            if not isinstance(data, dict):
                continue
            url = str(data.get("url", "")).strip()
            if not url:
                continue
            entry = {"url": url}
            if "label" in data:
                entry["label"] = data["label"]
            yield entry


READERS = {"txt": _read_txt, "csv": _read_csv, "jsonl": _read_jsonl}


def summarize_result(result: AnalysisResult, label: Optional[str]) -> Dict:
    return {
        "url": result.url,
        "label": label,
        "verdict": result.verdict.value,
        "risk_score": result.risk_score,
        "threat_level": result.threat_level.value,
        "confidence": result.confidence,
        "red_flags": list(result.red_flags),
        "recommendations": list(result.recommendations),
        "layers": {name: layer.status.value for name, layer in result.layers.items()},
        "error": None,
    }


def _error_row(url: str, label: Optional[str], error: str) -> Dict:
    return {
        "url": url,
        "label": label,
        "verdict": None,
        "risk_score": None,
        "threat_level": None,
        "confidence": None,
        "red_flags": [],
        "recommendations": [],
        "layers": {},
        "error": error,
    }


def _write_jsonl(rows: Iterable[Dict], path: Path) -> None:
    with path.open("w", encoding="utf-8") as handle:
        for row in rows:
            handle.write(json.dumps(row, ensure_ascii=False))
            handle.write("\n")


def _write_csv(rows: Iterable[Dict], path: Path) -> None:
    rows = list(rows)
    if not rows:
        return
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=list(rows[0].keys()))
        writer.writeheader()
        for row in rows:
            row = dict(row)
            for column in JSON_COLUMNS:
                row[column] = json.dumps(row[column], ensure_ascii=False)
            writer.writerow(row)


def run_collect(
    input_path: Path,
    output_path: Path,
    input_format: str,
    output_format: str,
    offline: bool = False,
) -> List[Dict]:
    scorer: Callable[[str], AnalysisResult] = analyze if offline else analyze_url
    outputs: List[Dict] = []
    for entry in READERS.get(input_format, _read_csv)(input_path):
        url, label = entry["url"], entry.get("label")
        try:
            outputs.append(summarize_result(scorer(url), label))
        except InvalidURLError as exc:
            logger.warning("Skipping %r: %s", url, exc.reason)
            outputs.append(_error_row(url, label, exc.reason))

    if output_format == "csv":
        _write_csv(outputs, output_path)
    else:
        _write_jsonl(outputs, output_path)
    logger.info("Wrote %d results to %s", len(outputs), output_path)
    return outputs


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Score a list of URLs for phishing risk.")
    parser.add_argument("input", help="Path to input list (.txt, .csv, .jsonl)")
    parser.add_argument("output", help="Path to output file (.jsonl or .csv)")
    parser.add_argument(
        "--input-format",
        choices=["txt", "csv", "jsonl"],
        help="Override input format detection",
    )
    parser.add_argument(
        "--output-format",
        choices=["jsonl", "csv"],
        help="Override output format detection",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Score URLs only, without DNS, WHOIS or TLS lookups",
    )
    return parser


def main() -> None:
    configure_logging()
    args = build_parser().parse_args()
    input_path = Path(args.input)
    output_path = Path(args.output)

    if not input_path.exists():
        print(f"Input file not found: {input_path}", file=sys.stderr)
        sys.exit(1)

    run_collect(
        input_path,
        output_path,
        _detect_input_format(input_path, args.input_format),
        _detect_output_format(output_path, args.output_format),
        offline=args.offline,
    )


if __name__ == "__main__":
    main()
