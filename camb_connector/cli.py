"""Command-line interface for the Camb.ai connector.

WHY: Users need a way to run any operation from the terminal: synthesize a
line of text, translate a batch of strings, transcribe a recording, or
separate stems, without writing Python.

HOW: Uses argparse to pick a (resource, operation) pair and to collect item
parameters from --param key=value flags and/or a JSON --params-file (one
object or a list of objects, one item each). Input media from --file is
attached to every item. Runs the batch via asyncio.run(). Status messages
go to stderr; result records are printed as JSON on stdout; binary outputs
are saved to --output-dir.

RULES:
- Positional arguments: resource, operation (e.g. ``speech synthesize``)
- --param values are parsed as JSON when possible, otherwise kept as strings
- Output naming: the binary's file name, numeric suffix on conflict
  (tts_output-2.wav)
- Status output goes to stderr (not stdout)
- Exit code 1 on validation/API errors, 130 on Ctrl-C
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from camb_connector.api.client import CambClient
from camb_connector.api.errors import CambError
from camb_connector.config import POLL_INTERVAL_S, POLL_MAX_DURATION_S
from camb_connector.core.items import BinaryData, Item, ItemResult
from camb_connector.operations import OperationKind
from camb_connector.runner import run_batch


def _status(msg: str) -> None:
    """Print a status message to stderr, flushed immediately."""
    print(msg, file=sys.stderr, flush=True)


def _parse_value(raw: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def _parse_params(pairs: Optional[List[str]]) -> Dict[str, Any]:
    """Turn ["key=value", ...] into a dict."""
    params: Dict[str, Any] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError("Invalid --param '{}', expected key=value".format(pair))
        params[key.strip()] = _parse_value(value)
    return params


def build_items(args: argparse.Namespace) -> List[Item]:
    """Build the input batch from --params-file, --param and --file.

    RULES:
    - No params file: a single item from --param
    - Params file with an object: a single item; with a list: one item each
    - --param overrides params-file values on every item
    - Every --file is attached to every item under --binary-field
      (``data``, then ``data_2``, ``data_3``... for additional files)
    """
    overrides = _parse_params(args.param)

    if args.params_file:
        loaded = json.loads(Path(args.params_file).read_text(encoding="utf-8"))
        raw_items = loaded if isinstance(loaded, list) else [loaded]
    else:
        raw_items = [{}]

    binaries: Dict[str, BinaryData] = {}
    for position, file_path in enumerate(args.file or [], start=1):
        field = args.binary_field if position == 1 else "{}_{}".format(args.binary_field, position)
        binaries[field] = BinaryData.from_path(Path(file_path))

    items = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            raise ValueError("Each entry in the params file must be a JSON object")
        items.append(Item(json={**raw, **overrides}, binary=dict(binaries)))
    return items


def _resolve_output_path(file_name: str, output_dir: Path) -> Path:
    """Return output_dir/file_name, adding -2, -3... before the extension on conflict."""
    base_path = output_dir / file_name
    if not base_path.exists():
        return base_path

    stem, ext = base_path.stem, base_path.suffix
    counter = 2
    while True:
        candidate = output_dir / "{}-{}{}".format(stem, counter, ext)
        if not candidate.exists():
            return candidate
        counter += 1


def _save_binaries(result: ItemResult, output_dir: Path) -> Dict[str, str]:
    """Write every binary of a result to disk and return {field: path}."""
    saved = {}
    for name, binary in result.binary.items():
        path = _resolve_output_path(binary.file_name, output_dir)
        path.write_bytes(binary.data)
        saved[name] = str(path)
        _status("  Saved {}: {} ({} bytes)".format(name, path.name, binary.size))
    return saved


async def _run(args: argparse.Namespace) -> List[Dict[str, Any]]:
    kind = OperationKind.lookup(args.resource, args.operation)
    items = build_items(args)
    output_dir = Path(args.output_dir)

    async with CambClient() as client:
        results = await run_batch(
            client,
            kind,
            items,
            continue_on_fail=args.continue_on_fail,
            interval_s=args.poll_interval,
            max_duration_s=args.max_poll_duration,
            on_status=_status,
        )

    if any(r.binary for r in results):
        output_dir.mkdir(parents=True, exist_ok=True)

    records = []
    for result in results:
        record: Dict[str, Any] = {"pairedItem": result.paired_item, "json": result.json}
        if result.binary:
            record["files"] = _save_binaries(result, output_dir)
        records.append(record)
    return records


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI."""
    resources = sorted({kind.resource for kind in OperationKind})
    operations = ", ".join(
        "{} {}".format(kind.resource, kind.operation) for kind in OperationKind
    )

    parser = argparse.ArgumentParser(
        prog="camb_connector",
        description="Run Camb.ai speech, voice, translation and transcription operations.",
        epilog="Available operations: {}".format(operations),
    )
    parser.add_argument("resource", choices=resources, help="Resource to act on.")
    parser.add_argument("operation", help="Operation to run on the resource.")
    parser.add_argument(
        "--param", "-p",
        action="append",
        default=None,
        metavar="KEY=VALUE",
        help="Item parameter (repeatable). Values are parsed as JSON when possible.",
    )
    parser.add_argument(
        "--params-file",
        default=None,
        help="JSON file with one parameter object, or a list of objects (one item each).",
    )
    parser.add_argument(
        "--file", "-f",
        action="append",
        default=None,
        help="Input media file attached to every item (repeatable).",
    )
    parser.add_argument(
        "--binary-field",
        default="data",
        help="Binary field name for the first --file (default: %(default)s).",
    )
    parser.add_argument(
        "--output-dir",
        default=".",
        help="Directory for binary outputs (default: current directory).",
    )
    parser.add_argument(
        "--continue-on-fail",
        action="store_true",
        help="Record per-item errors and keep going instead of aborting.",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=POLL_INTERVAL_S,
        help="Seconds between task status polls (default: %(default)s).",
    )
    parser.add_argument(
        "--max-poll-duration",
        type=float,
        default=POLL_MAX_DURATION_S,
        help="Give up waiting for a task after this many seconds (default: no limit).",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging.",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for ``python -m camb_connector`` and the console script.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        records = asyncio.run(_run(args))
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        sys.exit(130)
    except (CambError, ValueError, OSError) as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)

    print(json.dumps(records, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
