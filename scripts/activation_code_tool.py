from __future__ import annotations

import argparse
import asyncio
import csv
from datetime import datetime, timezone
from pathlib import Path

from parkmate.db.session import SessionLocal
from parkmate.subscriptions.codes import (
    ActivationCodeService,
    generate_raw_codes,
    validate_generation_request,
)
from parkmate.subscriptions.constants import ALLOWED_CODE_DURATIONS_DAYS


def parse_utc_datetime(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Activation code batch generation tool")
    parser.add_argument(
        "--duration",
        type=int,
        required=True,
        choices=sorted(ALLOWED_CODE_DURATIONS_DAYS),
        help="subscription days granted per redemption",
    )
    parser.add_argument("--count", type=int, required=True)
    parser.add_argument("--villa-count", type=int, default=1)
    parser.add_argument("--expires-at", help="ISO datetime after which the code is rejected")
    parser.add_argument("--created-by", required=True)
    parser.add_argument("--output-csv", type=Path)
    parser.add_argument("--dry-run", action="store_true")
    return parser.parse_args(argv)


def _write_output(path: Path, codes: list[str], *, duration: int, villa_count: int) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as file:
        writer = csv.writer(file)
        writer.writerow(["code", "duration_days", "villa_count"])
        for code in codes:
            writer.writerow([code, duration, villa_count])


async def _run(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    validate_generation_request(
        count=args.count,
        duration_days=args.duration,
        villa_count=args.villa_count,
    )
    expires_at = parse_utc_datetime(args.expires_at) if args.expires_at else None

    if args.dry_run:
        codes = generate_raw_codes(count=args.count)
    else:
        async with SessionLocal.begin() as session:
            result = await ActivationCodeService.generate(
                session,
                count=args.count,
                duration_days=args.duration,
                villa_count=args.villa_count,
                expires_at=expires_at,
                created_by=args.created_by,
            )
        codes = result.codes

    output_csv = args.output_csv or Path("reports/activation_codes.csv")
    _write_output(output_csv, codes, duration=args.duration, villa_count=args.villa_count)
    print(  # noqa: T201
        f"generated={len(codes)} inserted={0 if args.dry_run else len(codes)} output={output_csv}"
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    return asyncio.run(_run(argv))


if __name__ == "__main__":
    raise SystemExit(main())
