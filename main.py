"""
Command-line entry point for quoting bookings and checking locations.

Uses the built-in task catalog and an in-memory policy store unless
HOMECARE_STORE_PATH points at a JSON store with admin overrides.

Usage:
    python main.py quote personal-care meal-prep --asap --postal-code "M5V 1J9"
    python main.py radius "K8N 1A1" --radius 50
    python main.py overtime 14:00 14:20 --rate 35
    python main.py checkin 43.6426 -79.3871 43.6430 -79.3875 --transport
"""

import argparse
import sys

from homecare.catalog.tasks import TaskCatalog
from homecare.config import settings
from homecare.geo.geocoding import format_distance
from homecare.geo.proximity import ProximityVerifier
from homecare.logging_context import get_booking_logger, new_booking_ref
from homecare.pricing.calculator import BookingPriceCalculator
from homecare.pricing.overtime import calculate_overtime_charges
from homecare.pricing.policy import PolicyLoader
from homecare.pricing.surge_schedule import SurgeScheduleEngine
from homecare.schemas.geo_schema import Coordinate
from homecare.stores import InMemoryStore, JsonFileStore, KeyValueStore
from homecare.utils import InvalidTimeError, format_duration

logger = get_booking_logger(__name__)

GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"


def _build_store() -> KeyValueStore:
    if settings.store.json_store_path:
        return JsonFileStore(settings.store.json_store_path)
    return InMemoryStore()


def _build_calculator() -> BookingPriceCalculator:
    store = _build_store()
    catalog = TaskCatalog()
    return BookingPriceCalculator(
        catalog=catalog,
        policy_loader=PolicyLoader(store, catalog),
        surge_engine=SurgeScheduleEngine(store),
    )


def _line(label: str, value: str) -> None:
    print(f"  {label:<22}{value}")


def _run_quote(args: argparse.Namespace) -> int:
    booking_ref = new_booking_ref("QUOTE")
    calculator = _build_calculator()
    result = calculator.calculate_multi_service_price(
        args.task_ids,
        is_asap=args.asap,
        city=args.city,
        postal_code=args.postal_code,
        booking_date=args.date,
        booking_time=args.time,
    )

    print(f"{BOLD}Booking estimate{RESET} {DIM}{booking_ref}{RESET}")
    _line("Tasks", ", ".join(args.task_ids))
    _line("Care time", format_duration(result.task_minutes))
    _line("Category", result.service_category.value)
    _line("Hourly rate", f"${result.hourly_rate:.2f}")
    _line("Subtotal", f"${result.subtotal:.2f}")
    if result.surge_amount:
        _line("Surge", f"${result.surge_amount:.2f} (x{result.effective_multiplier:.2f})")
    if result.scheduled_surge_rules:
        _line("Surge rules", ", ".join(result.scheduled_surge_rules))
    if result.regional_surcharge:
        _line("Regional surcharge", f"${result.regional_surcharge:.2f} ({result.surge_zone_id})")
    if result.minimum_fee_applied:
        _line("Minimum fee", "applied")
    _line("Total", f"{GREEN}${result.total:.2f}{RESET}")
    if result.hst_amount:
        _line("HST", f"${result.hst_amount:.2f}")
        _line("Total with tax", f"{GREEN}${result.total_with_tax:.2f}{RESET}")
    if result.warning_message:
        print(f"{YELLOW}{result.warning_message}{RESET}")
    return 0


def _run_radius(args: argparse.Namespace) -> int:
    result = ProximityVerifier().is_postal_code_within_service_radius(
        args.postal_code, radius_km=args.radius
    )
    colour = GREEN if result.within_radius else RED
    print(f"{colour}{result.message}{RESET}")
    if result.distance_km is not None:
        print(f"{DIM}  >> {result.distance_km}km from the office{RESET}")
    return 0 if result.within_radius else 1


def _run_overtime(args: argparse.Namespace) -> int:
    try:
        result = calculate_overtime_charges(args.scheduled_end, args.actual_sign_out, args.rate)
    except InvalidTimeError as exc:
        logger.warning("Rejected overtime input: %s", exc)
        print(f"{RED}{exc}{RESET}", file=sys.stderr)
        return 2

    print(f"{BOLD}Overtime{RESET}")
    _line("Minutes over", str(result.overtime_minutes))
    if result.within_grace_period:
        _line("Charge", "none (within grace period)")
        return 0
    _line("Billable blocks", str(result.billable_overtime_blocks))
    _line("Rate per block", f"${result.overtime_rate_per_block:.2f}")
    _line("Charge", f"{GREEN}${result.overtime_charge:.2f}{RESET}")
    return 0


def _run_checkin(args: argparse.Namespace) -> int:
    result = ProximityVerifier().verify_check_in(
        Coordinate(lat=args.psw_lat, lng=args.psw_lng),
        Coordinate(lat=args.target_lat, lng=args.target_lng),
        is_transport=args.transport,
    )
    colour = GREEN if result.within_proximity else RED
    print(f"{colour}{result.message}{RESET}")
    if result.distance_meters is not None:
        print(
            f"{DIM}  >> {format_distance(result.distance_meters)} away "
            f"(limit {format_distance(result.threshold_meters)}){RESET}"
        )
    return 0 if result.within_proximity else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Home-care booking pricing tools")
    commands = parser.add_subparsers(dest="command", required=True)

    quote = commands.add_parser("quote", help="Estimate the price of a booking")
    quote.add_argument("task_ids", nargs="+", help="Task ids, e.g. personal-care meal-prep")
    quote.add_argument("--asap", action="store_true", help="Immediate service request")
    quote.add_argument("--city", default=None)
    quote.add_argument("--postal-code", default=None)
    quote.add_argument("--date", default=None, help="Booking date, YYYY-MM-DD")
    quote.add_argument("--time", default=None, help="Booking time, HH:MM")
    quote.set_defaults(handler=_run_quote)

    radius = commands.add_parser("radius", help="Check a postal code against the service area")
    radius.add_argument("postal_code")
    radius.add_argument("--radius", type=float, default=None, help="Radius in km")
    radius.set_defaults(handler=_run_radius)

    overtime = commands.add_parser("overtime", help="Compute overtime charges")
    overtime.add_argument("scheduled_end", help="HH:MM")
    overtime.add_argument("actual_sign_out", help="HH:MM")
    overtime.add_argument("--rate", type=float, default=settings.catalog.fallback_hourly_rate)
    overtime.set_defaults(handler=_run_overtime)

    checkin = commands.add_parser("checkin", help="Verify a PSW check-in position")
    for name in ("psw_lat", "psw_lng", "target_lat", "target_lng"):
        checkin.add_argument(name, type=float)
    checkin.add_argument("--transport", action="store_true", help="Pickup location check-in")
    checkin.set_defaults(handler=_run_checkin)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
