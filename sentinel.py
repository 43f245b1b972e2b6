#!/usr/bin/env python3
"""
Unified CLI for MecSentinel vehicle monitoring.

Commands:
  create     - Create a new vehicle file
  status     - Show maintenance status per category and the most urgent one
  log        - Add a service entry
  update-km  - Update the current odometer reading
  rules      - List, suggest or adjust custom maintenance intervals
  health     - Overall health analysis
  chat       - Ask the mechanic assistant a question
"""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from tabulate import tabulate
from typing import List, Optional

from mecsentinel import (
    Category,
    HistoryEntry,
    MaintenanceItem,
    MaintenanceRule,
    Status,
    Vehicle,
    build_alerts,
    create_vehicle,
    intervals_from_rules,
    load_vehicle,
    save_current_km,
    save_history_entry,
    save_rules,
    select_most_urgent,
)
from mecsentinel.advisor import MechanicAdvisor
from mecsentinel.intake import (
    IntakeError,
    apply_monthly_distance,
    apply_odometer_reading,
    parse_date,
    parse_interval,
    parse_usage,
)
from mecsentinel.log import setup_logging

# =============================================================================
# Formatting helpers
# =============================================================================


def format_km(km: Optional[float]) -> str:
    """Format a distance for display."""
    return f"{km:,.0f}" if km is not None else "-"


def format_days(days: int) -> str:
    """Format remaining days for display (e.g., '3mo 15d')."""
    months = days // 30
    remaining_days = days % 30
    if months > 0:
        return f"{months}mo {remaining_days}d"
    return f"{days}d"


def format_interval(months: int, km: int) -> str:
    parts = [f"{months} mo"]
    if km:
        parts.append(f"{km:,} km")
    return " / ".join(parts)


def format_last_done(item: MaintenanceItem) -> str:
    last = item.last_service
    if last is None:
        return "-"
    parts = []
    if last.date:
        parts.append(last.date)
    if last.km is not None:
        parts.append(f"{last.km:,} km")
    return " @ ".join(parts)


def parse_as_of(value: Optional[str]) -> date:
    if not value:
        return date.today()
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise IntakeError(f"Invalid --as-of date '{value}' (expected YYYY-MM-DD)")


# =============================================================================
# Status command
# =============================================================================


def make_status_table(items: List[MaintenanceItem]) -> List[List[str]]:
    """Convert maintenance items to table rows."""
    rows = []
    for item in items:
        rows.append(
            [
                item.name,
                item.status.key.upper(),
                format_last_done(item),
                item.next_date.isoformat(),
                format_km(item.next_km),
                format_days(item.days_remaining),
                format_km(item.km_remaining),
            ]
        )
    return rows


def cmd_status(args):
    """Show maintenance status per category."""
    vehicle = load_vehicle(args.vehicle_file)
    try:
        today = parse_as_of(args.as_of)
    except IntakeError as e:
        print(f"Error: {e}")
        return 1

    print(f"Vehicle: {vehicle.name} ({vehicle.kind})")
    print(f"Current odometer: {vehicle.current_km:,} km (as of {today.isoformat()})")
    print(f"Usage: {vehicle.usage.value} (~{vehicle.average_km_per_month:,} km/month)")
    if args.defaults:
        print("Intervals: DEFAULT (ignoring custom rules)")
    elif vehicle.rules:
        print(f"Custom rules: {len(vehicle.rules)}")
    print()

    items = vehicle.maintenance_items(today, use_rules=not args.defaults)

    headers = [
        "Item",
        "Status",
        "Last Done",
        "Next (date)",
        "Next (km)",
        "Remaining (time)",
        "Remaining (km)",
    ]
    print(tabulate(make_status_table(items), headers=headers, tablefmt="simple"))
    print()

    urgent = select_most_urgent(items)
    if urgent is not None:
        print(f"Most urgent: {urgent.name} ({urgent.status.key})")
        print()

    due = [a for a, i in zip(build_alerts(items), items) if i.status != Status.NORMAL]
    if due:
        print("ALERTS:")
        for alert in due:
            print(f"  {alert.message}")
        print()

    return 0


# =============================================================================
# Create command
# =============================================================================


def cmd_create(args):
    """Create a new vehicle file."""
    if args.vehicle_file.exists():
        print(f"Error: File already exists: {args.vehicle_file}")
        return 1

    try:
        usage = parse_usage(args.usage)
    except IntakeError as e:
        print(f"Error: {e}")
        return 1

    current_km = 0 if args.zero_km else args.km
    if current_km is None or current_km < 0:
        print("Error: --km is required unless --zero-km is given")
        return 1

    vehicle = Vehicle(
        kind=args.type,
        model=args.model,
        year=args.year,
        current_km=current_km,
        usage=usage,
        zero_km=args.zero_km,
        user_id=args.user,
    )
    create_vehicle(args.vehicle_file, vehicle)
    print(f"Created {args.vehicle_file}: {vehicle.name} at {current_km:,} km")
    return 0


# =============================================================================
# Log command
# =============================================================================


def cmd_log(args):
    """Add a service entry."""
    load_vehicle(args.vehicle_file)

    try:
        category = Category(args.category.lower())
    except ValueError:
        print(f"Error: Unknown category '{args.category}'")
        print("\nAvailable categories:")
        for c in Category:
            print(f"  {c.value:<8} {c.display_name}")
        return 1

    try:
        entry_date = parse_date(args.date) or date.today().isoformat()
    except IntakeError as e:
        print(f"Error: {e}")
        return 1

    if args.km is not None and args.km < 0:
        print(f"Error: Invalid odometer reading '{args.km}'")
        return 1

    entry = HistoryEntry(category, date=entry_date, km=args.km, notes=args.notes)

    print(f"Adding service entry to {args.vehicle_file}:")
    print(f"  Item:  {category.display_name}")
    print(f"  Date:  {entry.date}")
    if entry.km is not None:
        print(f"  Km:    {entry.km:,}")
    if entry.notes:
        print(f"  Notes: {entry.notes}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    save_history_entry(args.vehicle_file, entry)
    print("Entry saved.")
    return 0


# =============================================================================
# Update km command
# =============================================================================


def cmd_update_km(args):
    """Update the current odometer reading."""
    vehicle = load_vehicle(args.vehicle_file)
    old_km = vehicle.current_km

    try:
        if args.monthly is not None:
            new_km = apply_monthly_distance(old_km, args.monthly)
        elif args.km is not None:
            new_km = apply_odometer_reading(old_km, args.km)
        else:
            print("Error: give a new reading or --monthly DISTANCE")
            return 1
    except IntakeError as e:
        print(f"Error: {e}")
        return 1

    print(f"Vehicle: {vehicle.name}")
    print(f"Current odometer: {old_km:,} km")
    print(f"New odometer:     {new_km:,} km")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    save_current_km(args.vehicle_file, new_km)
    print("Odometer updated.")
    return 0


# =============================================================================
# Rules command
# =============================================================================


def make_rules_table(rules: List[MaintenanceRule]) -> List[List[str]]:
    """Interval table: custom rule where one exists, default otherwise."""
    custom = {r.category: r for r in rules}
    intervals = intervals_from_rules(rules)
    rows = []
    for category in Category:
        rule = custom.get(category)
        interval = intervals[category]
        if rule is None:
            source = "default"
        elif rule.user_adjusted:
            source = "adjusted (AI)" if rule.ai_suggested else "adjusted"
        elif rule.ai_suggested:
            source = "AI"
        else:
            source = "custom"
        rows.append([category.display_name, format_interval(interval.months, interval.km), source])
    return rows


def cmd_rules(args):
    """List, suggest or adjust maintenance intervals."""
    vehicle = load_vehicle(args.vehicle_file)
    rules = list(vehicle.rules)

    if args.suggest:
        rules, explanation = MechanicAdvisor().suggest_rules(vehicle)
        print(explanation)
        print()
        if not args.dry_run:
            save_rules(args.vehicle_file, rules)

    if args.set:
        name, months, km = args.set
        try:
            category = Category(name.lower())
        except ValueError:
            print(f"Error: Unknown category '{name}'")
            return 1
        try:
            months, km = parse_interval(months, km)
        except IntakeError as e:
            print(f"Error: {e}")
            return 1
        rule = next((r for r in rules if r.category is category), None)
        if rule is None:
            rule = MaintenanceRule(category, months, km, user_adjusted=True)
            rules.append(rule)
        else:
            rule.adjust(months, km)
        if not args.dry_run:
            save_rules(args.vehicle_file, rules)

    print(f"Vehicle: {vehicle.name}")
    print()
    headers = ["Item", "Interval", "Source"]
    print(tabulate(make_rules_table(rules), headers=headers, tablefmt="simple"))
    if args.dry_run and (args.suggest or args.set):
        print("\n(dry run - no changes made)")
    return 0


# =============================================================================
# Advisor commands
# =============================================================================


def cmd_health(args):
    """Overall health analysis."""
    vehicle = load_vehicle(args.vehicle_file)
    items = vehicle.maintenance_items(date.today())
    report = MechanicAdvisor().analyze_health(vehicle, items)

    print(f"Vehicle: {vehicle.name}")
    print(f"Overall health: {report.overall.upper()}")
    print()
    print(report.summary)
    if report.recommendations:
        print("\nRecommendations:")
        for rec in report.recommendations:
            print(f"  - {rec}")
    if report.attention_points:
        print("\nAttention points:")
        for point in report.attention_points:
            print(f"  - {point}")
    return 0


def cmd_chat(args):
    """Ask the mechanic assistant a question."""
    vehicle = load_vehicle(args.vehicle_file)
    reply = MechanicAdvisor().chat([{"role": "user", "content": args.message}], vehicle)
    print(reply)
    return 0


# =============================================================================
# Main
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="MecSentinel vehicle maintenance monitor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s vehicles/onix.yaml create --type car --model Onix --year 2019 \\
      --km 45000 --usage city
  %(prog)s vehicles/onix.yaml status
  %(prog)s vehicles/onix.yaml log oil --km 40000 --date 2025-01-15
  %(prog)s vehicles/onix.yaml update-km 46000
  %(prog)s vehicles/onix.yaml update-km --monthly 1200
  %(prog)s vehicles/onix.yaml rules --set oil 6 8000
  %(prog)s vehicles/onix.yaml health
""",
    )
    parser.add_argument(
        "vehicle_file",
        type=Path,
        help="Path to vehicle YAML file",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # Create subcommand
    create_parser = subparsers.add_parser("create", help="Create a new vehicle file")
    create_parser.add_argument("--type", default="car", help="Vehicle type (default: car)")
    create_parser.add_argument("--model", required=True, help="Vehicle model")
    create_parser.add_argument("--year", type=int, required=True, help="Model year")
    create_parser.add_argument("--km", type=int, help="Current odometer reading")
    create_parser.add_argument(
        "--usage",
        default="mixed",
        help="Usage profile: city, highway or mixed (default: mixed)",
    )
    create_parser.add_argument(
        "--zero-km",
        action="store_true",
        help="Brand-new vehicle (odometer 0)",
    )
    create_parser.add_argument("--user", type=str, help="Owner user id")

    # Status subcommand
    status_parser = subparsers.add_parser(
        "status", help="Show maintenance status and the most urgent item"
    )
    status_parser.add_argument(
        "--defaults",
        action="store_true",
        help="Ignore custom rules and use the default intervals",
    )
    status_parser.add_argument(
        "--as-of",
        type=str,
        help="Calculate as of date YYYY-MM-DD (default: today)",
    )

    # Log subcommand
    log_parser = subparsers.add_parser("log", help="Add a service entry")
    log_parser.add_argument("category", type=str, help="oil, tires, brakes or battery")
    log_parser.add_argument(
        "--date",
        type=str,
        help="Service date in YYYY-MM-DD format (default: today)",
    )
    log_parser.add_argument("--km", type=int, help="Odometer at time of service")
    log_parser.add_argument("--notes", type=str, help="Notes about the service")
    log_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be added without saving",
    )

    # Update km subcommand
    update_km_parser = subparsers.add_parser(
        "update-km", help="Update the current odometer reading"
    )
    update_km_parser.add_argument("km", type=str, nargs="?", help="New odometer reading")
    update_km_parser.add_argument(
        "--monthly",
        type=str,
        help="Distance driven since the last update, added to the current reading",
    )
    update_km_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be updated without saving",
    )

    # Rules subcommand
    rules_parser = subparsers.add_parser(
        "rules", help="List, suggest or adjust maintenance intervals"
    )
    rules_parser.add_argument(
        "--suggest",
        action="store_true",
        help="Ask the advisor for personalised intervals",
    )
    rules_parser.add_argument(
        "--set",
        nargs=3,
        metavar=("CATEGORY", "MONTHS", "KM"),
        help="Adjust the interval of a category",
    )
    rules_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the result without saving",
    )

    # Advisor subcommands
    subparsers.add_parser("health", help="Overall health analysis")
    chat_parser = subparsers.add_parser("chat", help="Ask the mechanic assistant")
    chat_parser.add_argument("message", type=str, help="Your question")

    return parser


COMMANDS = {
    "create": cmd_create,
    "status": cmd_status,
    "log": cmd_log,
    "update-km": cmd_update_km,
    "rules": cmd_rules,
    "health": cmd_health,
    "chat": cmd_chat,
}


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    # Validate vehicle file exists
    if args.command != "create" and not args.vehicle_file.exists():
        print(f"Error: File not found: {args.vehicle_file}")
        return 1

    return COMMANDS[args.command](args)


if __name__ == "__main__":
    sys.exit(main() or 0)
