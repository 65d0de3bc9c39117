#!/usr/bin/env python3
"""
Unified CLI for fleet maintenance scheduling.

Commands:
  status       - Show overdue and pending maintenance across the fleet
  dashboard    - Summary counts by priority, category and truck
  upcoming     - Maintenance needing attention for one truck
  rules        - List maintenance rules
  records      - List maintenance records
  schedule     - Schedule a maintenance record ahead of time
  open-pending - Open pending records for everything due or overdue
  complete     - Complete a maintenance record
  update-miles - Update a truck's current mileage
"""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from tabulate import tabulate
from typing import Dict, List, Optional

from fleetmaint import (
    Alert,
    FleetError,
    FleetStore,
    MaintenanceRecord,
    RecordFilter,
    RecordStatus,
    Truck,
    complete_record,
    evaluate_store,
    open_pending_records,
    schedule_record,
    upcoming_for_vehicle,
)
from fleetmaint.config import get_log_level
from fleetmaint.loader import parse_date

# =============================================================================
# Formatting helpers
# =============================================================================


def format_km(km: Optional[float]) -> str:
    """Format a distance for display."""
    return f"{km:,.0f}" if km is not None else "-"


def format_cost(cost: Optional[float]) -> str:
    """Format cost for display."""
    return f"${cost:,.2f}" if cost is not None else "-"


def format_date(value: Optional[date]) -> str:
    return value.isoformat() if value is not None else "-"


def format_days_remaining(days: Optional[int]) -> str:
    """Format remaining time for display (e.g., '3mo 15d' or '-2mo 5d')."""
    if days is None:
        return "-"
    sign = "-" if days < 0 else ""
    days = abs(days)
    months = days // 30
    remaining_days = days % 30
    if months > 0:
        return f"{sign}{months}mo {remaining_days}d"
    return f"{sign}{days}d"


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if text is None:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def truck_label(trucks: Dict[str, Truck], vehicle_id: str) -> str:
    truck = trucks.get(vehicle_id)
    return truck.plate_number if truck else vehicle_id


# =============================================================================
# Table builders
# =============================================================================


def make_alert_table(alerts: List[Alert], trucks: Dict[str, Truck]) -> List[List[str]]:
    """Convert alerts to table rows."""
    rows = []
    for alert in alerts:
        record = "-"
        if alert.record is not None:
            record = f"{alert.record.id} ({alert.record.status.value})"
        rows.append(
            [
                truck_label(trucks, alert.vehicle_id),
                alert.rule.display_name,
                alert.rule.priority,
                alert.status_key,
                format_km(alert.due.km_remaining),
                format_days_remaining(alert.due.days_remaining),
                alert.due.triggering_dimension.value,
                record,
            ]
        )
    return rows


def make_record_table(
    records: List[MaintenanceRecord], trucks: Dict[str, Truck]
) -> List[List[str]]:
    """Convert maintenance records to table rows."""
    rows = []
    for record in records:
        rows.append(
            [
                record.id,
                truck_label(trucks, record.vehicle_id),
                record.category,
                record.status.value,
                format_date(record.scheduled_date),
                format_date(record.completed_date),
                format_km(record.mileage_at_service),
                format_cost(record.cost),
                truncate(record.notes),
            ]
        )
    return rows


ALERT_HEADERS = [
    "Truck",
    "Rule",
    "Priority",
    "Status",
    "Remaining (km)",
    "Remaining (time)",
    "Trigger",
    "Record",
]


def _as_of(args) -> date:
    return parse_date(args.as_of) if args.as_of else date.today()


def _trucks_by_id(store: FleetStore) -> Dict[str, Truck]:
    return {t.id: t for t in store.list_trucks()}


# =============================================================================
# Status / dashboard / upcoming
# =============================================================================


def cmd_status(store: FleetStore, args):
    """Show overdue and pending maintenance across the fleet."""
    now = _as_of(args)
    report = evaluate_store(store, now)
    trucks = _trucks_by_id(store)

    print(f"As of: {now.isoformat()}")
    print(f"Trucks: {report.summary['totalVehicles']}  Rules: {report.summary['totalRules']}")
    print()

    if report.overdue:
        print("OVERDUE:")
        print(tabulate(make_alert_table(report.overdue, trucks), headers=ALERT_HEADERS, tablefmt="simple"))
        print()

    if report.pending:
        print("PENDING:")
        print(tabulate(make_alert_table(report.pending, trucks), headers=ALERT_HEADERS, tablefmt="simple"))
        print()

    if not report.overdue and not report.pending:
        print("Nothing due.")
        print()

    if report.anomalies:
        print("DATA ANOMALIES:")
        for anomaly in report.anomalies:
            print(f"  {truck_label(trucks, anomaly.vehicle_id)} / {anomaly.rule_id}: {anomaly.message}")
        print()

    if report.errors:
        print(f"SKIPPED ({len(report.errors)} errors):")
        for error in report.errors:
            print(f"  {error.message}")
        print()

    return 0


def cmd_dashboard(store: FleetStore, args):
    """Summary counts by priority, category and truck."""
    now = _as_of(args)
    summary = evaluate_store(store, now).summary
    trucks = _trucks_by_id(store)

    print(f"As of: {now.isoformat()}")
    print(f"Trucks: {summary['totalVehicles']}")
    print(f"Overdue: {summary['totalOverdue']}")
    print(f"Pending: {summary['totalPending']} (due {summary['totalDue']}, upcoming {summary['totalUpcoming']})")
    print(f"Trucks needing attention: {summary['vehiclesNeedingAttention']}")
    print()

    keys = ["overdue", "due", "upcoming", "scheduled", "pending"]
    headers = ["", "Overdue", "Due", "Upcoming", "Scheduled", "Pending"]

    def rows_for(groups):
        return [[name] + [counts.get(k, 0) for k in keys] for name, counts in groups]

    print("BY PRIORITY:")
    print(tabulate(rows_for(summary["byPriority"].items()), headers=headers, tablefmt="simple"))
    print()
    if summary["byCategory"]:
        print("BY CATEGORY:")
        print(tabulate(rows_for(sorted(summary["byCategory"].items())), headers=headers, tablefmt="simple"))
        print()
    if summary["vehicles"]:
        print("BY TRUCK:")
        groups = [(truck_label(trucks, v["vehicleId"]), v) for v in summary["vehicles"]]
        print(tabulate(rows_for(groups), headers=headers, tablefmt="simple"))
        print()
    return 0


def cmd_upcoming(store: FleetStore, args):
    """Maintenance needing attention for one truck."""
    now = _as_of(args)
    truck = store.get_truck(args.truck_id)
    state = store.get_vehicle_state(truck.id)
    alerts = upcoming_for_vehicle(store.list_active_rules(), state, now, store.thresholds)

    print(f"Truck: {truck.name}")
    print(f"Current mileage: {truck.mileage:,.0f} km (as of {now.isoformat()})")
    print()
    if not alerts:
        print("Nothing due.")
        return 0
    rows = [[a.rule.display_name, a.rule.priority, a.status_key, a.due.reason] for a in alerts]
    print(tabulate(rows, headers=["Rule", "Priority", "Status", "Reason"], tablefmt="simple"))
    return 0


# =============================================================================
# Rules / records
# =============================================================================


def cmd_rules(store: FleetStore, args):
    """List maintenance rules."""
    rules = store.list_rules(category=args.category, is_active=None if args.all else True)

    print(f"Rules: {len(rules)}")
    print()

    rows = []
    for rule in rules:
        interval = []
        if rule.interval_mileage:
            interval.append(f"{rule.interval_mileage:,.0f} km")
        if rule.interval_days:
            interval.append(f"{rule.interval_days} days")
        interval_str = " / ".join(interval) if interval else "-"
        rows.append(
            [
                rule.id,
                rule.name,
                rule.category,
                rule.interval_type,
                interval_str,
                rule.priority,
                format_cost(rule.estimated_cost),
                "yes" if rule.is_active else "no",
            ]
        )

    headers = ["ID", "Name", "Category", "Type", "Interval", "Priority", "Est. Cost", "Active"]
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    return 0


def cmd_records(store: FleetStore, args):
    """List maintenance records."""
    date_range = None
    if args.since or args.until:
        date_range = (parse_date(args.since), parse_date(args.until))
    record_filter = RecordFilter(
        status=RecordStatus(args.status) if args.status else None,
        vehicle_id=args.vehicle,
        category=args.category,
        date_range=date_range,
    )
    records = store.list_records(record_filter)
    total_cost = sum(r.cost for r in records if r.cost is not None)

    print(f"Records: {len(records)}")
    if total_cost > 0:
        print(f"Total cost: ${total_cost:,.2f}")
    print()

    if not records:
        print("No maintenance records found.")
        return 0

    headers = ["ID", "Truck", "Category", "Status", "Scheduled", "Completed", "Mileage", "Cost", "Notes"]
    print(tabulate(make_record_table(records, _trucks_by_id(store)), headers=headers, tablefmt="simple"))
    return 0


# =============================================================================
# Lifecycle commands
# =============================================================================


def cmd_schedule(store: FleetStore, args):
    """Schedule a maintenance record ahead of time."""
    record = schedule_record(
        store,
        args.truck_id,
        args.rule_id,
        parse_date(args.date),
        date.today(),
        notes=args.notes,
    )
    print(f"Scheduled record {record.id} for {record.scheduled_date.isoformat()}.")
    return 0


def cmd_open_pending(store: FleetStore, args):
    """Open pending records for everything due or overdue."""
    now = _as_of(args)
    report = evaluate_store(store, now)
    candidates = [
        a for a in report.alerts
        if a.due.is_due and (a.record is None or a.record.status != RecordStatus.PENDING)
    ]
    trucks = _trucks_by_id(store)

    if not candidates:
        print("No new pending records needed.")
        return 0

    print(f"{len(candidates)} due or overdue without a pending record:")
    print(tabulate(make_alert_table(candidates, trucks), headers=ALERT_HEADERS, tablefmt="simple"))
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    opened = open_pending_records(store, report, now)
    print(f"Opened {len(opened)} pending record(s).")
    return 0


def cmd_complete(store: FleetStore, args):
    """Complete a maintenance record."""
    record = complete_record(
        store,
        args.record_id,
        date.today(),
        mileage_at_service=args.mileage,
        completed_date=parse_date(args.date),
        cost=args.cost,
        notes=args.notes,
    )
    print(f"Completed record {record.id}:")
    print(f"  Date:    {format_date(record.completed_date)}")
    print(f"  Mileage: {format_km(record.mileage_at_service)}")
    if record.cost is not None:
        print(f"  Cost:    {format_cost(record.cost)}")
    return 0


def cmd_update_miles(store: FleetStore, args):
    """Update a truck's current mileage."""
    truck = store.get_truck(args.truck_id)

    print(f"Truck: {truck.name}")
    print(f"Current mileage: {truck.mileage:,.0f}")
    print(f"New mileage:     {args.mileage:,.0f}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    store.update_mileage(truck.id, args.mileage)
    print("Mileage updated.")
    return 0


COMMANDS = {
    "status": cmd_status,
    "dashboard": cmd_dashboard,
    "upcoming": cmd_upcoming,
    "rules": cmd_rules,
    "records": cmd_records,
    "schedule": cmd_schedule,
    "open-pending": cmd_open_pending,
    "complete": cmd_complete,
    "update-miles": cmd_update_miles,
}


# =============================================================================
# Main
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Fleet maintenance scheduler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s fleet.yaml status
  %(prog)s fleet.yaml status --as-of 2025-06-01
  %(prog)s fleet.yaml dashboard
  %(prog)s fleet.yaml upcoming t-101
  %(prog)s fleet.yaml records --status pending --vehicle t-101
  %(prog)s fleet.yaml open-pending --dry-run
  %(prog)s fleet.yaml complete 3f2a9c1d7e4b --mileage 125400 --cost 240
  %(prog)s fleet.yaml update-miles t-101 125400
""",
    )
    parser.add_argument("fleet_file", type=Path, help="Path to fleet YAML file")

    subparsers = parser.add_subparsers(dest="command", required=True)

    status_parser = subparsers.add_parser("status", help="Show overdue and pending maintenance")
    status_parser.add_argument("--as-of", type=str, help="Evaluation date (YYYY-MM-DD, default: today)")

    dashboard_parser = subparsers.add_parser("dashboard", help="Summary counts")
    dashboard_parser.add_argument("--as-of", type=str, help="Evaluation date (YYYY-MM-DD, default: today)")

    upcoming_parser = subparsers.add_parser("upcoming", help="Maintenance needing attention for one truck")
    upcoming_parser.add_argument("truck_id", type=str, help="Truck ID")
    upcoming_parser.add_argument("--as-of", type=str, help="Evaluation date (YYYY-MM-DD, default: today)")

    rules_parser = subparsers.add_parser("rules", help="List maintenance rules")
    rules_parser.add_argument("--category", type=str, help="Only rules in this category")
    rules_parser.add_argument("--all", action="store_true", help="Include inactive rules")

    records_parser = subparsers.add_parser("records", help="List maintenance records")
    records_parser.add_argument("--status", choices=[s.value for s in RecordStatus], help="Filter by status")
    records_parser.add_argument("--vehicle", type=str, help="Filter by truck ID")
    records_parser.add_argument("--category", type=str, help="Filter by category")
    records_parser.add_argument("--since", type=str, help="Scheduled on or after (YYYY-MM-DD)")
    records_parser.add_argument("--until", type=str, help="Scheduled on or before (YYYY-MM-DD)")

    schedule_parser = subparsers.add_parser("schedule", help="Schedule maintenance ahead of time")
    schedule_parser.add_argument("truck_id", type=str, help="Truck ID")
    schedule_parser.add_argument("rule_id", type=str, help="Rule ID")
    schedule_parser.add_argument("date", type=str, help="Scheduled date (YYYY-MM-DD)")
    schedule_parser.add_argument("--notes", type=str, help="Notes")

    open_parser = subparsers.add_parser("open-pending", help="Open pending records for due work")
    open_parser.add_argument("--as-of", type=str, help="Evaluation date (YYYY-MM-DD, default: today)")
    open_parser.add_argument("--dry-run", action="store_true", help="Show what would be opened without saving")

    complete_parser = subparsers.add_parser("complete", help="Complete a maintenance record")
    complete_parser.add_argument("record_id", type=str, help="Record ID")
    complete_parser.add_argument("--mileage", type=float, help="Odometer at service (default: truck mileage)")
    complete_parser.add_argument("--date", type=str, help="Completion date (YYYY-MM-DD, default: today)")
    complete_parser.add_argument("--cost", type=float, help="Cost of service")
    complete_parser.add_argument("--notes", type=str, help="Notes about the service")

    miles_parser = subparsers.add_parser("update-miles", help="Update a truck's mileage")
    miles_parser.add_argument("truck_id", type=str, help="Truck ID")
    miles_parser.add_argument("mileage", type=float, help="Current mileage (km)")
    miles_parser.add_argument("--dry-run", action="store_true", help="Show what would be updated without saving")

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=get_log_level("WARNING"), format="%(levelname)s %(name)s: %(message)s")

    if not args.fleet_file.exists():
        print(f"Error: File not found: {args.fleet_file}")
        return 1

    try:
        store = FleetStore.load(args.fleet_file)
        return COMMANDS[args.command](store, args)
    except FleetError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
