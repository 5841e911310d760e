"""
ProRata INR - Main Entry Point.

Billing engine for outdoor advertising campaigns.
Reads campaign asset rows, computes campaign totals and the month-wise
billing schedule, and writes an audit JSON and an Excel report.

Usage:
    python main.py <assets_csv> --campaign-start YYYY-MM-DD
                   --campaign-end YYYY-MM-DD [--gst 18] [--discount N]
                   [--name NAME] [--output-dir <dir>] [--log-level LEVEL]

Example:
    python main.py diwali_assets.csv --campaign-start 2024-10-01 \\
        --campaign-end 2024-12-31 --discount 5000 --output-dir reports/
"""

import argparse
import logging
import sys
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import List, Optional

from prorata import __version__
from prorata.audit import AuditLogger
from prorata.billing_periods import BillingPeriodSplitter
from prorata.date_logic import DateManager
from prorata.excel_generator import ExcelReporter
from prorata.schema import (
    DEFAULT_CONFIG,
    CampaignData,
    CampaignTotals,
    InvalidRangeError,
    ScheduleLine,
)
from prorata.totals import CampaignTotalsCalculator
from prorata.validator import AssetValidator, validate_duration


def print_header() -> None:
    """Prints the application header."""
    print("=" * 60)
    print("  ProRata INR - Campaign Billing Engine")
    print(f"  Version: {__version__}")
    print("=" * 60)
    print()


def print_summary(totals: CampaignTotals, validator: AssetValidator) -> None:
    """
    Prints the invoice-level figures to the console.

    Args:
        totals: Computed campaign totals.
        validator: Validator used for INR formatting.
    """
    inr = validator.format_inr

    print("\n" + "=" * 60)
    print("  BILLING SUMMARY")
    print("=" * 60)
    print()
    print(f"  Campaign Period:   {totals.campaign_period_start} to "
          f"{totals.campaign_period_end} ({totals.duration_days} days)")
    print(f"  Assets:            {totals.total_assets}")
    print()
    print(f"  Display Cost:      {inr(totals.display_cost)}")
    print(f"  Printing:          {inr(totals.printing_cost)}")
    print(f"  Mounting:          {inr(totals.mounting_cost)}")
    print(f"  Gross Amount:      {inr(totals.gross_amount)}")
    print(f"  Discount:          {inr(totals.manual_discount_amount)}")
    print(f"  Taxable Amount:    {inr(totals.taxable_amount)}")
    print(f"  GST ({totals.gst_rate}%):        {inr(totals.gst_amount)}")
    print(f"  Grand Total:       {inr(totals.grand_total)}")
    print()

    if totals.discount_clamped:
        print(f"  ⚠️  Requested discount {inr(totals.requested_discount_amount)} "
              f"capped at {inr(totals.manual_discount_amount)}")
    if totals.periods_truncated:
        print("  ⚠️  Billing schedule truncated at the period limit")


def print_schedule(schedule: List[ScheduleLine], validator: AssetValidator) -> None:
    """
    Prints the month-wise billing schedule.

    Args:
        schedule: Billing schedule lines.
        validator: Validator used for INR formatting.
    """
    print("  MONTHLY SCHEDULE")
    print("  " + "-" * 40)
    for line in schedule:
        marker = " *" if line.period.is_current_month else ""
        print(f"  {line.period.label:<16} {line.period.days_in_period:>3} days  "
              f"x{line.period.pro_rata_factor}  "
              f"{validator.format_inr(line.amount.total)}{marker}")
    print()


def run_billing(
    csv_path: Path,
    campaign: CampaignData,
    output_dir: Path,
    discount_override: Optional[Decimal] = None
) -> int:
    """
    Runs the complete billing pipeline.

    Args:
        csv_path: Path to the campaign asset CSV file.
        campaign: Campaign row (dates, GST rate).
        output_dir: Directory for output files.
        discount_override: Manual discount replacing the stored one.

    Returns:
        Exit code (0 for success, 1 for errors).
    """
    print_header()

    # Step 1: Validate campaign dates and asset rows
    check = validate_duration(start_date=campaign.start_date, end_date=campaign.end_date)
    if not check.is_valid:
        print(f"\n  ❌ ERROR: {check.message}")
        return 1

    print(f"  Loading: {csv_path}")
    validator = AssetValidator()

    try:
        result = validator.validate_csv(csv_path)
    except FileNotFoundError:
        print(f"\n  ❌ ERROR: File not found: {csv_path}")
        return 1
    except ValueError as e:
        print(f"\n  ❌ ERROR: {e}")
        return 1

    if not result.is_valid:
        print(f"\n  ❌ VALIDATION ERRORS ({result.error_count} errors):")
        for error in result.errors[:10]:
            print(f"     {error}")
        if result.error_count > 10:
            print(f"     ... and {result.error_count - 10} more errors")
        return 1

    print(f"  ✓ Validated {result.valid_count} assets")

    # Step 2: Compute totals and schedule
    print("  Calculating campaign totals...")
    date_manager = DateManager(DEFAULT_CONFIG)
    splitter = BillingPeriodSplitter(date_manager)
    calculator = CampaignTotalsCalculator(date_manager, splitter)

    try:
        totals = calculator.compute_campaign_totals(
            campaign, result.assets, discount_override
        )
    except InvalidRangeError as e:
        print(f"\n  ❌ ERROR: {e}")
        return 1

    schedule = splitter.build_billing_schedule(totals)

    # Step 3: Save audit log
    output_dir.mkdir(parents=True, exist_ok=True)

    audit_logger = AuditLogger()
    audit_path = output_dir / audit_logger.generate_filename("billing_audit")
    audit_logger.save_to_file(totals, audit_path, campaign.name)
    print(f"  ✓ Audit log saved: {audit_path}")

    # Step 4: Generate Excel report
    excel_reporter = ExcelReporter()
    excel_path = output_dir / excel_reporter.generate_filename("billing_report")
    excel_reporter.generate_report(totals, schedule, excel_path, campaign.name)
    print(f"  ✓ Excel report saved: {excel_path}")

    print_summary(totals, validator)
    print_schedule(schedule, validator)

    print("=" * 60)
    print("  ProRata INR - Billing Complete")
    print("=" * 60)

    return 0


def _parse_iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a YYYY-MM-DD date: '{value}'")


def _parse_amount(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"not a number: '{value}'")


def main() -> int:
    """
    Main entry point.

    Returns:
        Exit code.
    """
    parser = argparse.ArgumentParser(
        description="ProRata INR - Campaign billing engine for OOH media"
    )
    parser.add_argument(
        "csv_file",
        type=Path,
        help="Path to campaign asset CSV file"
    )
    parser.add_argument(
        "--campaign-start",
        type=_parse_iso_date,
        required=True,
        help="Campaign start date (YYYY-MM-DD), used for assets without dates"
    )
    parser.add_argument(
        "--campaign-end",
        type=_parse_iso_date,
        required=True,
        help="Campaign end date (YYYY-MM-DD), used for assets without dates"
    )
    parser.add_argument(
        "--gst",
        type=_parse_amount,
        default=DEFAULT_CONFIG.default_gst_percent,
        help="GST rate in percent (default: 18)"
    )
    parser.add_argument(
        "--discount",
        type=_parse_amount,
        default=None,
        help="Manual discount amount in INR"
    )
    parser.add_argument(
        "--name",
        default="",
        help="Campaign name for reports"
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("output"),
        help="Output directory for reports (default: output/)"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    campaign = CampaignData(
        start_date=args.campaign_start,
        end_date=args.campaign_end,
        name=args.name,
        gst_percent=args.gst,
    )

    return run_billing(args.csv_file, campaign, args.output_dir, args.discount)


if __name__ == "__main__":
    sys.exit(main())
