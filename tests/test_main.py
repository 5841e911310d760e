"""
ProRata INR - Pipeline Tests.

End-to-end tests for run_billing: CSV in, audit JSON and Excel out.
"""

import json
import tempfile
from datetime import date
from decimal import Decimal
from pathlib import Path

from main import run_billing
from prorata.schema import CampaignData


CSV_HEADER = "Asset_ID,Negotiated_Rate,Printing_Charges,Booking_Start_Date,Booking_End_Date\n"


def make_campaign(start=date(2024, 6, 1), end=date(2024, 6, 30)) -> CampaignData:
    """Creates a campaign row for pipeline tests."""
    return CampaignData(
        start_date=start,
        end_date=end,
        name="Pune Metro",
        gst_percent=Decimal("18"),
    )


class TestRunBilling:
    """Tests for the billing pipeline."""

    def test_successful_run_writes_outputs(self) -> None:
        """Verify a valid CSV produces an audit and a report."""
        with tempfile.TemporaryDirectory() as tmpdir:
            csv_path = Path(tmpdir) / "assets.csv"
            csv_path.write_text(
                CSV_HEADER
                + "PUN-001,\"₹ 1,00,000\",10000,2024-06-01,2024-06-30\n"
                + "PUN-002,30000,,,\n",
                encoding="utf-8"
            )
            output_dir = Path(tmpdir) / "out"

            code = run_billing(csv_path, make_campaign(), output_dir)

            assert code == 0
            audits = list(output_dir.glob("billing_audit_*.json"))
            reports = list(output_dir.glob("billing_report_*.xlsx"))
            assert len(audits) == 1
            assert len(reports) == 1

            data = json.loads(audits[0].read_text(encoding="utf-8"))
            assert data["metadata"]["campaign"] == "Pune Metro"
            assert data["totals"]["display_cost"] == "130000.00"
            assert data["totals"]["grand_total"] == "165200.00"

    def test_missing_file_returns_error(self) -> None:
        """Verify a missing CSV exits with code 1."""
        with tempfile.TemporaryDirectory() as tmpdir:
            code = run_billing(
                Path(tmpdir) / "missing.csv", make_campaign(), Path(tmpdir)
            )
        assert code == 1

    def test_invalid_rows_return_error(self) -> None:
        """Verify row validation errors stop the run."""
        with tempfile.TemporaryDirectory() as tmpdir:
            csv_path = Path(tmpdir) / "assets.csv"
            csv_path.write_text(CSV_HEADER + "PUN-001,-500,,,\n", encoding="utf-8")
            output_dir = Path(tmpdir) / "out"

            code = run_billing(csv_path, make_campaign(), output_dir)

            assert code == 1
            assert not output_dir.exists()

    def test_reversed_campaign_dates_return_error(self) -> None:
        """Verify a campaign ending before it starts is rejected."""
        with tempfile.TemporaryDirectory() as tmpdir:
            campaign = make_campaign(date(2024, 6, 30), date(2024, 6, 1))
            code = run_billing(Path(tmpdir) / "assets.csv", campaign, Path(tmpdir))
        assert code == 1
