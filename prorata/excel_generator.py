"""
ProRata INR - Excel Report Generation Module.

This module generates Excel billing reports from campaign totals.
A Billing Summary tab gives the invoice-level figures at a glance and a
Billing Schedule tab lists the month-wise amounts.

Indian Market Context:
    - Native INR currency formatting (₹ #,##0.00)
    - Clamped discounts and truncated schedules are highlighted
    - Invoice due dates per billing month

Classes:
    ExcelReporter: Generates Excel workbooks from campaign totals.
"""

from datetime import datetime
from pathlib import Path
from typing import List, Union

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from prorata.schema import CampaignTotals, ScheduleLine


class ExcelReporter:
    """
    Generates Excel billing reports for a campaign.

    Attributes:
        INR_FORMAT: Excel number format for INR currency.
        FACTOR_FORMAT: Excel number format for pro-rata factors.

    Example:
        >>> reporter = ExcelReporter()
        >>> reporter.generate_report(totals, schedule, "billing.xlsx")
    """

    INR_FORMAT = '"₹" #,##0.00'
    FACTOR_FORMAT = '0.00'
    DATE_FORMAT = 'yyyy-mm-dd'

    WARNING_FILL = PatternFill(
        start_color="FFEB9C",
        end_color="FFEB9C",
        fill_type="solid"
    )
    CURRENT_FILL = PatternFill(
        start_color="C6EFCE",
        end_color="C6EFCE",
        fill_type="solid"
    )

    HEADER_FONT = Font(bold=True, color="FFFFFF")
    HEADER_FILL = PatternFill(
        start_color="2F5496",
        end_color="2F5496",
        fill_type="solid"
    )
    HEADER_ALIGNMENT = Alignment(horizontal="center", vertical="center")

    THIN_BORDER = Border(
        left=Side(style="thin"),
        right=Side(style="thin"),
        top=Side(style="thin"),
        bottom=Side(style="thin")
    )

    SCHEDULE_HEADERS = [
        "Month",
        "Period Start",
        "Period End",
        "Days",
        "Pro-Rata Factor",
        "Base Rent",
        "Printing",
        "Mounting",
        "Discount",
        "Subtotal",
        "GST",
        "Total",
        "Invoice Due",
    ]

    def generate_report(
        self,
        totals: CampaignTotals,
        schedule: List[ScheduleLine],
        output_path: Union[str, Path],
        campaign_name: str = ""
    ) -> None:
        """
        Generates a complete Excel report from campaign totals.

        Creates a workbook with two sheets:
        1. Billing Summary - Invoice-level figures
        2. Billing Schedule - Month-wise amounts

        Args:
            totals: Campaign totals.
            schedule: Month-wise billing schedule of the totals.
            output_path: Path for the output .xlsx file.
            campaign_name: Campaign name shown in the title.
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        workbook = Workbook()
        workbook.remove(workbook.active)

        self._create_summary_sheet(workbook, totals, campaign_name)
        self._create_schedule_sheet(workbook, schedule)

        workbook.save(output_path)

    def _create_summary_sheet(
        self,
        workbook: Workbook,
        totals: CampaignTotals,
        campaign_name: str
    ) -> None:
        """Creates the Billing Summary sheet with invoice-level figures."""
        ws = workbook.create_sheet("Billing Summary")

        title = "ProRata INR - Billing Summary"
        if campaign_name:
            title = f"{title}: {campaign_name}"
        ws["A1"] = title
        ws["A1"].font = Font(bold=True, size=16)
        ws.merge_cells("A1:D1")

        ws["A3"] = "Report Generated:"
        ws["B3"] = datetime.now().strftime("%Y-%m-%d %H:%M")
        ws["A4"] = "Campaign Period:"
        ws["B4"] = (
            f"{totals.campaign_period_start.isoformat()} to "
            f"{totals.campaign_period_end.isoformat()}"
        )
        ws["A5"] = "Duration (days):"
        ws["B5"] = totals.duration_days
        ws["A6"] = "Billing Months:"
        ws["B6"] = totals.total_months

        ws["A8"] = "INVOICE FIGURES"
        ws["A8"].font = Font(bold=True, size=14)
        ws.merge_cells("A8:D8")

        metrics = [
            ("Display Cost", totals.display_cost),
            ("Printing Cost", totals.printing_cost),
            ("Mounting Cost", totals.mounting_cost),
            ("Gross Amount", totals.gross_amount),
            ("Manual Discount", totals.manual_discount_amount),
            ("Taxable Amount", totals.taxable_amount),
            (f"GST ({totals.gst_rate}%)", totals.gst_amount),
            ("Grand Total", totals.grand_total),
            ("Monthly Display Rent", totals.monthly_display_rent),
        ]

        row = 10
        for label, value in metrics:
            ws[f"A{row}"] = label
            ws[f"A{row}"].font = Font(bold=True)
            ws[f"B{row}"] = float(value)
            ws[f"B{row}"].number_format = self.INR_FORMAT
            row += 1

        row += 1
        if totals.discount_clamped:
            ws[f"A{row}"] = (
                f"Requested discount {totals.requested_discount_amount} "
                f"was capped at {totals.manual_discount_amount}"
            )
            ws[f"A{row}"].fill = self.WARNING_FILL
            row += 1
        if totals.periods_truncated:
            ws[f"A{row}"] = "Billing schedule truncated at the period limit"
            ws[f"A{row}"].fill = self.WARNING_FILL

        self._auto_adjust_columns(ws)

    def _create_schedule_sheet(
        self,
        workbook: Workbook,
        schedule: List[ScheduleLine]
    ) -> None:
        """Creates the Billing Schedule sheet with one row per period."""
        ws = workbook.create_sheet("Billing Schedule")

        for col, header in enumerate(self.SCHEDULE_HEADERS, start=1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.font = self.HEADER_FONT
            cell.fill = self.HEADER_FILL
            cell.alignment = self.HEADER_ALIGNMENT
            cell.border = self.THIN_BORDER

        for row_idx, line in enumerate(schedule, start=2):
            period = line.period
            amount = line.amount

            row_data = [
                period.label,
                period.period_start,
                period.period_end,
                period.days_in_period,
                float(period.pro_rata_factor),
                float(amount.base_rent),
                float(amount.printing),
                float(amount.mounting),
                float(amount.discount),
                float(amount.subtotal),
                float(amount.gst_amount),
                float(amount.total),
                line.invoice_due_date,
            ]

            for col_idx, value in enumerate(row_data, start=1):
                cell = ws.cell(row=row_idx, column=col_idx, value=value)
                cell.border = self.THIN_BORDER

                if col_idx in (2, 3, 13):
                    cell.number_format = self.DATE_FORMAT
                elif col_idx == 5:
                    cell.number_format = self.FACTOR_FORMAT
                elif col_idx >= 6:
                    cell.number_format = self.INR_FORMAT

                if period.is_current_month:
                    cell.fill = self.CURRENT_FILL

        self._auto_adjust_columns(ws)

    def _auto_adjust_columns(self, worksheet: Worksheet) -> None:
        """Auto-adjusts column widths based on content."""
        for col_idx in range(1, worksheet.max_column + 1):
            max_length = 0
            column_letter = get_column_letter(col_idx)

            for row_idx in range(1, worksheet.max_row + 1):
                value = worksheet.cell(row=row_idx, column=col_idx).value
                if value is not None:
                    max_length = max(max_length, len(str(value)))

            worksheet.column_dimensions[column_letter].width = max(max_length + 2, 10)

    def generate_filename(self, prefix: str = "billing_report") -> str:
        """
        Generates a timestamped filename for reports.

        Returns:
            Filename like "billing_report_2024-12-18_143052.xlsx".
        """
        timestamp = datetime.now().strftime("%Y-%m-%d_%H%M%S")
        return f"{prefix}_{timestamp}.xlsx"
