"""
Spreadsheet, CSV and PDF reporting.
"""

import csv
import calendar
import datetime as dt
from collections import defaultdict
from pathlib import Path
from typing import List, Dict

from .utils import money_fmt

CSV_FIELDS = ["file_name", "date", "merchant", "category", "amount", "description"]


def summarize(rows: List[Dict]) -> Dict:
    """
    Aggregate statistics over receipt rows.

    Returns:
        Dict with count, total, average, first_date, last_date and
        categories ({category: {"count": n, "total": amount}})
    """
    count = len(rows)
    total = round(sum(float(r.get("amount") or 0.0) for r in rows), 2)
    dates = sorted(r["date"] for r in rows if r.get("date"))

    categories = defaultdict(lambda: {"count": 0, "total": 0.0})
    for r in rows:
        cat = categories[r.get("category") or "General"]
        cat["count"] += 1
        cat["total"] = round(cat["total"] + float(r.get("amount") or 0.0), 2)

    return {
        "count": count,
        "total": total,
        "average": round(total / count, 2) if count else 0.0,
        "first_date": dates[0] if dates else None,
        "last_date": dates[-1] if dates else None,
        "categories": dict(sorted(categories.items())),
    }


def write_workbook(rows: List[Dict], out_xlsx: Path):
    """
    Write receipts to an Excel workbook.

    Sheets: "Receipts Summary" (one line per receipt), "Details" (OCR text
    per receipt) and "Summary" (totals and per-category breakdown).
    """
    if not rows:
        raise ValueError("No receipts to export")

    from openpyxl import Workbook
    from openpyxl.styles import Font

    bold = Font(bold=True)
    wb = Workbook()

    ws = wb.active
    ws.title = "Receipts Summary"
    ws.append(["File Name", "Date", "Merchant", "Category", "Total Amount", "Description"])
    for r in rows:
        ws.append([r.get("file_name") or "", r.get("date") or "", r.get("merchant") or "",
                   r.get("category") or "", float(r.get("amount") or 0.0),
                   r.get("description") or ""])
        ws.cell(row=ws.max_row, column=5).number_format = "#,##0.00"

    details = wb.create_sheet("Details")
    details.append(["File Name", "Date", "Merchant", "OCR Text"])
    for r in rows:
        details.append([r.get("file_name") or "", r.get("date") or "", r.get("merchant") or "",
                        r.get("ocr_text") or r.get("raw_text") or ""])

    stats = summarize(rows)
    summary = wb.create_sheet("Summary")
    summary.append(["Metric", "Value"])
    summary.append(["Total Receipts", stats["count"]])
    summary.append(["Total Amount", stats["total"]])
    summary.append(["Average Amount", stats["average"]])
    summary.append(["Date Range", f"{stats['first_date']} - {stats['last_date']}"])
    summary.append([])
    summary.append(["Category Breakdown", "Receipts", "Total Amount"])
    breakdown_header = summary.max_row
    for cat, info in stats["categories"].items():
        summary.append([cat, info["count"], info["total"]])

    for sheet in (ws, details, summary):
        for cell in sheet[1]:
            cell.font = bold
        sheet.column_dimensions["A"].width = 24
    for cell in summary[breakdown_header]:
        cell.font = bold

    wb.save(out_xlsx.as_posix())


def write_csv(rows: List[Dict], out_csv: Path):
    """Write receipts to CSV file."""
    with out_csv.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        w.writeheader()
        for r in rows:
            w.writerow({k: r.get(k) for k in CSV_FIELDS})


def _month_label(year_month: str) -> str:
    if year_month != "Unknown" and len(year_month) == 7:
        year, month = year_month.split("-")
        return f"{calendar.month_name[int(month)]} {year}"
    return year_month


def build_summary_pdf(rows: List[Dict], out_pdf: Path, title: str = "Receipts Summary"):
    """Build a summary PDF with category totals, monthly totals and line items."""
    from reportlab.lib.pagesizes import letter
    from reportlab.pdfgen import canvas
    from reportlab.lib.units import inch

    monthly_data = defaultdict(list)
    monthly_totals = defaultdict(float)
    stats = summarize(rows)

    for r in rows:
        date_str = r.get("date") or ""
        year_month = date_str[:7] if len(date_str) >= 7 else "Unknown"
        monthly_data[year_month].append(r)
        monthly_totals[year_month] += float(r.get("amount") or 0.0)

    c = canvas.Canvas(out_pdf.as_posix(), pagesize=letter)
    width, height = letter

    y = height - 1 * inch
    c.setFont("Helvetica-Bold", 16)
    c.drawString(1 * inch, y, title)
    y -= 0.3 * inch
    c.setFont("Helvetica", 10)
    c.drawString(1 * inch, y, f"Generated: {dt.datetime.now().isoformat(timespec='seconds')}")
    y -= 0.2 * inch
    c.drawString(1 * inch, y, f"{stats['count']} receipts, total {money_fmt(stats['total'])}, "
                              f"average {money_fmt(stats['average'])}")
    y -= 0.4 * inch

    def new_page_if_needed(y, limit=1.2 * inch):
        if y < limit:
            c.showPage()
            c.setFont("Helvetica", 10)
            return height - 1 * inch
        return y

    c.setFont("Helvetica-Bold", 12)
    c.drawString(1 * inch, y, "Category Totals")
    y -= 0.25 * inch
    c.setFont("Helvetica", 10)
    for cat, info in stats["categories"].items():
        c.drawString(1.1 * inch, y, f"{cat}: {money_fmt(info['total'])} ({info['count']})")
        y = new_page_if_needed(y - 0.2 * inch)

    y -= 0.2 * inch
    c.setFont("Helvetica-Bold", 12)
    c.drawString(1 * inch, y, "Monthly Totals")
    y -= 0.25 * inch
    c.setFont("Helvetica", 10)
    for year_month in sorted(monthly_data):
        c.drawString(1.1 * inch, y, f"{_month_label(year_month)}: {money_fmt(monthly_totals[year_month])}")
        y = new_page_if_needed(y - 0.2 * inch)

    for year_month in sorted(monthly_data):
        month_rows = sorted(monthly_data[year_month],
                            key=lambda x: (x.get("date") or "", x.get("merchant") or ""))
        display = _month_label(year_month)

        c.showPage()
        y = height - 1 * inch
        c.setFont("Helvetica-Bold", 14)
        c.drawString(1 * inch, y, display)
        c.setFont("Helvetica", 10)
        c.drawString(1 * inch, y - 0.2 * inch, f"Total: {money_fmt(monthly_totals[year_month])}")
        y -= 0.5 * inch

        c.setFont("Helvetica-Bold", 9)
        c.drawString(1.00 * inch, y, "Date")
        c.drawString(2.10 * inch, y, "Merchant")
        c.drawString(4.30 * inch, y, "Category")
        c.drawRightString(7.50 * inch, y, "Amount")
        y -= 0.15 * inch
        c.line(1.0 * inch, y, 7.6 * inch, y)
        y -= 0.15 * inch

        c.setFont("Helvetica", 9)
        for r in month_rows:
            c.drawString(1.00 * inch, y, r.get("date") or "")
            c.drawString(2.10 * inch, y, (r.get("merchant") or "")[:28])
            c.drawString(4.30 * inch, y, (r.get("category") or "")[:18])
            c.drawRightString(7.50 * inch, y, money_fmt(r.get("amount")))
            y -= 0.18 * inch

            if y < 0.8 * inch:
                c.showPage()
                y = height - 1 * inch
                c.setFont("Helvetica-Bold", 12)
                c.drawString(1 * inch, y, f"{display} (cont.)")
                y -= 0.3 * inch
                c.setFont("Helvetica", 9)

    c.showPage()
    c.save()
