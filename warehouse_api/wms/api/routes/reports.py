from __future__ import annotations

import io
from datetime import datetime, timezone
from typing import Optional

import pandas as pd
from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from wms.core.constants import OrderStatus, OrderType
from wms.core.deps import get_session
from wms.services.reports import inventory_valuation_frame, low_stock_frame, orders_frame

# PUBLIC_INTERFACE
router = APIRouter(
    prefix="/reports",
    tags=["Reports"],
)

EXPORT_FORMAT_PATTERN = "^(csv|xlsx|pdf)$"


def _export_dataframe(
    df: pd.DataFrame,
    filename_base: str,
    export_format: str,
) -> StreamingResponse:
    """
    Convert DataFrame to the requested format and return a StreamingResponse.

    Supported formats:
      - csv: text/csv
      - xlsx: application/vnd.openxmlformats-officedocument.spreadsheetml.sheet
      - pdf: application/pdf (simple tabular rendering)
    """
    export_format = (export_format or "csv").lower()

    if export_format == "xlsx":
        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name="Report")
        buffer.seek(0)
        headers = {"Content-Disposition": f'attachment; filename="{filename_base}.xlsx"'}
        return StreamingResponse(
            buffer,
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            headers=headers,
        )

    if export_format == "pdf":
        from reportlab.lib import colors
        from reportlab.lib.pagesizes import landscape, letter
        from reportlab.lib.styles import getSampleStyleSheet
        from reportlab.platypus import Paragraph, SimpleDocTemplate, Table, TableStyle

        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer, pagesize=landscape(letter), leftMargin=18, rightMargin=18, topMargin=18, bottomMargin=18
        )
        styles = getSampleStyleSheet()
        generated = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
        elements: list = [Paragraph(f"{filename_base.replace('_', ' ').title()} ({generated})", styles["Title"])]

        data = [list(df.columns)] + df.astype(str).values.tolist()
        table = Table(data, repeatRows=1)
        table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.black),
                    ("ALIGN", (0, 0), (-1, -1), "LEFT"),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), 8),
                    ("BOTTOMPADDING", (0, 0), (-1, 0), 6),
                    ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                ]
            )
        )
        elements.append(table)
        doc.build(elements)
        buffer.seek(0)
        headers = {"Content-Disposition": f'attachment; filename="{filename_base}.pdf"'}
        return StreamingResponse(buffer, media_type="application/pdf", headers=headers)

    buffer = io.StringIO()
    df.to_csv(buffer, index=False)
    buffer.seek(0)
    headers = {"Content-Disposition": f'attachment; filename="{filename_base}.csv"'}
    return StreamingResponse(buffer, media_type="text/csv", headers=headers)


# PUBLIC_INTERFACE
@router.get(
    "/inventory-valuation",
    summary="Inventory valuation report",
    description="Every inventory record with its location, lot and value (quantity x unit price).",
    response_description="File stream (CSV/XLSX/PDF)",
)
async def inventory_valuation_report(
    session: AsyncSession = Depends(get_session),
    format: str = Query("csv", pattern=EXPORT_FORMAT_PATTERN, description="Export format: csv | xlsx | pdf"),
):
    df = await inventory_valuation_frame(session)
    return _export_dataframe(df, "inventory_valuation", format)


# PUBLIC_INTERFACE
@router.get(
    "/low-stock",
    summary="Low stock report",
    description="Products at or below their minimum stock with the shortfall.",
    response_description="File stream (CSV/XLSX/PDF)",
)
async def low_stock_report(
    session: AsyncSession = Depends(get_session),
    format: str = Query("csv", pattern=EXPORT_FORMAT_PATTERN, description="Export format: csv | xlsx | pdf"),
):
    df = await low_stock_frame(session)
    return _export_dataframe(df, "low_stock", format)


# PUBLIC_INTERFACE
@router.get(
    "/orders",
    summary="Orders report",
    description="Order headers with partner names, optionally filtered by type and status.",
    response_description="File stream (CSV/XLSX/PDF)",
)
async def orders_report(
    session: AsyncSession = Depends(get_session),
    order_type: Optional[OrderType] = Query(None),
    status: Optional[OrderStatus] = Query(None),
    format: str = Query("csv", pattern=EXPORT_FORMAT_PATTERN, description="Export format: csv | xlsx | pdf"),
):
    df = await orders_frame(
        session,
        order_type=order_type.value if order_type else None,
        status=status.value if status else None,
    )
    return _export_dataframe(df, "orders", format)
