"""
Receipt rendering for completed sales.
Pure formatting: a printable PDF and a plain-text version of one transaction.
"""
from io import BytesIO
from datetime import datetime
from reportlab.lib.pagesizes import A5
from reportlab.lib.units import inch
from reportlab.lib import colors
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.enums import TA_CENTER

from app.core.config import settings
from app.models.transaction import Transaction

# Base-14 PDF fonts have no rupee glyph
PDF_CURRENCY = "Rs."


def _when(transaction: Transaction) -> datetime:
    return datetime.fromtimestamp(transaction.timestamp / 1000)


def short_id(transaction: Transaction) -> str:
    return transaction.id[-6:]


def money(value, symbol: str = None) -> str:
    return f"{symbol or settings.CURRENCY_SYMBOL}{float(value):,.2f}"


def total_items(transaction: Transaction) -> int:
    return sum(int(item.get("quantity", 0)) for item in transaction.items)


def generate_receipt_pdf(transaction: Transaction, store_name: str = None) -> BytesIO:
    """
    Generate a printable receipt.

    Args:
        transaction: completed sale
        store_name: header line, defaults to settings.STORE_NAME

    Returns:
        BytesIO buffer containing PDF data
    """
    store_name = store_name or settings.STORE_NAME
    when = _when(transaction)

    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A5, topMargin=0.4*inch, bottomMargin=0.4*inch,
                            leftMargin=0.4*inch, rightMargin=0.4*inch,
                            title=f"Receipt #{short_id(transaction)}")

    elements = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'StoreTitle',
        parent=styles['Heading1'],
        fontSize=18,
        textColor=colors.HexColor('#047857'),
        alignment=TA_CENTER,
        spaceAfter=4
    )

    normal_style = ParagraphStyle(
        'ReceiptNormal',
        parent=styles['Normal'],
        fontSize=9,
        textColor=colors.HexColor('#374151')
    )

    total_style = ParagraphStyle(
        'ReceiptTotal',
        parent=styles['Heading2'],
        fontSize=12,
        textColor=colors.HexColor('#1f2937'),
    )

    elements.append(Paragraph(store_name, title_style))
    elements.append(Paragraph("Cash Memo", ParagraphStyle('Sub', parent=normal_style, alignment=TA_CENTER)))
    elements.append(Spacer(1, 0.2*inch))

    info_table = Table([[
        Paragraph(f"<b>Date:</b> {when.strftime('%d %b %Y')}<br/>"
                  f"<b>Time:</b> {when.strftime('%I:%M %p')}", normal_style),
        Paragraph(f"<b>ID:</b> #{short_id(transaction)}<br/>"
                  f"<b>Payment:</b> {transaction.payment_method.upper()}", normal_style),
    ]], colWidths=[2.7*inch, 2.7*inch])
    info_table.setStyle(TableStyle([
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
    ]))
    elements.append(info_table)
    elements.append(Spacer(1, 0.15*inch))

    items_data = [["Item", "Qty", "Rate", "Amount"]]
    for item in transaction.items:
        qty = int(item.get("quantity", 0))
        price = float(item.get("price", 0))
        items_data.append([
            Paragraph(str(item.get("name", "")), normal_style),
            str(qty),
            money(price, PDF_CURRENCY),
            money(price * qty, PDF_CURRENCY),
        ])

    items_table = Table(items_data, colWidths=[2.5*inch, 0.6*inch, 1.1*inch, 1.2*inch])
    items_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#f3f4f6')),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
        ('LINEBELOW', (0, 0), (-1, 0), 0.5, colors.grey),
        ('LINEBELOW', (0, -1), (-1, -1), 0.5, colors.grey),
        ('TOPPADDING', (0, 0), (-1, -1), 4),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 4),
    ]))
    elements.append(items_table)
    elements.append(Spacer(1, 0.1*inch))

    totals = [["", Paragraph("Subtotal", normal_style), money(transaction.subtotal, PDF_CURRENCY)]]
    if float(transaction.discount) > 0:
        totals.append(["", Paragraph("Discount", normal_style), f"-{money(transaction.discount, PDF_CURRENCY)}"])
    totals.append(["", Paragraph("<b>TOTAL</b>", total_style), Paragraph(f"<b>{money(transaction.total, PDF_CURRENCY)}</b>", total_style)])

    total_table = Table(totals, colWidths=[2.5*inch, 1.7*inch, 1.2*inch])
    total_table.setStyle(TableStyle([
        ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
        ('LINEABOVE', (1, -1), (-1, -1), 1, colors.black),
        ('TOPPADDING', (0, 0), (-1, -1), 3),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 3),
    ]))
    elements.append(total_table)
    elements.append(Spacer(1, 0.15*inch))

    elements.append(Paragraph(f"Total Items: {total_items(transaction)}", normal_style))
    elements.append(Paragraph(f"Remark: {transaction.remark}", normal_style))

    footer_style = ParagraphStyle(
        'Footer',
        parent=styles['Normal'],
        fontSize=8,
        textColor=colors.grey,
        alignment=TA_CENTER
    )
    elements.append(Spacer(1, 0.3*inch))
    elements.append(Paragraph("Thank you for your business!", footer_style))

    doc.build(elements)

    buffer.seek(0)
    return buffer


def format_receipt_text(transaction: Transaction, store_name: str = None) -> str:
    """
    Plain-text receipt for thermal printers and chat.

    Args:
        transaction: completed sale
        store_name: header line, defaults to settings.STORE_NAME
    """
    store_name = store_name or settings.STORE_NAME
    when = _when(transaction)
    width = 40

    lines = [
        store_name.center(width),
        "-" * width,
        f"Date: {when.strftime('%d %b %Y')}",
        f"Time: {when.strftime('%I:%M %p')}",
        f"ID: #{short_id(transaction)}",
        "-" * width,
    ]
    for item in transaction.items:
        qty = int(item.get("quantity", 0))
        amount = money(float(item.get("price", 0)) * qty)
        label = f"{item.get('name', '')} x{qty}"
        lines.append(f"{label[:width - len(amount) - 1]:<{width - len(amount)}}{amount}")

    lines.append("-" * width)
    lines.append(f"{'Subtotal':<{width - 14}}{money(transaction.subtotal):>14}")
    if float(transaction.discount) > 0:
        lines.append(f"{'Discount':<{width - 14}}{'-' + money(transaction.discount):>14}")
    lines.append(f"{'TOTAL':<{width - 14}}{money(transaction.total):>14}")
    lines.append("-" * width)
    lines.append(f"Total Items: {total_items(transaction)}")
    lines.append(f"Payment: {transaction.payment_method.upper()}")
    lines.append(f"Remark: {transaction.remark}")
    lines.append("")
    lines.append("Thank you for your business!".center(width))

    return "\n".join(lines)
