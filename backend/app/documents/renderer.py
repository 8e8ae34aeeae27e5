"""
Commercial invoice renderer.

Draws a single-page A4 invoice with Pillow and saves it as PDF. Output depends
only on the shipment and exporter: the invoice date and the PDF metadata dates
come from the shipment's creation timestamp.
"""

import asyncio
import io
import logging
import textwrap

from PIL import Image, ImageDraw, ImageFont

from app.documents.store import DocumentStore
from app.schemas.shipment import ExporterProfile, FinalizedShipment

logger = logging.getLogger("clearpath.renderer")

PAGE_WIDTH_MM = 210
PAGE_HEIGHT_MM = 297
DEFAULT_DPI = 150

PRIMARY = (37, 99, 235)
DARK = (20, 20, 20)
RULE = (200, 200, 200)
LIGHT_FILL = (240, 240, 240)
WHITE = (255, 255, 255)

DECLARATION = (
    "I declare that the information contained in this invoice is true and correct. "
    "The contents of this shipment are as stated above."
)


def invoice_number(shipment: FinalizedShipment) -> str:
    return shipment.id[-8:].upper()


def _format_quantity(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


class _Page:
    """Millimetre-based drawing helpers over a Pillow canvas."""

    def __init__(self, dpi: int):
        self.dpi = dpi
        self.image = Image.new(
            "RGB",
            (self.px(PAGE_WIDTH_MM), self.px(PAGE_HEIGHT_MM)),
            WHITE,
        )
        self.draw = ImageDraw.Draw(self.image)
        self._fonts: dict[int, ImageFont.ImageFont] = {}

    def px(self, mm: float) -> int:
        return round(mm * self.dpi / 25.4)

    def font(self, size_pt: int):
        if size_pt not in self._fonts:
            self._fonts[size_pt] = ImageFont.load_default(size=round(size_pt * self.dpi / 72))
        return self._fonts[size_pt]

    def text(
        self,
        x_mm: float,
        y_mm: float,
        value: str,
        *,
        size: int = 9,
        bold: bool = False,
        color: tuple[int, int, int] = DARK,
        align: str = "left",
    ) -> None:
        font = self.font(size)
        x = self.px(x_mm)
        if align == "right":
            x -= round(self.draw.textlength(value, font=font))
        # Text is positioned by its baseline, like a PDF text cursor
        y = self.px(y_mm) - round(size * self.dpi / 72 * 0.8)
        self.draw.text(
            (x, y),
            value,
            font=font,
            fill=color,
            stroke_width=1 if bold else 0,
            stroke_fill=color,
        )

    def lines(self, x_mm: float, y_mm: float, values: list[str], *, size: int = 9, leading_mm: float = 4) -> float:
        for i, line in enumerate(values):
            self.text(x_mm, y_mm + i * leading_mm, line, size=size)
        return y_mm + len(values) * leading_mm

    def hline(self, x1_mm: float, x2_mm: float, y_mm: float) -> None:
        y = self.px(y_mm)
        self.draw.line([(self.px(x1_mm), y), (self.px(x2_mm), y)], fill=RULE, width=max(1, self.dpi // 100))

    def fill(self, x_mm: float, y_mm: float, w_mm: float, h_mm: float, color: tuple[int, int, int]) -> None:
        self.draw.rectangle(
            [self.px(x_mm), self.px(y_mm), self.px(x_mm + w_mm), self.px(y_mm + h_mm)],
            fill=color,
        )


class InvoiceRenderer:
    """Renders FinalizedShipment records to PDF and keeps them in a DocumentStore."""

    def __init__(self, store: DocumentStore, dpi: int = DEFAULT_DPI):
        self.store = store
        self.dpi = dpi

    def render_pdf(self, shipment: FinalizedShipment, exporter: ExporterProfile) -> bytes:
        page = _Page(self.dpi)
        right = PAGE_WIDTH_MM - 20

        # Header
        page.text(right, 25, "COMMERCIAL INVOICE", size=24, color=PRIMARY, align="right")
        page.text(right, 35, f"Invoice No: {invoice_number(shipment)}", size=10, align="right")
        page.text(right, 40, f"Date: {shipment.created_at.date().isoformat()}", size=10, align="right")
        page.text(right, 45, "Page 1 of 1", size=10, align="right")

        # Exporter (seller)
        y = 60
        page.text(20, y, "EXPORTER (SELLER)", size=10, bold=True)
        page.text(20, y + 5, exporter.company_name)
        y = page.lines(20, y + 10, textwrap.wrap(exporter.address or "Address not provided", 45) or [""])
        y += 5
        if exporter.tax_id:
            page.text(20, y, f"Tax ID / EORI: {exporter.tax_id}")
            y += 5
        page.text(20, y, f"Email: {exporter.email}")
        page.text(20, y + 5, f"Country: {exporter.default_origin}")
        seller_end = y + 5

        # Consignee (buyer)
        right_x = 110
        y = 60
        page.text(right_x, y, "CONSIGNEE (SHIP TO)", size=10, bold=True)
        page.text(right_x, y + 5, shipment.consignee_name)
        y = page.lines(right_x, y + 10, textwrap.wrap(shipment.consignee_address, 45) or [""])
        y += 5
        page.text(right_x, y, f"Country: {shipment.destination_country}")

        # Transport terms
        y = max(y, seller_end) + 20
        page.hline(20, right, y)
        y += 8
        for x, label in ((20, "Incoterms"), (60, "Reason for Export"), (110, "Total Packages"),
                         (150, "Gross Weight"), (180, "Currency")):
            page.text(x, y, label, bold=True)
        y += 5
        gross = f"{shipment.gross_weight:g} kg" if shipment.gross_weight is not None else "---"
        page.text(20, y, shipment.incoterm.value if shipment.incoterm else "---")
        page.text(60, y, shipment.export_reason.value)
        page.text(110, y, str(shipment.package_count))
        page.text(150, y, gross)
        page.text(180, y, shipment.currency)
        y += 5
        page.hline(20, right, y)

        # Line item
        y += 15
        page.fill(20, y - 6, PAGE_WIDTH_MM - 40, 10, LIGHT_FILL)
        for x, label in ((25, "Description of Goods"), (95, "HS Code"), (120, "Origin"),
                         (140, "Qty"), (155, "Unit"), (175, "Total")):
            page.text(x, y, label, bold=True)

        y += 12
        page.text(25, y, textwrap.shorten(shipment.product_description, 40, placeholder="..."), bold=True)
        row_y = y
        y += 5
        page.text(25, y, f"Material: {shipment.material or 'N/A'}", size=8)
        y += 4
        page.text(25, y, f"Use: {shipment.intended_use or 'N/A'}", size=8)

        total_value = shipment.total_value
        page.text(95, row_y, shipment.hs_code or "---")
        page.text(120, row_y, shipment.origin_country[:3].upper())
        page.text(140, row_y, _format_quantity(shipment.quantity))
        page.text(155, row_y, f"{shipment.unit_price:.2f}")
        page.text(175, row_y, f"{total_value:.2f}")

        # Totals
        y += 20
        page.hline(140, right, y)
        y += 6
        page.text(140, y, "TOTAL INVOICE VALUE:", bold=True)
        page.text(right, y + 6, f"{total_value:.2f} {shipment.currency}", bold=True, align="right")

        # Declaration
        y = 240
        page.lines(20, y, textwrap.wrap(DECLARATION, 95))
        y += 20
        page.text(20, y, "__________________________")
        page.text(20, y + 5, "Authorized Signature")
        page.text(20, y + 10, exporter.company_name)

        stamp = shipment.created_at.utctimetuple()
        buffer = io.BytesIO()
        page.image.save(
            buffer,
            format="PDF",
            resolution=float(self.dpi),
            title=f"Commercial Invoice {invoice_number(shipment)}",
            author=exporter.company_name,
            creator="ClearPath",
            creationDate=stamp,
            modDate=stamp,
        )
        return buffer.getvalue()

    async def render(self, shipment: FinalizedShipment, exporter: ExporterProfile) -> str:
        """Render off the event loop and return the stored document's handle."""
        content = await asyncio.to_thread(self.render_pdf, shipment, exporter)
        handle = self.store.put(content, media_type="application/pdf")
        logger.debug("Rendered invoice %s for order %s (%d bytes)", handle, shipment.order_id, len(content))
        return handle
