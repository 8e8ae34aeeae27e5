"""
Tabular ingestion for bulk orders.

Turns an uploaded spreadsheet (.xlsx) or pasted delimited text into an ordered
list of RawOrderRecord. Column names vary between marketplaces and ERPs, so each
target field is resolved through a table of accepted header aliases.
"""

import csv
import io
import logging
import math
import re
import zipfile
from datetime import date, datetime

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from app.bulk_import.errors import MalformedUpload, NoValidRows
from app.schemas.shipment import RawOrderRecord

logger = logging.getLogger("clearpath.ingestion")

# Target field -> accepted headers, in priority order (matched case-insensitively)
HEADER_ALIASES: dict[str, tuple[str, ...]] = {
    "order_id": ("order_id", "id", "orderid"),
    "buyer_name": ("buyer_name", "buyer", "name"),
    "buyer_address": ("buyer_address", "address"),
    "description": ("desc", "description", "product", "item"),
    "quantity": ("qty", "quantity"),
    "unit_price": ("unit_price", "price", "value"),
    "origin": ("origin", "origin_country"),
    "destination": ("dest", "destination", "country"),
}

DEFAULT_BUYER_NAME = "Guest Buyer"
DEFAULT_BUYER_ADDRESS = "Unknown Address"
DEFAULT_DESCRIPTION = "General Merchandise"
DEFAULT_QUANTITY = 1.0

CANDIDATE_DELIMITERS = ",;\t|"
XLSX_MAGIC = b"PK\x03\x04"

# One number, optionally wrapped in currency symbols or codes
NUMBER_TOKEN = re.compile(r"[^\d]*?([-+]?[.,]?\d[\d.,]*)[^\d]*")

TEMPLATE_HEADERS = ["order_id", "buyer_name", "buyer_address", "desc", "qty", "unit_price", "origin", "dest"]
TEMPLATE_ROWS = [
    ["ORD-1001", "John Doe", "123 Main St, London, UK", "Cotton T-Shirt", 10, 15, "USA", "UK"],
    ["ORD-1002", "Jane Smith", "45 Ave Paris, France", "Ceramic Vase", 2, 40, "USA", "France"],
]


def _cell_to_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.date().isoformat() if value.time() == datetime.min.time() else value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def _is_xlsx(content: bytes | str, filename: str | None) -> bool:
    if filename and filename.lower().endswith(".xlsx"):
        return True
    return isinstance(content, bytes) and content.startswith(XLSX_MAGIC)


def _parse_xlsx(content: bytes) -> list[dict[str, str]]:
    """Read the first worksheet; the first row holds the headers."""
    try:
        workbook = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (zipfile.BadZipFile, InvalidFileException, KeyError, OSError, ValueError) as e:
        raise MalformedUpload(
            "Failed to parse file. Please ensure it is a valid CSV or Excel file."
        ) from e

    try:
        sheet = workbook.worksheets[0]
        rows = sheet.iter_rows(values_only=True)
        header_row = next(rows, None)
        if header_row is None:
            return []
        headers = [_cell_to_text(h) for h in header_row]

        records: list[dict[str, str]] = []
        for values in rows:
            record = {
                header: _cell_to_text(value)
                for header, value in zip(headers, values)
                if header
            }
            if any(record.values()):
                records.append(record)
        return records
    finally:
        workbook.close()


def _sniff_delimiter(sample: str) -> str:
    try:
        return csv.Sniffer().sniff(sample, delimiters=CANDIDATE_DELIMITERS).delimiter
    except csv.Error:
        return ","


def _parse_delimited(text: str) -> list[dict[str, str]]:
    text = text.strip()
    if not text:
        return []

    first_line = text.splitlines()[0]
    reader = csv.DictReader(io.StringIO(text), delimiter=_sniff_delimiter(first_line))

    records: list[dict[str, str]] = []
    for row in reader:
        # Cells beyond the header row land under the None key
        record = {
            key.strip(): (value or "").strip()
            for key, value in row.items()
            if key is not None and key.strip()
        }
        if any(record.values()):
            records.append(record)
    return records


def parse_table(content: bytes | str, filename: str | None = None) -> list[dict[str, str]]:
    """Parse spreadsheet bytes or delimited text into header -> value dicts."""
    if _is_xlsx(content, filename):
        if isinstance(content, str):
            raise MalformedUpload("Excel files must be uploaded as binary content")
        return _parse_xlsx(content)

    if isinstance(content, bytes):
        content = content.decode("utf-8-sig", errors="replace")
    return _parse_delimited(content)


def resolve_field(row: dict[str, str], field: str) -> str:
    """Return the value of the first alias of `field` present (non-blank) in the row."""
    by_header = {key.strip().lower(): value for key, value in row.items()}
    for alias in HEADER_ALIASES[field]:
        value = by_header.get(alias)
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


def parse_number(text: str, default: float) -> float:
    """Best-effort numeric parse ("1,250.00", "$15", "12,5", "1.250,00 EUR").

    Currency symbols and codes around a single number are ignored. Anything
    else (a second number, an exponent, a range) falls back to default.
    """
    match = NUMBER_TOKEN.fullmatch((text or "").strip())
    if match is None:
        return default

    token = match.group(1)
    if "," in token and "." in token:
        if token.rfind(",") > token.rfind("."):
            # European grouping: "1.250,00"
            token = token.replace(".", "").replace(",", ".")
        else:
            token = token.replace(",", "")
    elif re.fullmatch(r"[-+]?\d*,\d{1,2}", token):
        token = token.replace(",", ".")
    else:
        token = token.replace(",", "")

    try:
        number = float(token)
    except ValueError:
        return default
    return number if math.isfinite(number) else default


def _is_header_token(description: str) -> bool:
    return description.strip().lower() in HEADER_ALIASES["description"]


def normalize_rows(
    rows: list[dict[str, str]],
    *,
    default_origin: str,
    default_unit_price: float,
) -> list[RawOrderRecord]:
    """Map parsed rows onto RawOrderRecord, applying defaults and dropping junk rows."""
    records: list[RawOrderRecord] = []

    for row in rows:
        description = resolve_field(row, "description")
        # A header line pasted twice shows up as a data row
        if _is_header_token(description):
            continue
        description = description or DEFAULT_DESCRIPTION

        index = len(records)
        quantity = parse_number(resolve_field(row, "quantity"), DEFAULT_QUANTITY)
        if quantity <= 0:
            quantity = DEFAULT_QUANTITY
        unit_price = parse_number(resolve_field(row, "unit_price"), default_unit_price)
        if unit_price < 0:
            unit_price = default_unit_price

        records.append(RawOrderRecord(
            index=index,
            order_id=resolve_field(row, "order_id") or f"ID-{index + 1}",
            buyer_name=resolve_field(row, "buyer_name") or DEFAULT_BUYER_NAME,
            buyer_address=resolve_field(row, "buyer_address") or DEFAULT_BUYER_ADDRESS,
            description=description,
            quantity=quantity,
            unit_price=unit_price,
            origin=resolve_field(row, "origin") or default_origin,
            destination=resolve_field(row, "destination"),
        ))

    return records


def ingest(
    content: bytes | str,
    *,
    filename: str | None = None,
    default_origin: str = "USA",
    default_unit_price: float = 10.0,
) -> list[RawOrderRecord]:
    """Parse and normalize an upload.

    Raises:
        MalformedUpload: If spreadsheet bytes cannot be opened.
        NoValidRows: If no row survives normalization.
    """
    rows = parse_table(content, filename)
    records = normalize_rows(
        rows, default_origin=default_origin, default_unit_price=default_unit_price
    )

    logger.info("Ingested %d of %d rows (file=%s)", len(records), len(rows), filename or "<pasted>")

    if not records:
        raise NoValidRows()
    return records


def build_template_xlsx() -> bytes:
    """Sample import template users can fill in."""
    workbook = openpyxl.Workbook()
    sheet = workbook.active
    sheet.title = "Template"
    sheet.append(TEMPLATE_HEADERS)
    for row in TEMPLATE_ROWS:
        sheet.append(row)

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
