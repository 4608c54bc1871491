import csv
import io
import re
import uuid
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterator, List, Tuple, Union

from app.exceptions import EmptyInput, InvalidInput, RowParseError
from app.schemas.product import ProductRow

_INTEGER_RE = re.compile(r"^[+-]?[0-9]+$")
_CENTS = Decimal("0.01")
_PRICE_LIMIT = Decimal("100000000")  # NUMERIC(10, 2)


class CSVProcessor:
    """Parses product CSV payloads into validated rows.

    Column order is fixed: id, name, image, price, qty. The first row is a
    header and is discarded without looking at it.
    """

    MIN_COLUMNS = 5

    @staticmethod
    def read_records(file_content: bytes) -> List[Tuple[int, List[str]]]:
        """Decode the payload and return its data records (header dropped).

        Each record is paired with the file line it starts on, so blank
        lines and quoted multi-line fields keep row numbers true to the file.
        """
        try:
            text_content = file_content.decode('utf-8')
        except UnicodeDecodeError as e:
            raise InvalidInput(f"CSV payload is not valid UTF-8: {e}") from e

        reader = csv.reader(io.StringIO(text_content))
        records = []
        line_number = 1
        try:
            for record in reader:
                # blank lines come back as empty lists
                if record:
                    records.append((line_number, record))
                line_number = reader.line_num + 1
        except csv.Error as e:
            raise InvalidInput(f"Failed to read CSV: {e}") from e

        if len(records) < 2:
            raise EmptyInput()
        return records[1:]

    @staticmethod
    def parse_row(record: List[str], row_number: int) -> ProductRow:
        """Validate one CSV record. Raises RowParseError on bad input."""
        if len(record) < CSVProcessor.MIN_COLUMNS:
            raise RowParseError(row_number, f"insufficient columns ({len(record)})")

        raw_id, name, image, raw_price, raw_qty = (value.strip() for value in record[:5])

        if not name:
            raise RowParseError(row_number, "name is required")

        try:
            price = Decimal(raw_price)
        except InvalidOperation:
            raise RowParseError(row_number, f"invalid price '{raw_price}'") from None
        if not price.is_finite() or price < 0:
            raise RowParseError(row_number, f"invalid price '{raw_price}'")
        if price >= _PRICE_LIMIT:
            raise RowParseError(row_number, f"price out of range '{raw_price}'")
        price = price.quantize(_CENTS, rounding=ROUND_HALF_UP)

        if not _INTEGER_RE.match(raw_qty):
            raise RowParseError(row_number, f"invalid quantity '{raw_qty}'")
        qty = int(raw_qty)
        if qty < 0:
            raise RowParseError(row_number, f"invalid quantity '{raw_qty}'")

        if raw_id:
            try:
                product_id = str(uuid.UUID(raw_id))
            except ValueError:
                raise RowParseError(row_number, f"invalid id '{raw_id}'") from None
        else:
            product_id = str(uuid.uuid4())

        return ProductRow(
            row_number=row_number,
            id=product_id,
            name=name,
            image=image or None,
            price=price,
            qty=qty,
        )

    @staticmethod
    def iter_rows(
        records: List[Tuple[int, List[str]]],
    ) -> Iterator[Union[ProductRow, RowParseError]]:
        """Yield a parsed row, or the parse error, for every data record in order."""
        for row_number, record in records:
            try:
                yield CSVProcessor.parse_row(record, row_number)
            except RowParseError as e:
                yield e
