"""Tools for decoding IATA Bar-Coded Boarding Pass (BCBP) text."""

# Standard imports
import calendar
import re
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta, timezone

# Third-party imports
from dateutil.relativedelta import relativedelta

HEADER_LENGTH = 23 # Format code, leg count, name, ticket indicator
LEG_MANDATORY_LENGTH = 37
BAG_TAG_LENGTH = 13
YEAR_WINDOW = 20 # Years searched either side of the reference year

# Symbologies an airline may use for a BCBP.
SUPPORTED_FORMATS = frozenset({"AZTEC", "PDF_417", "QR_CODE", "DATA_MATRIX"})

_NUMBER_WITH_SUFFIX = re.compile(r"^(0*)(\d+)([A-Z]?)$")
_NAME_BLOCK = re.compile(r"[A-Z0-9 /-]*")
_HEX = re.compile(r"[0-9A-Fa-f]+")
_INTEGER = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class SecurityBlock:
    """Represents the trailing security block of a boarding pass."""
    type_code: str
    data: str


@dataclass(frozen=True)
class UniqueConditional:
    """Conditional items that appear once per boarding pass."""
    passenger_description: str | None = None
    check_in_source: str | None = None
    issuance_source: str | None = None
    issuance_date: date | None = None
    document_type: str | None = None
    issuing_airline: str | None = None
    bag_tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class RepeatedConditional:
    """Conditional items that may appear once per leg."""
    airline_numeric_code: str | None = None
    document_serial_number: str | None = None
    selectee_indicator: str | None = None
    document_verification: str | None = None
    marketing_carrier: str | None = None
    frequent_flyer_airline: str | None = None
    frequent_flyer_number: str | None = None
    id_ad_indicator: str | None = None
    free_baggage_allowance: str | None = None
    fast_track: bool | None = None
    airline_use: str | None = None


@dataclass(frozen=True)
class Leg:
    """Represents one flight leg of a boarding pass."""
    pnr: str
    origin: str
    destination: str
    carrier: str
    flight_number: str
    day_of_year: int | None
    flight_date: date | None
    compartment: str
    seat: str
    check_in_sequence: str
    passenger_status: str
    conditional_size: int
    repeated_conditional: RepeatedConditional | None = None
    airline_data: str | None = None

    @property
    def flight_code(self) -> str:
        """Carrier and flight number, e.g. AC834."""
        return f"{self.carrier}{self.flight_number}"


@dataclass(frozen=True)
class BoardingPass:
    """
    Represents a decoded Bar-Coded Boarding Pass (BCBP).

    The accessors below the fields read from the first leg, which is
    the leg most callers care about. Passes with more than one leg
    should be read through `legs`.
    """
    format_code: str
    leg_count: int
    passenger_name: str
    ticket_indicator: str
    version_indicator: str
    version_number: int | None
    legs: tuple[Leg, ...]
    unique_conditional: UniqueConditional | None = None
    security: SecurityBlock | None = None
    airline_data: str | None = None

    @property
    def first_leg(self) -> Leg | None:
        """Returns the first leg, if any."""
        return self.legs[0] if self.legs else None

    @property
    def origin(self) -> str:
        return self._first_leg_value('origin')

    @property
    def destination(self) -> str:
        return self._first_leg_value('destination')

    @property
    def carrier(self) -> str:
        return self._first_leg_value('carrier')

    @property
    def flight_number(self) -> str:
        return self._first_leg_value('flight_number')

    @property
    def flight_code(self) -> str:
        return self._first_leg_value('flight_code')

    @property
    def flight_date(self) -> date | None:
        if self.first_leg is None:
            return None
        return self.first_leg.flight_date

    @property
    def compartment(self) -> str:
        return self._first_leg_value('compartment')

    @property
    def seat(self) -> str:
        return self._first_leg_value('seat')

    @property
    def pnr(self) -> str:
        return self._first_leg_value('pnr')

    @property
    def check_in_sequence(self) -> str:
        return self._first_leg_value('check_in_sequence')

    @property
    def passenger_status(self) -> str:
        return self._first_leg_value('passenger_status')

    def summary(self) -> str:
        """Returns a one-line route, flight and seat summary."""
        route = ""
        if self.origin and self.destination:
            route = f"{self.origin}->{self.destination}"
        seat = f"Seat {self.seat}" if self.seat else ""
        parts = [p for p in (route, self.flight_code, seat) if p]
        return " | ".join(parts)

    def _first_leg_value(self, attr: str) -> str:
        """Gets an attribute of the first leg, or an empty string."""
        if self.first_leg is None:
            return ""
        return getattr(self.first_leg, attr)


class Cursor():
    """
    Reads fixed-width fields from BCBP text, front to back.

    Every read returns None when the field cannot be read, in which case
    the position is left unchanged.
    """
    def __init__(self, text: str):
        self.text = text
        self.index = 0

    def remaining(self) -> int:
        """Number of characters not yet read."""
        return len(self.text) - self.index

    def read(self, length: int) -> str | None:
        """Reads the next `length` characters."""
        if length < 0 or length > self.remaining():
            return None
        value = self.text[self.index:self.index + length]
        self.index += length
        return value

    def read_hex(self) -> int | None:
        """Reads a two-character hexadecimal field size."""
        value = self.read(2)
        if value is None:
            return None
        return _parse_hex(value.strip() or "0")

    def read_remaining(self) -> str | None:
        """Reads everything after the current position."""
        if self.remaining() <= 0:
            return None
        return self.read(self.remaining())

    def peek(self) -> str | None:
        """Gets the next character without reading it."""
        if self.remaining() <= 0:
            return None
        return self.text[self.index]


def decode(text: str, reference_year: int | None = None) -> BoardingPass | None:
    """
    Decodes BCBP text into a BoardingPass.

    Returns None if the text is not a well-formed boarding pass. The
    reference year anchors the years of the issue and flight dates,
    which BCBP only encodes as days of the year; it defaults to the
    current UTC year.
    """
    if text is None:
        return None
    if reference_year is None:
        reference_year = datetime.now(timezone.utc).year
    message = normalize(text)
    if len(message) < HEADER_LENGTH + LEG_MANDATORY_LENGTH:
        return None
    cursor = Cursor(message)

    # Mandatory unique items
    format_code = cursor.read(1)
    if format_code not in ("M", "S"):
        return None
    leg_count = _parse_int(cursor.read(1))
    if leg_count is None or leg_count < 1 or leg_count > 9:
        return None
    name_block = cursor.read(20)
    if name_block is None or not _NAME_BLOCK.fullmatch(name_block):
        return None
    passenger_name = format_passenger_name(name_block)
    ticket_indicator = _strip(cursor.read(1))

    legs = []
    version_indicator = ""
    version_number = None
    unique_conditional = None
    for leg_index in range(leg_count):
        leg = _decode_mandatory_leg(cursor)
        if leg is None:
            return None
        conditional = cursor.read(leg.conditional_size)
        if conditional is None:
            return None
        cond_cursor = Cursor(conditional)

        # Conditional Unique items (first leg only)
        if leg_index == 0 and leg.conditional_size > 0:
            version_indicator = (cond_cursor.read(1) or "").rstrip()
            version_number = _parse_int(_strip_to_none(cond_cursor.read(1)))
            unique_size = cond_cursor.read_hex()
            if unique_size is not None:
                unique_text = cond_cursor.read(unique_size)
                if unique_text is None:
                    return None
                unique_conditional = _decode_unique_conditional(
                    unique_text, reference_year
                )

        # Conditional Repeated items
        repeated_conditional = None
        if cond_cursor.remaining() >= 2:
            repeated_conditional = _decode_repeated_conditional(cond_cursor)
        legs.append(replace(
            leg,
            repeated_conditional=repeated_conditional,
            airline_data=_strip_to_none(cond_cursor.read_remaining()),
        ))

    # Flight dates need the issue date, which is only known now.
    issuance_date = None
    if unique_conditional is not None:
        issuance_date = unique_conditional.issuance_date
    legs = [
        replace(leg, flight_date=resolve_flight_date(
            leg.day_of_year, issuance_date, reference_year
        ))
        for leg in legs
    ]

    security = _decode_security(cursor)
    return BoardingPass(
        format_code=format_code,
        leg_count=leg_count,
        passenger_name=passenger_name,
        ticket_indicator=ticket_indicator,
        version_indicator=version_indicator,
        version_number=version_number,
        legs=tuple(legs),
        unique_conditional=unique_conditional,
        security=security,
        airline_data=_strip_to_none(cursor.read_remaining()),
    )


def is_valid(text: str, reference_year: int | None = None) -> bool:
    """Checks whether text decodes as a boarding pass."""
    return decode(text, reference_year) is not None


def decode_barcode(
    barcode_format: str, text: str, reference_year: int | None = None
) -> BoardingPass | None:
    """Decodes text read from a barcode of the given symbology."""
    if barcode_format is None or text is None:
        return None
    if barcode_format.upper() not in SUPPORTED_FORMATS:
        return None
    return decode(text, reference_year)


def is_bcbp(
    barcode_format: str, text: str, reference_year: int | None = None
) -> bool:
    """Checks whether a barcode holds a boarding pass."""
    return decode_barcode(barcode_format, text, reference_year) is not None


def normalize(text: str) -> str:
    """
    Removes line breaks, a symbology identifier prefix (such as ]Q3),
    and leading whitespace.
    """
    message = text.replace("\r", "").replace("\n", "")
    if len(message) > 3 and message.startswith("]"):
        message = message[3:]
    return message.lstrip()


def normalize_number(value: str | None) -> str:
    """
    Removes leading zeros from a number with an optional letter suffix.

    Flight numbers, seats and check-in sequence numbers are zero padded
    (0834, 001A). Values that are not numbers are only stripped.
    """
    value = _strip(value)
    match = _NUMBER_WITH_SUFFIX.match(value)
    if match is None:
        return value
    return (match.group(2).lstrip("0") or "0") + match.group(3)


def format_passenger_name(name_block: str) -> str:
    """Converts a LAST/FIRST name block to First Last."""
    normalized = " ".join(name_block.split())
    parts = normalized.split("/", 1)
    last_name = _title_case(parts[0].strip())
    first_name = _title_case(parts[1].strip()) if len(parts) > 1 else ""
    name = " ".join(n for n in (first_name, last_name) if n)
    return name or normalized


def decode_day_of_year(day_of_year: int, year: int) -> date | None:
    """Creates a date from a year and day of year."""
    if day_of_year < 1 or day_of_year > 366:
        return None
    if day_of_year == 366 and not calendar.isleap(year):
        return None
    try:
        return date(year, 1, 1) + timedelta(days=day_of_year - 1)
    except (OverflowError, ValueError):
        # Year outside what datetime.date can hold.
        return None


def closest_year_with_last_digit(reference_year: int, digit: int) -> int:
    """
    Finds the year ending in `digit` closest to the reference year.

    Years up to 20 years either side are searched. When two years are
    equally close, the earlier one wins.
    """
    best = reference_year
    best_distance = None
    for year in range(
        reference_year - YEAR_WINDOW, reference_year + YEAR_WINDOW + 1
    ):
        if year % 10 != digit:
            continue
        distance = abs(year - reference_year)
        if best_distance is None or distance < best_distance:
            best = year
            best_distance = distance
    return best


def resolve_flight_date(
    day_of_year: int | None,
    issuance_date: date | None,
    reference_year: int,
) -> date | None:
    """
    Resolves a leg's day of year to a date.

    With an issue date, the flight is on or after the issue date: a
    pass issued in December for a flight in January flies the following
    year. Without one, the reference year is used as is.
    """
    if day_of_year is None:
        return None
    if issuance_date is not None:
        flight_date = decode_day_of_year(day_of_year, issuance_date.year)
        if flight_date is not None:
            if flight_date < issuance_date:
                try:
                    return flight_date + relativedelta(years=1)
                except ValueError:
                    return None
            return flight_date
    return decode_day_of_year(day_of_year, reference_year)


def _decode_mandatory_leg(cursor: Cursor) -> Leg | None:
    """Reads the 37 mandatory repeated characters of a leg."""
    pnr = _strip(cursor.read(7))
    origin = _strip(cursor.read(3))
    destination = _strip(cursor.read(3))
    carrier = _strip(cursor.read(3))
    flight_number = normalize_number(cursor.read(5))
    day_of_year = _parse_int(_strip_to_none(cursor.read(3)))
    compartment = _strip(cursor.read(1))
    seat = normalize_number(cursor.read(4))
    check_in_sequence = normalize_number(cursor.read(5))
    passenger_status = _strip(cursor.read(1))
    conditional_size = cursor.read_hex()
    if conditional_size is None:
        return None
    if len(origin) != 3 or len(destination) != 3:
        return None
    if len(carrier) < 2 or len(carrier) > 3:
        return None
    if not flight_number:
        return None
    if day_of_year is not None and (day_of_year < 1 or day_of_year > 366):
        return None
    return Leg(
        pnr=pnr,
        origin=origin,
        destination=destination,
        carrier=carrier,
        flight_number=flight_number,
        day_of_year=day_of_year,
        flight_date=None,
        compartment=compartment,
        seat=seat,
        check_in_sequence=check_in_sequence,
        passenger_status=passenger_status,
        conditional_size=conditional_size,
    )


def _decode_unique_conditional(
    text: str, reference_year: int
) -> UniqueConditional:
    """Reads the conditional unique items."""
    cursor = Cursor(text)
    passenger_description = _strip_to_none(cursor.read(1))
    check_in_source = _strip_to_none(cursor.read(1))
    issuance_source = _strip_to_none(cursor.read(1))
    issuance_date = _decode_issuance_date(cursor.read(4), reference_year)
    document_type = _strip_to_none(cursor.read(1))
    issuing_airline = _strip_to_none(cursor.read(3))
    bag_tags = []
    while cursor.remaining() >= BAG_TAG_LENGTH:
        bag_tag = _strip_to_none(cursor.read(BAG_TAG_LENGTH))
        if bag_tag is not None:
            bag_tags.append(bag_tag)
    return UniqueConditional(
        passenger_description=passenger_description,
        check_in_source=check_in_source,
        issuance_source=issuance_source,
        issuance_date=issuance_date,
        document_type=document_type,
        issuing_airline=issuing_airline,
        bag_tags=tuple(bag_tags),
    )


def _decode_repeated_conditional(
    cursor: Cursor
) -> RepeatedConditional | None:
    """Reads the conditional repeated items of a leg."""
    size = cursor.read_hex()
    if size is None or size <= 0 or size > cursor.remaining():
        return None
    section = Cursor(cursor.read(size))
    airline_numeric_code = _strip_to_none(section.read(3))
    document_serial_number = _strip_to_none(section.read(10))
    selectee_indicator = _strip_to_none(section.read(1))
    document_verification = _strip_to_none(section.read(1))
    marketing_carrier = _strip_to_none(section.read(3))

    # The frequent flyer field takes up whatever the last three items
    # (ID/AD, baggage, fast track) don't.
    frequent_flyer = section.read(max(section.remaining() - 5, 0)) or ""
    frequent_flyer_airline = _strip_to_none(frequent_flyer[:3])
    frequent_flyer_number = _strip_to_none(frequent_flyer[3:])

    id_ad_indicator = _strip_to_none(section.read(1))
    free_baggage_allowance = _strip_to_none(section.read(3))
    fast_track = {'Y': True, 'N': False}.get(_strip(section.read(1)))
    return RepeatedConditional(
        airline_numeric_code=airline_numeric_code,
        document_serial_number=document_serial_number,
        selectee_indicator=selectee_indicator,
        document_verification=document_verification,
        marketing_carrier=marketing_carrier,
        frequent_flyer_airline=frequent_flyer_airline,
        frequent_flyer_number=frequent_flyer_number,
        id_ad_indicator=id_ad_indicator,
        free_baggage_allowance=free_baggage_allowance,
        fast_track=fast_track,
        airline_use=_strip_to_none(section.read_remaining()),
    )


def _decode_security(cursor: Cursor) -> SecurityBlock | None:
    """Reads the security block, if there is a well-formed one."""
    if cursor.remaining() < 4 or cursor.peek() != "^":
        return None
    cursor.read(1)
    type_code = _strip(cursor.read(1))
    length = cursor.read_hex()
    if length is None:
        return None
    data = cursor.read(length)
    if data is None:
        return None
    return SecurityBlock(type_code=type_code, data=data.rstrip())


def _decode_issuance_date(field: str | None, reference_year: int):
    """
    Decodes the date of issue of the boarding pass.

    The field is the last digit of the year followed by the day of
    year (6225 is day 225 of a year ending in 6).
    """
    field = _strip(field)
    if len(field) != 4 or field[0] not in "0123456789":
        return None
    day_of_year = _parse_int(field[1:])
    if day_of_year is None:
        return None
    year = closest_year_with_last_digit(reference_year, int(field[0]))
    return decode_day_of_year(day_of_year, year)


def _title_case(value: str) -> str:
    """Capitalizes each word and each hyphenated part of a name."""
    words = value.lower().split(" ")
    return " ".join(
        "-".join(p[:1].upper() + p[1:] for p in word.split("-"))
        for word in words
    ).strip()


def _parse_hex(hex_str) -> int | None:
    """Parses an unsigned hexadecimal string."""
    if hex_str is None or not _HEX.fullmatch(hex_str):
        return None
    try:
        return int(hex_str, 16)
    except ValueError:
        return None


def _parse_int(int_str) -> int | None:
    """Parses a decimal integer with an optional sign."""
    if int_str is None or not _INTEGER.fullmatch(int_str):
        return None
    try:
        return int(int_str)
    except ValueError:
        return None


def _strip(value: str | None) -> str:
    """Strips a field, treating a missing field as empty."""
    if value is None:
        return ""
    return value.strip()


def _strip_to_none(value: str | None) -> str | None:
    """Strips a field, treating a blank field as missing."""
    return _strip(value) or None
