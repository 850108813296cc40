"""Tools for reading boarding passes out of Apple Wallet passes."""

# Standard imports
import json
from datetime import datetime
from pathlib import Path
from zipfile import ZipFile
from zoneinfo import ZoneInfo

# Third-party imports
import colorama
from dateutil.parser import isoparse

# Project imports
from pbbcbp.boarding_pass import BoardingPass, decode_barcode

# PassKit barcode formats and the symbologies they represent.
PASSKIT_FORMATS = {
    "PKBarcodeFormatAztec": "AZTEC",
    "PKBarcodeFormatPDF417": "PDF_417",
    "PKBarcodeFormatQR": "QR_CODE",
    "PKBarcodeFormatCode128": "CODE_128",
}

colorama.init()

class PKPass():
    """Represents an Apple Wallet PKPass boarding pass."""
    PASS_FILE = "pass.json"

    def __init__(self, path: Path):
        self.path = Path(path)
        self.pass_json = self._load_pass_json(self.path)
        self.relevant_date = self._parse_relevant_date()
        barcode = self._barcode()
        self.message = barcode.get('message')
        self.barcode_format = PASSKIT_FORMATS.get(barcode.get('format'))
        self.boarding_pass = self._boarding_pass()

    @property
    def archive_filename(self) -> str:
        """Creates an archive filename."""
        fields = []
        if self.relevant_date is None:
            date_str = "NODATE"
        else:
            date_str = self.relevant_date.strftime("%Y%m%dT%H%MZ")
        fields.append(date_str)
        if self.boarding_pass is not None:
            leg = self.boarding_pass.first_leg
            fields.append(leg.carrier)
            fields.append(leg.flight_number)
            fields.append("-".join([leg.origin, leg.destination]))
            if len(self.boarding_pass.legs) > 1:
                fields.append(f"{len(self.boarding_pass.legs)}LEGS")
        fields = [f for f in fields if f]
        return "_".join(fields) + ".pkpass"

    def _barcode(self) -> dict:
        """Gets the barcode dict, preferring the legacy barcode key."""
        barcode = self.pass_json.get('barcode')
        if barcode is None:
            barcodes = self.pass_json.get('barcodes') or [{}]
            barcode = barcodes[0]
        return barcode

    def _boarding_pass(self) -> BoardingPass | None:
        """Decodes the barcode message."""
        if self.message is None:
            return None
        reference_year = None
        if self.relevant_date is not None:
            reference_year = self.relevant_date.year
        return decode_barcode(
            self.barcode_format, self.message, reference_year
        )

    def _load_pass_json(self, path) -> dict:
        """Gets boarding pass JSON."""
        with ZipFile(path, 'r') as zf:
            if PKPass.PASS_FILE not in zf.namelist():
                print(
                    colorama.Fore.YELLOW
                    + f"⚠️ {PKPass.PASS_FILE} not found in {path}."
                    + colorama.Style.RESET_ALL
                )
                return {}
            with zf.open(PKPass.PASS_FILE) as pf:
                return json.loads(pf.read().decode('utf-8'))

    def _parse_relevant_date(self) -> datetime | None:
        """Gets the PKPass date."""
        try:
            pass_date = isoparse(self.pass_json.get('relevantDate'))
            return pass_date.astimezone(ZoneInfo("UTC"))
        except (TypeError, ValueError):
            return None
