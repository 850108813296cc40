"""Functions for CLI commands."""

# Standard imports
import os
import sys
from pathlib import Path

# Third-party imports
import colorama
from tabulate import tabulate

# Project imports
from pbbcbp.boarding_pass import BoardingPass, decode
from pbbcbp.pkpass import PKPass

colorama.init()

def decode_bcbp(bcbp_str: str, reference_year: int | None = None) -> None:
    """Decodes a Bar-Coded Boarding Pass string and prints its legs."""
    if reference_year is None:
        reference_year = env_reference_year()
    print(f"Decoding {bcbp_str.replace(' ', '·')}")
    bp = decode(bcbp_str, reference_year)
    if bp is None:
        _warn("The boarding pass data is not valid.")
        sys.exit(1)
    print_boarding_pass(bp)

def decode_pkpasses(paths: list[Path]) -> None:
    """Decodes the boarding passes in PKPass files."""
    for path in paths:
        print(f"Processing {path}")
        pkpass = PKPass(path)
        if pkpass.boarding_pass is None:
            _warn(
                f"{path} does not hold valid boarding pass data. "
                "Skipping this pass."
            )
            continue
        print_boarding_pass(pkpass.boarding_pass)
        print(f"Archive filename: {pkpass.archive_filename}")

def import_pkpasses() -> None:
    """Decodes every PKPass file in the import folder."""
    import_folder = os.getenv("BCBP_IMPORT_PATH")
    if import_folder is None:
        raise KeyError(
            "Environment variable BCBP_IMPORT_PATH is missing."
        )
    import_path = Path(import_folder)
    if not import_path.is_dir():
        raise KeyError(
            "Environment variable BCBP_IMPORT_PATH is not a directory."
        )
    print(f"Importing digital boarding passes from {import_path}")
    pkpasses = sorted(f for f in import_path.glob("*.pkpass") if f.is_file())
    if len(pkpasses) == 0:
        print("ℹ️ No .pkpass files found.")
        return
    decode_pkpasses(pkpasses)

def env_reference_year() -> int | None:
    """Gets the reference year override from the environment."""
    year = os.getenv("BCBP_REFERENCE_YEAR")
    if year is None or year.strip() == "":
        return None
    try:
        return int(year)
    except ValueError as e:
        raise ValueError(
            f"Environment variable BCBP_REFERENCE_YEAR is not a year: {year}"
        ) from e

def print_boarding_pass(bp: BoardingPass) -> None:
    """Prints a boarding pass summary and a table of its legs."""
    print(f"{bp.passenger_name}: {bp.summary()}")
    table = [
        [
            i + 1,
            leg.flight_date,
            leg.flight_code,
            leg.origin,
            leg.destination,
            leg.compartment,
            leg.seat,
            leg.pnr,
        ]
        for i, leg in enumerate(bp.legs)
    ]
    print(tabulate(table,
        headers=["Leg", "Date", "Flight", "Orig", "Dest", "Class", "Seat",
            "PNR"],
    ))
    uc = bp.unique_conditional
    if uc is not None and len(uc.bag_tags) > 0:
        print(f"Bag tags: {', '.join(uc.bag_tags)}")
    if bp.security is not None:
        print(
            f"Security data: type {bp.security.type_code}, "
            f"{len(bp.security.data)} characters"
        )

def _warn(message: str) -> None:
    """Prints a warning."""
    print(
        colorama.Fore.YELLOW
        + f"⚠️ {message}"
        + colorama.Style.RESET_ALL
    )
