"""Tools for decoding IATA Bar-Coded Boarding Passes."""

# Standard imports
import argparse
from pathlib import Path

# Third-party imports
from dotenv import load_dotenv

# Project imports
import pbbcbp.tools as bpt

# Load environment variables from .env file.
load_dotenv()

if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Tools for decoding IATA Bar-Coded Boarding Passes."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # decode
    decode_parser = subparsers.add_parser(
        "decode",
        help="Decode a BCBP-coded text string",
    )
    decode_parser.add_argument("bcbp_text",
        help="BCBP text string",
        metavar="BCBP_TEXT",
        type=str,
    )
    decode_parser.add_argument("--year",
        dest="reference_year",
        help=(
            "Year used to resolve flight and issue dates (defaults to "
            "BCBP_REFERENCE_YEAR or the current UTC year)"
        ),
        type=int,
    )

    # pkpass
    pkpass_parser = subparsers.add_parser(
        "pkpass",
        help="Decode boarding passes in .pkpass files",
    )
    pkpass_parser.add_argument("paths",
        help="Path to a .pkpass file",
        metavar="PATH",
        nargs="+",
        type=Path,
    )

    # import-pkpasses
    subparsers.add_parser(
        "import-pkpasses",
        help="Decode .pkpass files in the import folder",
    )

    # Parse arguments
    args = parser.parse_args()
    match args.command:
        case "decode":
            bpt.decode_bcbp(args.bcbp_text, args.reference_year)
        case "pkpass":
            bpt.decode_pkpasses(args.paths)
        case "import-pkpasses":
            bpt.import_pkpasses()
