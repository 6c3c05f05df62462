"""CLI for sealing a note body with a password, or opening a sealed one"""

import argparse
import getpass
from pathlib import Path

from loguru import logger

from notevault.crypto.cipher import KDF_ITERATIONS, Cipher
from notevault.exceptions import IncorrectPasswordOrCorruptPayload, MalformedPayload


def main(
    action: str,
    in_file: str,
    out_file: str,
    password: str,
    scheme: str = "cbc",
    iterations: int = KDF_ITERATIONS,
) -> int:
    cipher = Cipher(iterations=iterations, scheme=scheme)  # type: ignore[arg-type]
    text = Path(in_file).read_text(encoding="utf-8")

    if action == "seal":
        result = cipher.seal(text, password).to_json()
    else:
        try:
            result = cipher.open(text, password)
        except MalformedPayload:
            logger.error(f"{in_file} does not contain a sealed note")
            return 2
        except IncorrectPasswordOrCorruptPayload:
            logger.error("Incorrect password")
            return 1

    Path(out_file).write_text(result, encoding="utf-8")
    logger.info(f"Wrote {out_file}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("action", choices=["seal", "open"], help="Operation to perform")
    parser.add_argument("--in-file", type=str, required=True, help="Input file")
    parser.add_argument("--out-file", type=str, required=True, help="Output file")
    parser.add_argument(
        "--scheme",
        type=str,
        choices=["cbc", "gcm"],
        default="cbc",
        help="Cipher scheme used when sealing",
    )
    parser.add_argument(
        "--iterations", type=int, default=KDF_ITERATIONS, help="PBKDF2 iteration count"
    )

    args = parser.parse_args()

    raise SystemExit(
        main(
            action=args.action,
            in_file=args.in_file,
            out_file=args.out_file,
            password=getpass.getpass("Password: "),
            scheme=args.scheme,
            iterations=args.iterations,
        )
    )
