"""wcombine command-line tool."""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import struct
import sys

from .crc import crc16
from .decoder import Packet, decode
from .errors import DecodeError, InvalidHexInput
from .hexdata import from_hex, read_hex_file
from .records import Record
from .response import build_response


def _format_record(rec: Record) -> str:
    values = dataclasses.asdict(rec)
    t = values.pop("time", None)
    fields_str = ", ".join(f"{k}={v}" for k, v in values.items())
    prefix = f"[{t:10d}] " if t is not None else " " * 13
    return f"{prefix}{rec.kind}: {fields_str}"


def _packet_summary(packet: Packet) -> dict:
    return {
        "head": packet.head,
        "type": packet.type,
        "sequence": packet.sequence,
        "length": packet.length,
        "crc": dataclasses.asdict(packet.crc) if packet.crc else None,
        "records": [dict(kind=r.kind, **dataclasses.asdict(r)) for r in packet.records],
        "response": {
            "code": packet.response.code,
            "sequence": packet.response.sequence,
            "raw": packet.response.raw_bytes.hex(),
            "description": packet.response.description,
        },
    }


def _load_input(args: argparse.Namespace) -> bytes:
    if args.hex:
        return from_hex(args.hex)
    if args.file:
        return read_hex_file(args.file)
    print("Error: specify a file or --hex", file=sys.stderr)
    sys.exit(1)


def cmd_decode(args: argparse.Namespace) -> None:
    """Decode one packet and print its records."""
    try:
        packet = decode(_load_input(args))
    except (DecodeError, InvalidHexInput, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.json:
        print(json.dumps(_packet_summary(packet), indent=2, default=str))
        return

    print(f"Head:     0x{packet.head:04x}")
    print(f"Type:     {packet.type} ({type(packet.payload).__name__})")
    print(f"Sequence: {packet.sequence}")
    print(f"Length:   {packet.length}")
    if packet.crc is None:
        print("CRC:      (not present)")
    else:
        status = "ok" if packet.crc.valid else "MISMATCH"
        print(f"CRC:      0x{packet.crc.received:04x} "
              f"(calculated 0x{packet.crc.calculated:04x}) {status}")

    print(f"\nRecords ({len(packet.records)}):")
    for rec in packet.records:
        print(f"  {_format_record(rec)}")

    resp = packet.response
    print(f"\nResponse: {resp.raw_bytes.hex()} code={resp.code} ({resp.description})")


def cmd_crc(args: argparse.Namespace) -> None:
    """Print the CRC-16/ARC of hex input."""
    try:
        data = from_hex(args.hex)
    except InvalidHexInput as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"0x{crc16(data):04x}")


def cmd_ack(args: argparse.Namespace) -> None:
    """Print the acknowledgment frame for a code and sequence."""
    try:
        resp = build_response(args.code, args.sequence)
    except struct.error as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"{resp.raw_bytes.hex()}  {resp.description}")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="wcombine",
                                     description="Wialon Combine packet tool")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    # decode
    p_decode = sub.add_parser("decode", help="Decode one packet")
    p_decode.add_argument("file", nargs="?", help="Text file with packet hex")
    p_decode.add_argument("--hex", help="Packet as hex digits")
    p_decode.add_argument("--json", action="store_true", help="Print JSON")

    # crc
    p_crc = sub.add_parser("crc", help="Compute CRC-16/ARC of hex data")
    p_crc.add_argument("hex", help="Data as hex digits")

    # ack
    p_ack = sub.add_parser("ack", help="Build a server acknowledgment")
    p_ack.add_argument("code", type=int, help="Response code (0-255)")
    p_ack.add_argument("sequence", type=int, help="Packet sequence number")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "decode":
        cmd_decode(args)
    elif args.command == "crc":
        cmd_crc(args)
    elif args.command == "ack":
        cmd_ack(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
