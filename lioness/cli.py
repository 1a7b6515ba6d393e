#!/usr/bin/env python3
"""
Command line interface for LIONESS.

Usage:
    lioness keygen [--stream S] [--mac M] [--output FILE]
    lioness encrypt --key-file FILE [--input FILE] [--output FILE] [--hex]
    lioness decrypt --key-file FILE [--input FILE] [--output FILE] [--hex]
    lioness info [--stream S] [--mac M]
"""

import argparse
import logging
import sys
from typing import Optional, Sequence

from .cipher import InvalidBlockLength, Lioness
from .config import ConfigError, LionessConfig
from .crypto.kdf import (
    KeyScheduleError,
    create_master_key_file,
    generate_master_key,
    load_master_key,
    required_key_size,
)
from .crypto.mac import get_mac
from .crypto.stream import UnknownPrimitiveError, get_stream_cipher
from .crypto.utils import parse_hex

logger = logging.getLogger(__name__)


def _add_primitive_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--stream', default='chacha20', help='Stream cipher (default: chacha20)')
    parser.add_argument('--mac', default='blake3', help='MAC (default: blake3)')


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(prog='lioness', description='LIONESS wide-block cipher')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')
    subparsers = parser.add_subparsers(dest='command', help='Sub-commands')

    keygen_parser = subparsers.add_parser('keygen', help='Generate a master key')
    _add_primitive_args(keygen_parser)
    keygen_parser.add_argument('--output', '-o', help='Write the key file here instead of stdout')

    for name in ('encrypt', 'decrypt'):
        sub = subparsers.add_parser(name, help=f'{name.capitalize()} one block')
        _add_primitive_args(sub)
        key_group = sub.add_mutually_exclusive_group(required=True)
        key_group.add_argument('--key-file', help='Master key file (raw or hex)')
        key_group.add_argument('--config-dir', help='Use the master key and settings stored here')
        sub.add_argument('--input', '-i', help='Input file (default: stdin)')
        sub.add_argument('--output', '-o', help='Output file (default: stdout)')
        sub.add_argument('--hex', action='store_true', help='Read and write hex instead of raw bytes')

    info_parser = subparsers.add_parser('info', help='Show sizes for a primitive pair')
    _add_primitive_args(info_parser)

    return parser


def _read_input(path: Optional[str], as_hex: bool) -> bytes:
    if path:
        with open(path, 'rb') as f:
            data = f.read()
    else:
        data = sys.stdin.buffer.read()
    if as_hex:
        return parse_hex(data.decode('ascii'))
    return data


def _write_output(path: Optional[str], data: bytes, as_hex: bool) -> None:
    if as_hex:
        data = data.hex().encode('ascii') + b"\n"
    if path:
        with open(path, 'wb') as f:
            f.write(data)
    else:
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()


def _build_cipher(args):
    if args.config_dir:
        return LionessConfig(args.config_dir).create_cipher()

    stream = get_stream_cipher(args.stream)
    mac = get_mac(args.mac)
    key = load_master_key(args.key_file, required_key_size(stream, mac))
    return Lioness(key, stream, mac)


def cmd_keygen(args) -> int:
    stream = get_stream_cipher(args.stream)
    mac = get_mac(args.mac)
    size = required_key_size(stream, mac)

    if args.output:
        create_master_key_file(args.output, size)
        logger.info(f"Wrote {size}-byte {stream.name}/{mac.name} master key to {args.output}")
    else:
        print(generate_master_key(size).hex())
    return 0


def cmd_transform(args) -> int:
    cipher = _build_cipher(args)
    block = bytearray(_read_input(args.input, args.hex))

    if args.command == 'encrypt':
        cipher.encrypt_block(block)
    else:
        cipher.decrypt_block(block)

    _write_output(args.output, bytes(block), args.hex)
    return 0


def cmd_info(args) -> int:
    stream = get_stream_cipher(args.stream)
    mac = get_mac(args.mac)
    cipher = Lioness(bytes(required_key_size(stream, mac)), stream, mac)
    for field, value in cipher.get_info().items():
        print(f"{field}: {value}")
    return 0


COMMANDS = {
    'keygen': cmd_keygen,
    'encrypt': cmd_transform,
    'decrypt': cmd_transform,
    'info': cmd_info,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the ``lioness`` command."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    if not args.command:
        parser.print_help()
        return 1

    try:
        return COMMANDS[args.command](args)
    except UnknownPrimitiveError as e:
        print(f"Error: {e.args[0]}", file=sys.stderr)
    except (InvalidBlockLength, KeyScheduleError, ConfigError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
    except ValueError as e:
        print(f"Error: invalid input: {e}", file=sys.stderr)
    return 1


if __name__ == '__main__':
    sys.exit(main())
