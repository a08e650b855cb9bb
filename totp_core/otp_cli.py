#!/usr/bin/env python3
"""
otp_cli.py — command-line front end for otp_core.py

Subcommands:
- code      : print the current TOTP code and how long it stays valid
- watch     : live TOTP display, new code at every window boundary
- hotp      : HOTP code for an explicit counter
- remaining : seconds left in the current window
- inspect   : show how a secret is decoded (encoding + key bytes)
- init      : print a fresh random Base32 secret

The secret comes from --secret, --secret-file or $TOTP_SECRET, in that order.
An otpauth:// URI (what a QR scanner returns) is accepted in place of a
bare secret.
"""

import argparse
import logging
import os
import sys
import time
from urllib.parse import parse_qs, urlparse

from . import otp_core
from .secret import detect_encoding, normalize_secret

logger = logging.getLogger(__name__)

SECRET_ENV_VAR = "TOTP_SECRET"
ERROR_SENTINEL = "Error"


class SecretNotProvided(ValueError):
    pass


# --- Secret helpers ---
def load_secret(path: str) -> str:
    """First line of `path`, stripped."""
    with open(path, "r", encoding="utf-8") as f:
        return f.readline().strip()


def secret_from_uri(value: str) -> str:
    """Pull the `secret` parameter out of an otpauth:// URI; other values pass through."""
    if not value.lower().startswith("otpauth://"):
        return value
    params = parse_qs(urlparse(value).query)
    return params.get("secret", [""])[0]


def resolve_secret(args: argparse.Namespace) -> str:
    if args.secret is not None:
        value = args.secret
    elif args.secret_file is not None:
        value = load_secret(args.secret_file)
    elif os.environ.get(SECRET_ENV_VAR) is not None:
        value = os.environ[SECRET_ENV_VAR]
    else:
        raise SecretNotProvided(f"No secret given. Use --secret, --secret-file or ${SECRET_ENV_VAR}.")
    return secret_from_uri(value)


def _code_or_error(secret: str, period: int, digits: int, now: int) -> str:
    try:
        return otp_core.generate_totp(secret, time_step=period, timestamp=now, digits=digits)
    except ValueError:
        return ERROR_SENTINEL


# --- CLI command handlers ---
def cmd_code(args):
    code, remaining = otp_core.totp(resolve_secret(args), args.at, args.period, args.digits)
    print(f"TOTP: {code}  (valid ~{remaining:2d}s)")


def cmd_watch(args):
    secret = resolve_secret(args)
    period = args.period
    print(f"Press Ctrl+C to quit. Generating {args.digits}-digit TOTP every {period}s...\n")
    last_window = None
    ticks = 0
    try:
        while args.ticks is None or ticks < args.ticks:
            now = int(time.time())
            window = otp_core.timecode(now, period)
            remaining = otp_core.get_time_remaining(period, now)
            if window != last_window:
                code = _code_or_error(secret, period, args.digits, now)
                print(f"TOTP: {code}  (valid ~{remaining:2d}s)")
                last_window = window
            else:
                print(f".. {remaining:2d}s left", end="\r", flush=True)
            ticks += 1
            if args.ticks is None or ticks < args.ticks:
                time.sleep(1)
    except KeyboardInterrupt:
        print("\nBye.")


def cmd_hotp(args):
    key = normalize_secret(resolve_secret(args))
    code = otp_core.hotp(key, args.counter, args.digits)
    print(f"HOTP(counter={args.counter}): {code}")


def cmd_remaining(args):
    print(otp_core.get_time_remaining(args.period, args.at))


def cmd_inspect(args):
    secret = resolve_secret(args)
    key = normalize_secret(secret)
    print(f"encoding : {detect_encoding(secret)}")
    print(f"key bytes: {len(key)}")
    print(f"key (hex): {key.hex()}")


def cmd_init(args):
    print(otp_core.generate_secret())


# --- Argparse builder ---
def build_parser() -> argparse.ArgumentParser:
    secret_opts = argparse.ArgumentParser(add_help=False)
    secret_opts.add_argument("--secret", help="Secret (Base32, hex or text) or otpauth:// URI")
    secret_opts.add_argument("--secret-file", help="File whose first line is the secret")

    period_opts = argparse.ArgumentParser(add_help=False)
    period_opts.add_argument("--period", type=int, default=otp_core.DEFAULT_TIME_STEP, help="TOTP time step (seconds)")

    digits_opts = argparse.ArgumentParser(add_help=False)
    digits_opts.add_argument("--digits", type=int, default=otp_core.DEFAULT_DIGITS, help="Number of OTP digits")

    at_opts = argparse.ArgumentParser(add_help=False)
    at_opts.add_argument("--at", type=int, help="Unix time to compute for (default: now)")

    p = argparse.ArgumentParser(prog="totp-core", description="TOTP/HOTP (HMAC-SHA1) code generator")
    p.add_argument("--verbose", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="cmd")

    pc = sub.add_parser("code", parents=[secret_opts, period_opts, digits_opts, at_opts],
                        help="Print the current TOTP code")
    pc.set_defaults(func=cmd_code)

    pw = sub.add_parser("watch", parents=[secret_opts, period_opts, digits_opts],
                        help="Show TOTP codes in real time")
    pw.add_argument("--ticks", type=int, help="Stop after this many one-second ticks")
    pw.set_defaults(func=cmd_watch)

    ph = sub.add_parser("hotp", parents=[secret_opts, digits_opts],
                        help="Generate HOTP code for a specific counter")
    ph.add_argument("--counter", type=int, required=True)
    ph.set_defaults(func=cmd_hotp)

    pr = sub.add_parser("remaining", parents=[period_opts, at_opts],
                        help="Seconds until the current code rotates")
    pr.set_defaults(func=cmd_remaining)

    pi = sub.add_parser("inspect", parents=[secret_opts], help="Show how a secret is decoded")
    pi.set_defaults(func=cmd_inspect)

    pn = sub.add_parser("init", help="Print a new random Base32 secret")
    pn.set_defaults(func=cmd_init)

    return p


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 0

    configure_logging(args.verbose)
    try:
        args.func(args)
    except (ValueError, OSError) as e:
        logger.debug("%s failed", args.cmd, exc_info=True)
        print(f"[!] {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
