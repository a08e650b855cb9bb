"""python -m totp_core <subcommand> — see otp_cli.py."""

import sys

from .otp_cli import main

sys.exit(main())
