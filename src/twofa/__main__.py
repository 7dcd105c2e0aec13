"""twofa CLI.

Usage:
    python -m twofa secret                  # New base32 secret
    python -m twofa code SECRET             # Current code
    python -m twofa verify SECRET CODE      # Check a code (+-1 step)
    python -m twofa uri SECRET LABEL        # otpauth:// provisioning URI
    python -m twofa backup-codes            # Fresh backup codes
"""

from twofa.cli import main

if __name__ == "__main__":
    main()
