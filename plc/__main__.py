"""Allows running the interpreter as `python -m plc [file]`."""

import sys

from plc.main import main


if __name__ == "__main__":
    sys.exit(main())
