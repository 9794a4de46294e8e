"""Main entry point for the sigscreen package."""
import sys

from sigscreen.cli import main

if __name__ == "__main__":
    sys.exit(main())
