"""
Main entry point for running the service as a module.

This allows the service to be run with:
    python -m drone_coordinates_generator
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
