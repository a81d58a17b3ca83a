"""Entry point for running the application with uvicorn."""

import sys

from site_payroll.cli import main

if __name__ == "__main__":
    sys.exit(main(["serve", *sys.argv[1:]]))
