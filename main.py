#!/usr/bin/env python3
"""Main entry point for the saafy terminal player"""

import sys

from saafy.console import run


def main():
    run(sys.argv[1:])


if __name__ == "__main__":
    main()
