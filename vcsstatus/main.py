#!/usr/bin/env python3
"""
Main entry point for the vcsstatus CLI.

This delegates to the UI layer in vcsstatus.ui.cli to keep the
console script mapping stable.
"""

from vcsstatus.ui.cli import run as vcsstatus


if __name__ == "__main__":
    vcsstatus()
