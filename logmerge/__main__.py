"""
Entry point for running logmerge as a Python module.

This module enables the package to be executed directly via:
    python -m logmerge [options]
"""

from .cli import main

if __name__ == "__main__":
    main()
