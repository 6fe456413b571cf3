"""
logmerge - Aggregate rotated log fragments into consolidated files.

This package scans a directory for rotated or split log files (app.log.1,
app.log.2, ...), groups them by base name and writes each group into one or
more merged outputs named <base>.full.log or <base>.full.<n>.log.

Purpose:
    Log rotation leaves a stream spread across many files. logmerge puts
    them back together in index order, optionally keeping only the text
    matched by regex filters, optionally splitting the result into a
    bounded number of chunks, and optionally removing the fragments.

Package Structure:
    - cli.py: Command-line interface and run orchestration
    - engine/: Scanner, chunk planner, filters and ordered merge writer
    - utils/: Output naming rules and the run logger
    - errors.py: Exception classes by failure scope

Usage:
    Run as a module: python -m logmerge [options]

Example:
    python -m logmerge --input /var/log/app --max-chunks 4 --delete
"""

__version__ = "0.1.0"
