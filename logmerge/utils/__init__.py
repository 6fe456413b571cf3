"""
Utility modules for logmerge.

Modules:
    - paths: Input directory resolution and output file naming
    - runlog: Line-oriented run logger shared by all components

Purpose:
    These utilities are separated from the engine so that naming rules and
    log formatting stay in one place and can be tested on their own.
"""
