"""
Allow running Redsteep as a module: ``python -m redsteep``.

This delegates to the CLI entry point so that both
``redsteep`` (console script) and ``python -m redsteep``
behave identically.
"""

from redsteep.cli import main

if __name__ == "__main__":
    main()
