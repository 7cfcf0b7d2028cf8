#!/usr/bin/env python3
"""
Standalone entry point for the CodeProject.AI provisioner.

Equivalent to the `cpai-provisioner` console script, for hosts where the
package is not installed (for example a copy of the backend directory run
directly with Python from an elevated prompt).
"""

import logging
import sys
import traceback

# Force UTF-8 encoding for stdout/stderr on Windows
if sys.platform == 'win32':
    import io
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8', errors='replace')
    sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding='utf-8', errors='replace')

logger = logging.getLogger("cpai_provisioner")


def global_exception_handler(exc_type, exc_value, exc_tb):
    """Log unhandled exceptions before the process dies."""
    logger.error("=" * 60)
    logger.error("UNHANDLED EXCEPTION - provisioning aborted")
    logger.error("=" * 60)
    logger.error(f"Type: {exc_type.__name__}")
    logger.error(f"Value: {exc_value}")
    logger.error("Traceback:")
    for line in traceback.format_tb(exc_tb):
        for subline in line.strip().split('\n'):
            logger.error(f"  {subline}")
    logger.error("=" * 60)
    sys.stdout.flush()
    sys.stderr.flush()


sys.excepthook = global_exception_handler


def main():
    from cpai_provisioner.cli import main as cli_main

    cli_main()


if __name__ == "__main__":
    main()
