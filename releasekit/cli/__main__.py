"""
Entry point for running releasekit CLI as a module.

Usage: python -m releasekit.cli [command] [options]
"""

from .parser import main

if __name__ == "__main__":
    main()
