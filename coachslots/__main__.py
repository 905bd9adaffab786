"""
Convenience entry point for running coachslots as a module.

Usage: python -m coachslots [command] [options]
"""

from .cli.app import app

if __name__ == "__main__":
    app()
