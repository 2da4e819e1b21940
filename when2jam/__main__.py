"""
Convenience entry point for running when2jam as a module.

Usage: python -m when2jam [command] [options]
"""

from .cli.app import app

if __name__ == "__main__":
    app()
