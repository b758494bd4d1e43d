"""
Entry point for ``python -m taskprojector``.
"""

from .cli.app import app

if __name__ == "__main__":
    app()
