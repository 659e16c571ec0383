"""
Entry point when the package is run as a script (`python -m leaderhud`).
"""
from .cli import app

if __name__ == "__main__":
    app()
