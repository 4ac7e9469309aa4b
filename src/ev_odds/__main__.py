"""
Entry point for running the scanner as a module.

Usage:
    python -m ev_odds scan basketball_nba
    python -m ev_odds kelly 1000 -110 -125 --fraction 0.25
"""

from ev_odds.cli import app

if __name__ == "__main__":
    app()
