"""
Entry point for running awaybot as a module: python -m awaybot
"""

from awaybot.cli.commands import app

if __name__ == "__main__":
    app()
