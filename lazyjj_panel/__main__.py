"""Entry point for ``python -m lazyjj_panel``."""

from lazyjj_panel.cli.commands import app

if __name__ == "__main__":
    app()
