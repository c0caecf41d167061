"""Allow running as `python -m apidocs_builder`."""

from apidocs_builder.cli import app

if __name__ == "__main__":
    app()
