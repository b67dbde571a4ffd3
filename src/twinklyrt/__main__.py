"""Allow `python -m twinklyrt`."""

from twinklyrt.cli.main import cli

if __name__ == "__main__":
    cli()
