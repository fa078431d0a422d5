"""Entry point for running textsynth as a module."""

from .cli import app


def main() -> None:
    """Main entry point for the textsynth CLI application."""
    app()


if __name__ == "__main__":
    main()
