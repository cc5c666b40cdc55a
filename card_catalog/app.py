"""Console entry point for the card-catalog command."""

from .cli import app


def main():
    """Run the card-catalog CLI."""
    app(prog_name="card-catalog")


if __name__ == "__main__":
    main()
