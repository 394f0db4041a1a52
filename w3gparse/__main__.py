"""Entrypoint for python -m w3gparse."""
from w3gparse.cli import app


def main():
    app()


if __name__ == "__main__":
    main()
