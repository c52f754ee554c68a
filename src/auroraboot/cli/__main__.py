"""CLI entry point."""

from auroraboot.cli.main import main


if __name__ == "__main__":
    main()
