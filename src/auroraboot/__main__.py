"""Main entry point for python -m auroraboot."""

from auroraboot.cli.main import main


if __name__ == "__main__":
    main()
