"""Allow running the harness with ``python -m procharness``."""

from .cli.main import main

if __name__ == "__main__":
    main()
