"""Allow running as ``python -m ffrun``."""

from ffrun.cli import main

if __name__ == "__main__":
    main()
