"""Allow running as ``python -m libraryhub``."""

from .cli import main

if __name__ == "__main__":
    main()
