"""Entry point for ``python -m mol2grep``."""

from .main import main

if __name__ == "__main__":
    main()
