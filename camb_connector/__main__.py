"""Package entry point for ``python -m camb_connector``."""

from camb_connector.cli import main

if __name__ == "__main__":
    main()
