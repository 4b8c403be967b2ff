"""Command-line interface."""
from faradaylab.main import main

if __name__ == "__main__":
    main()
