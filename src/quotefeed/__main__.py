"""Allow ``python -m quotefeed``."""

from quotefeed.cli import main

main()
