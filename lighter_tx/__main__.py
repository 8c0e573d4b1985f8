"""Allow ``python -m lighter_tx``."""

from .cli import main

main()
