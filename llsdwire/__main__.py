"""Allow ``python -m llsdwire``."""

from .cli import main

main()
