"""Allow ``python -m karyotap``."""

from karyotap.cli import main

main()
