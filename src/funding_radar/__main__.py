"""Allow ``python -m funding_radar``."""

from funding_radar.main import main

main()
