"""Allow ``python -m allknower.cli`` execution."""

from allknower.cli.lore import main

main()
