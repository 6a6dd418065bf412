"""Command-line tools for AllKnower.

``python -m allknower.cli <command>``; see :mod:`allknower.cli.lore`.
"""
