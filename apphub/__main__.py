"""Module entry point for the apphub CLI."""

from .main import main

main()
