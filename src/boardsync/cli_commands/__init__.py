"""Click command modules registered on the ``boardsync`` group in ``cli.py``."""
