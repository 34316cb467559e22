"""Route modules for the board API (``boardsync.dashboard``)."""
