"""Built-in CLI commands: ``call``, ``cache`` and ``config``."""
