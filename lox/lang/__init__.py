"""Error reporting, sessions, the interactive shell and the command-line driver."""
