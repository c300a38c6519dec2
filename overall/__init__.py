"""Overall - repository state tracking across GitHub and local checkouts."""

__version__ = "0.1.0"
