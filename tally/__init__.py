"""Count the crates depending on a crate over time from a crates.io database dump."""

__version__ = "1.0.3"