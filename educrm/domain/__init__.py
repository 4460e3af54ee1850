"""Pure domain rules. Nothing in this package performs I/O."""
