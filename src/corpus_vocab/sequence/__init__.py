"""Document -> token sequence conversion and concurrent-safe iteration."""
