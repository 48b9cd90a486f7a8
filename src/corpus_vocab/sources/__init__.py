"""Document sources: anything that yields labelled documents for vocabulary builds."""
