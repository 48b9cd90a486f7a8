"""Tokenizer adapters: turn one document's text into an ordered list of terms."""
