"""Librarian: a content-addressed text cache feeding a full-text index."""
