"""Data model, datablock formatting and terminal definitions."""
