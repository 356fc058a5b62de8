"""Browsable directory listings with nginx secure_link download URLs."""
