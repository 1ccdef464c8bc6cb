"""Zoom webhook receiving and endpoint validation."""
