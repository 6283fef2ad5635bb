"""Datasets and the experiment runner."""
