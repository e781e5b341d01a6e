"""Core domain logic for personal health event forecasting.

This package contains the prediction engine and domain models,
isolated from network and storage providers for easy testing and reasoning.
"""
