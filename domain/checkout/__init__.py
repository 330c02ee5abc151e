"""Checkout transaction engine: pure order-to-payload building blocks."""
