"""Checkout plugins for the hookstack demo."""
