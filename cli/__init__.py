"""Terminal client for the mathtutor solve API."""
