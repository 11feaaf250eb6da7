"""HTTP API for Guestlist."""
