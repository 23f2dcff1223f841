"""HTTP API exposing session carts and checkout."""
