"""ERD HTTP API package."""
