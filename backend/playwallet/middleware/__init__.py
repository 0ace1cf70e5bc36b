"""Request middleware: rate limiting."""
