"""Campus library finder service."""
