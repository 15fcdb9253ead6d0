"""Property preprocessing, once per stylesheet and once per document."""
