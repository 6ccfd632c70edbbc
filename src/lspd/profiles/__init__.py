"""Officer profile documents and their storage."""
