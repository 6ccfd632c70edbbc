"""Internal units: rank ladders, permission evaluation and management."""
