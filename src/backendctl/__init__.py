"""Local supervisor for a single backend server process."""
